# sportstore/utils/parsing.py
import re
import unicodedata


def parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_opt_bool(v):
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    return parse_bool(v)


def parse_int(v, default=0):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def parse_opt_int(v):
    if v is None:
        return None
    if isinstance(v, str) and v.strip().lower() in {"", "null"}:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def parse_opt_float(v):
    if v is None:
        return None
    if isinstance(v, str) and v.strip() == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def parse_id_list(v):
    """Accepts [1, "2"] or "1,2"; drops anything that is not an int."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    out = []
    for x in v:
        n = parse_opt_int(x)
        if n is not None:
            out.append(n)
    return out


def strip_accents(text: str) -> str:
    text = (text or "").replace("đ", "d").replace("Đ", "D")
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def slugify(text):
    text = strip_accents(text).strip().lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")
