# sportstore/utils/validators.py
"""Field rules shared by the registration, profile and admin forms."""
import re

from .. import messages as msg
from ..errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")


def clean_email(value):
    email = (value or "").strip().lower()
    if not email:
        raise ValidationError(msg.EMAIL_REQUIRED, field="email")
    if not EMAIL_RE.match(email):
        raise ValidationError(msg.EMAIL_INVALID, field="email")
    return email


def check_password(password, confirm=None, field="password"):
    if not password:
        raise ValidationError(msg.PASSWORD_REQUIRED, field=field)
    if len(password) < 8:
        raise ValidationError(msg.PASSWORD_TOO_SHORT, field=field)
    if not PASSWORD_RE.match(password):
        raise ValidationError(msg.PASSWORD_WEAK, field=field)
    if confirm is not None and password != confirm:
        raise ValidationError(msg.PASSWORD_MISMATCH, field="confirmPassword")
    return password


def check_phone(value, field="phone"):
    phone = (value or "").strip()
    if not PHONE_RE.match(phone):
        raise ValidationError(msg.PHONE_INVALID, field=field)
    return phone


def require_str(data, key, label, min_len=1, max_len=None):
    value = data.get(key)
    value = value.strip() if isinstance(value, str) else ""
    if len(value) < min_len:
        if min_len <= 1:
            raise ValidationError(f"{label} là bắt buộc", field=key)
        raise ValidationError(f"{label} phải có ít nhất {min_len} ký tự", field=key)
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f"{label} không được vượt quá {max_len} ký tự", field=key)
    return value


def optional_str(data, key, label, min_len=0, max_len=None):
    if data.get(key) in (None, ""):
        return None
    return require_str(data, key, label, min_len=max(min_len, 1), max_len=max_len)


def require_number(data, key, label, minimum=None, maximum=None, integer=False):
    raw = data.get(key)
    if isinstance(raw, bool) or raw is None or raw == "":
        raise ValidationError(f"{label} là bắt buộc", field=key)
    try:
        value = int(raw) if integer else float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} không hợp lệ", field=key)
    if integer and float(raw) != value:
        raise ValidationError(f"{label} phải là số nguyên", field=key)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{label} phải lớn hơn hoặc bằng {minimum}", field=key)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{label} không được vượt quá {maximum}", field=key)
    return value


def optional_number(data, key, label, **kw):
    if data.get(key) in (None, ""):
        return None
    return require_number(data, key, label, **kw)
