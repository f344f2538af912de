# sportstore/services/product_io.py
"""Spreadsheet export/import of the product catalogue (pandas + openpyxl)."""
from __future__ import annotations

import logging
from io import BytesIO
from zipfile import BadZipFile

import pandas as pd

from ..errors import ApiError
from ..extensions import db
from ..model import Category, Product
from ..utils.parsing import parse_bool, slugify
from . import brand_service

log = logging.getLogger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

COLUMNS = [
    "SKU", "Name", "Slug", "Description", "Brand", "Price", "Discount Price",
    "Stock", "Category", "Is Active", "Is Featured", "Sizes", "Colors", "Tags",
]
REQUIRED_COLUMNS = ["SKU", "Name", "Price", "Stock"]


def _join(values):
    return ", ".join(values or [])


def _split(value):
    if _blank(value):
        return []
    return [v.strip() for v in str(value).split(",") if v.strip()]


def _blank(value):
    return value is None or (not isinstance(value, str) and pd.isna(value)) or str(value).strip() == ""


def products_frame(products) -> pd.DataFrame:
    rows = [{
        "SKU": p.sku,
        "Name": p.name,
        "Slug": p.slug,
        "Description": p.description,
        "Brand": p.brand,
        "Price": p.price,
        "Discount Price": p.discount_price,
        "Stock": p.stock,
        "Category": p.category.name if p.category else None,
        "Is Active": bool(p.is_active),
        "Is Featured": bool(p.is_featured),
        "Sizes": _join(p.sizes),
        "Colors": _join(p.colors),
        "Tags": _join(p.tags),
    } for p in products]
    return pd.DataFrame(rows, columns=COLUMNS)


def export_xlsx(target=None):
    """Write every product to `target` (path or buffer); returns a BytesIO when none given."""
    df = products_frame(Product.query.order_by(Product.id.asc()).all())
    output = target if target is not None else BytesIO()
    df.to_excel(output, index=False)
    if hasattr(output, "seek"):
        output.seek(0)
    return output


def _category_id(name, cache):
    if _blank(name):
        return None
    name = str(name).strip()
    if name not in cache:
        cat = Category.query.filter(Category.name == name).first()
        if not cat:
            cat = Category(name=name, slug=slugify(name))
            db.session.add(cat)
            db.session.flush()
        cache[name] = cat.id
    return cache[name]


def import_frame(df: pd.DataFrame) -> dict:
    """Upsert rows by SKU. Bad rows are reported, not fatal."""
    df = df.copy()
    df.columns = df.columns.astype(str).str.strip()
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ApiError(f"Thiếu cột bắt buộc: {', '.join(missing)}")

    created = updated = 0
    errors = []
    categories = {}
    for index, row in df.iterrows():
        line = int(index) + 2  # header is row 1
        sku = "" if _blank(row["SKU"]) else str(row["SKU"]).strip().upper()
        name = "" if _blank(row["Name"]) else str(row["Name"]).strip()
        if not sku or not name:
            errors.append({"row": line, "message": "Thiếu SKU hoặc tên sản phẩm"})
            continue

        def cell(col):
            return None if col not in df.columns or _blank(row[col]) else row[col]

        try:
            price = float(row["Price"])
            stock = int(row["Stock"])
            discount = cell("Discount Price")
            discount = float(discount) if discount is not None else None
        except (TypeError, ValueError):
            errors.append({"row": line, "message": "Giá, giá khuyến mãi hoặc số lượng không hợp lệ"})
            continue
        if price < 0 or stock < 0 or (discount is not None and discount < 0):
            errors.append({"row": line, "message": "Giá, giá khuyến mãi hoặc số lượng không hợp lệ"})
            continue
        if discount is not None and discount >= price:
            discount = None

        product = Product.query.filter_by(sku=sku).first()
        if product is None:
            product = Product(sku=sku)
            db.session.add(product)
            created += 1
        else:
            updated += 1
        product.name = name[:200]
        product.slug = slugify(cell("Slug") or name)
        product.description = str(cell("Description") or product.description or "")
        if cell("Brand") is not None:
            brand = brand_service.find_by_name(str(cell("Brand")))
            product.brand = brand.name if brand else str(cell("Brand")).strip()[:100]
            product.brand_id = brand.id if brand else None
        product.price = price
        product.discount_price = discount
        product.stock = stock
        product.category_id = _category_id(cell("Category"), categories) or product.category_id
        if cell("Is Active") is not None:
            product.is_active = parse_bool(cell("Is Active"))
        if cell("Is Featured") is not None:
            product.is_featured = parse_bool(cell("Is Featured"))
        for col, attr in (("Sizes", "sizes"), ("Colors", "colors"), ("Tags", "tags")):
            if col in df.columns:
                setattr(product, attr, _split(row[col]))

    db.session.flush()
    log.info("product import: %d created, %d updated, %d rejected", created, updated, len(errors))
    return {"created": created, "updated": updated, "errors": errors}


def import_xlsx(source) -> dict:
    try:
        df = pd.read_excel(source)
    except (ValueError, BadZipFile) as e:
        raise ApiError(f"Không đọc được file Excel: {e}")
    return import_frame(df)
