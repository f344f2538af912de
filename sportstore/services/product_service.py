# sportstore/services/product_service.py
from __future__ import annotations

import logging

from .. import messages as msg
from ..errors import Conflict, NotFound, ValidationError
from ..extensions import db
from ..model import Brand, CartItem, Category, Favorite, OrderItem, Product, ProductImage, Question, Review
from ..utils.parsing import parse_bool, parse_opt_int, slugify
from ..utils.validators import optional_number, require_number, require_str
from . import brand_service

log = logging.getLogger(__name__)

_LIST_FIELDS = ("sizes", "colors", "tags")


def _sku_taken(sku, exclude_id=None):
    q = Product.query.filter(Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def _category_id(raw):
    cid = parse_opt_int(raw)
    if cid is None:
        return None
    if not db.session.get(Category, cid):
        raise NotFound(msg.CATEGORY_NOT_FOUND)
    return cid


def _brand_fields(data):
    """`brandId` links a managed brand; a bare `brand` name links one when it exists."""
    if "brandId" in data:
        bid = parse_opt_int(data.get("brandId"))
        if bid is None:
            return {"brand_id": None, "brand": None}
        brand = db.session.get(Brand, bid)
        if not brand:
            raise NotFound(msg.BRAND_NOT_FOUND)
    else:
        name = (data.get("brand") or "").strip()[:100] or None
        brand = brand_service.find_by_name(name)
        if brand is None:
            return {"brand_id": None, "brand": name}
    return {"brand_id": brand.id, "brand": brand.name}


def _images(raw):
    """Accepts ["url", ...] or [{"url"|"imageUrl", "main"}]; first image is main unless one says so."""
    out = []
    for item in raw or []:
        if isinstance(item, str):
            url, main = item, False
        elif isinstance(item, dict):
            url, main = item.get("imageUrl") or item.get("url"), parse_bool(item.get("main"))
        else:
            continue
        if url:
            out.append(ProductImage(image_url=str(url), main=main))
    if out and not any(i.main for i in out):
        out[0].main = True
    return out


def clean_product_payload(data: dict, partial: bool = False) -> dict:
    out = {}
    if not partial or "name" in data:
        out["name"] = require_str(data, "name", "Tên sản phẩm", max_len=200)
    if not partial or "description" in data:
        out["description"] = require_str(data, "description", "Mô tả", max_len=2000)
    if not partial or "sku" in data:
        out["sku"] = require_str(data, "sku", "Mã SKU", max_len=50).upper()
    if not partial or "price" in data:
        out["price"] = require_number(data, "price", "Giá", minimum=0)
    if not partial or "stock" in data:
        out["stock"] = int(require_number(data, "stock", "Số lượng tồn kho", minimum=0, integer=True))
    if "discountPrice" in data:
        out["discount_price"] = optional_number(data, "discountPrice", "Giá khuyến mãi", minimum=0)
    if "brandId" in data or "brand" in data:
        out.update(_brand_fields(data))
    if "categoryId" in data or "category" in data:
        out["category_id"] = _category_id(data.get("categoryId", data.get("category")))
    if "isActive" in data:
        out["is_active"] = parse_bool(data["isActive"])
    if "isFeatured" in data:
        out["is_featured"] = parse_bool(data["isFeatured"])
    for key in _LIST_FIELDS:
        if key in data:
            out[key] = [str(v).strip() for v in (data.get(key) or []) if str(v).strip()]
    if "specifications" in data:
        specs = data.get("specifications") or {}
        if not isinstance(specs, dict):
            raise ValidationError(msg.INVALID_DATA, field="specifications")
        out["specifications"] = specs
    return out


def _check_discount(price, discount_price):
    if discount_price is not None and price is not None and discount_price >= price:
        raise ValidationError("Giá khuyến mãi phải nhỏ hơn giá gốc", field="discountPrice")


def create_product(data: dict) -> Product:
    fields = clean_product_payload(data)
    _check_discount(fields["price"], fields.get("discount_price"))
    if _sku_taken(fields["sku"]):
        raise Conflict(msg.SKU_EXISTS, data={"field": "sku"})
    product = Product(slug=slugify(data.get("slug") or fields["name"]), **fields)
    product.images = _images(data.get("images"))
    db.session.add(product)
    db.session.flush()
    log.info("product %s (%s) created", product.id, product.sku)
    return product


def update_product(product: Product, data: dict) -> Product:
    fields = clean_product_payload(data, partial=True)
    _check_discount(fields.get("price", product.price), fields.get("discount_price", product.discount_price))
    if "sku" in fields and fields["sku"] != product.sku and _sku_taken(fields["sku"], product.id):
        raise Conflict(msg.SKU_EXISTS, data={"field": "sku"})
    for attr, value in fields.items():
        setattr(product, attr, value)
    if "slug" in data or "name" in fields:
        product.slug = slugify(data.get("slug") or product.name)
    if "images" in data:
        product.images.clear()
        product.images.extend(_images(data.get("images")))
    return product


def delete_product(product: Product):
    """Remove the product and everything hanging off it; order lines keep their snapshot."""
    pid = product.id
    CartItem.query.filter_by(product_id=pid).delete(synchronize_session=False)
    Favorite.query.filter_by(product_id=pid).delete(synchronize_session=False)
    Review.query.filter_by(product_id=pid).delete(synchronize_session=False)
    Question.query.filter_by(product_id=pid).delete(synchronize_session=False)
    OrderItem.query.filter_by(product_id=pid).update({"product_id": None}, synchronize_session=False)
    db.session.delete(product)
    log.info("product %s deleted", pid)


def get_by_sku(sku) -> Product:
    product = Product.query.filter(Product.sku == (sku or "").strip().upper()).first()
    if not product:
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    return product
