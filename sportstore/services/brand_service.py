# sportstore/services/brand_service.py
from __future__ import annotations

import logging

from sqlalchemy import func

from .. import messages as msg
from ..errors import ApiError, Conflict, ValidationError
from ..extensions import db
from ..model import BRAND_FLAGS, Brand, Product
from ..utils.parsing import parse_bool, parse_opt_bool, slugify
from ..utils.validators import optional_number, optional_str, require_str

log = logging.getLogger(__name__)

BRAND_STATUSES = ("active", "inactive")
MAX_FLAGS = 2

# request key -> column
_FLAG_KEYS = {"isPremium": "is_premium", "isTrending": "is_trending", "isNew": "is_new", "featured": "featured"}


def find_by_name(name) -> Brand | None:
    name = (name or "").strip()
    if not name:
        return None
    return Brand.query.filter(func.lower(Brand.name) == name.lower()).first()


def _taken(name, slug, exclude_id=None):
    q = Brand.query.filter((func.lower(Brand.name) == name.lower()) | (Brand.slug == slug))
    if exclude_id is not None:
        q = q.filter(Brand.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def clean_brand_payload(data: dict, partial: bool = False) -> dict:
    out = {}
    if not partial or "name" in data:
        out["name"] = require_str(data, "name", "Tên thương hiệu", max_len=100)
    if not partial or "description" in data:
        out["description"] = optional_str(data, "description", "Mô tả", max_len=1000) or ""
    if "logo" in data:
        out["logo"] = (data.get("logo") or "").strip() or None
    if "rating" in data:
        out["rating"] = optional_number(data, "rating", "Đánh giá", minimum=0, maximum=5) or 0.0
    if "features" in data:
        features = data.get("features") or []
        if not isinstance(features, list):
            raise ValidationError(msg.INVALID_DATA, field="features")
        out["features"] = list(dict.fromkeys(str(f).strip() for f in features if str(f).strip()))
    for key, attr in _FLAG_KEYS.items():
        if key in data:
            out[attr] = parse_bool(data[key])
    if "status" in data:
        status = (data.get("status") or "").strip().lower()
        if status not in BRAND_STATUSES:
            raise ValidationError(msg.INVALID_DATA, field="status")
        out["status"] = status
    return out


def _check_flags(brand: Brand):
    if sum(bool(getattr(brand, attr)) for attr in BRAND_FLAGS) > MAX_FLAGS:
        raise ValidationError(msg.BRAND_TOO_MANY_FLAGS, field="flags")


def create_brand(data: dict) -> Brand:
    fields = clean_brand_payload(data)
    slug = slugify(fields["name"])
    if _taken(fields["name"], slug):
        raise Conflict(msg.BRAND_EXISTS, data={"field": "name"})
    brand = Brand(slug=slug, **fields)
    _check_flags(brand)
    db.session.add(brand)
    db.session.flush()
    log.info("brand %s (%s) created", brand.id, brand.name)
    return brand


def update_brand(brand: Brand, data: dict) -> Brand:
    fields = clean_brand_payload(data, partial=True)
    renamed = "name" in fields and fields["name"] != brand.name
    if renamed:
        slug = slugify(fields["name"])
        if _taken(fields["name"], slug, exclude_id=brand.id):
            raise Conflict(msg.BRAND_EXISTS, data={"field": "name"})
        brand.slug = slug
    for attr, value in fields.items():
        setattr(brand, attr, value)
    _check_flags(brand)
    if renamed:
        Product.query.filter_by(brand_id=brand.id).update({"brand": brand.name}, synchronize_session=False)
    return brand


def toggle_status(brand: Brand) -> Brand:
    brand.status = "inactive" if brand.status == "active" else "active"
    return brand


def delete_brand(brand: Brand):
    if db.session.query(Product.query.filter_by(brand_id=brand.id).exists()).scalar():
        raise ApiError(msg.BRAND_IN_USE, status_code=409)
    db.session.delete(brand)
    log.info("brand %s deleted", brand.id)


def stats() -> dict:
    by_status = dict(db.session.query(Brand.status, func.count(Brand.id)).group_by(Brand.status).all())

    def flagged(col):
        return Brand.query.filter(col.is_(True)).count()

    return {
        "total": sum(by_status.values()),
        "active": int(by_status.get("active", 0)),
        "inactive": int(by_status.get("inactive", 0)),
        "premium": flagged(Brand.is_premium),
        "trending": flagged(Brand.is_trending),
        "new": flagged(Brand.is_new),
        "featured": flagged(Brand.featured),
        "totalProducts": Product.query.filter(Product.brand_id.isnot(None)).count(),
    }


def featured_filter(query, raw):
    featured = parse_opt_bool(raw)
    if featured is None:
        return query
    return query.filter(Brand.featured.is_(featured))
