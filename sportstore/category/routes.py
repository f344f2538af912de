import re

from flask import request
from sqlalchemy import func

from . import bp
from .. import messages as msg
from ..errors import ApiError, Conflict, NotFound, ValidationError
from ..extensions import db
from ..model import Category, Product
from ..utils.api import ok
from ..utils.decorators import admin_required
from ..utils.parsing import parse_bool, parse_int, parse_opt_bool, slugify
from ..utils.validators import optional_str, require_str

SLUG_RE = re.compile(r"^[a-z0-9-]+$")


def _get_or_404(cid) -> Category:
    c = db.session.get(Category, cid)
    if not c:
        raise NotFound(msg.CATEGORY_NOT_FOUND)
    return c


def _taken(name, slug, exclude_id=None):
    q = Category.query.filter((func.lower(Category.name) == name.lower()) | (Category.slug == slug))
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def _clean_slug(data, name):
    slug = (data.get("slug") or "").strip().lower() or slugify(name)
    if not SLUG_RE.match(slug):
        raise ValidationError("Slug chỉ được chứa chữ thường, số và dấu gạch ngang", field="slug")
    return slug


@bp.get("")
def list_categories():
    """Active categories for the storefront; `all=true` also lists hidden ones."""
    q = Category.query
    if not parse_bool(request.args.get("all")):
        q = q.filter(Category.is_active.is_(True))
    items = q.order_by(Category.sort_order.asc(), Category.name.asc()).all()
    return ok("Lấy danh sách danh mục thành công", [c.as_dict(with_count=True) for c in items])


@bp.get("/<int:cid>")
def get_category(cid):
    return ok("Lấy thông tin danh mục thành công", _get_or_404(cid).as_dict(with_count=True))


@bp.post("")
@admin_required
def create_category(user):
    data = request.get_json(silent=True) or {}
    name = require_str(data, "name", "Tên danh mục", max_len=100)
    slug = _clean_slug(data, name)
    if _taken(name, slug):
        raise Conflict(msg.CATEGORY_EXISTS)
    c = Category(
        name=name,
        slug=slug,
        description=optional_str(data, "description", "Mô tả", max_len=500),
        image=data.get("image") or None,
        is_active=parse_bool(data.get("isActive"), True),
        sort_order=parse_int(data.get("order"), 0),
    )
    db.session.add(c)
    db.session.commit()
    return ok("Tạo danh mục thành công", c.as_dict(), status_code=201)


@bp.put("/<int:cid>")
@admin_required
def update_category(cid, user):
    c = _get_or_404(cid)
    data = request.get_json(silent=True) or {}
    name = require_str(data, "name", "Tên danh mục", max_len=100) if "name" in data else c.name
    slug = _clean_slug(data, name) if ("slug" in data or "name" in data) else c.slug
    if _taken(name, slug, exclude_id=c.id):
        raise Conflict(msg.CATEGORY_EXISTS)
    c.name, c.slug = name, slug
    if "description" in data:
        c.description = optional_str(data, "description", "Mô tả", max_len=500)
    if "image" in data:
        c.image = data.get("image") or None
    active = parse_opt_bool(data.get("isActive"))
    if active is not None:
        c.is_active = active
    if "order" in data:
        c.sort_order = parse_int(data.get("order"), c.sort_order or 0)
    db.session.commit()
    return ok("Cập nhật danh mục thành công", c.as_dict())


@bp.delete("/<int:cid>")
@admin_required
def delete_category(cid, user):
    c = _get_or_404(cid)
    if db.session.query(Product.query.filter_by(category_id=cid).exists()).scalar():
        raise ApiError(msg.CATEGORY_IN_USE, status_code=409)
    db.session.delete(c)
    db.session.commit()
    return ok("Xóa danh mục thành công", {"_id": cid})
