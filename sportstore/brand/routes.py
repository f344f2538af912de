from flask import request
from sqlalchemy import or_

from . import bp
from .. import messages as msg
from ..errors import ApiError, NotFound
from ..extensions import db
from ..model import Brand
from ..services import brand_service
from ..utils.api import ok
from ..utils.decorators import admin_required
from ..utils.pagination import apply_sort, page_args, paginate
from ..utils.parsing import parse_id_list

SORT_COLUMNS = {
    "name": Brand.name,
    "rating": Brand.rating,
    "createdAt": Brand.created_at,
    "updatedAt": Brand.updated_at,
}


def _get_or_404(brand_id) -> Brand:
    b = db.session.get(Brand, brand_id)
    if not b:
        raise NotFound(msg.BRAND_NOT_FOUND)
    return b


@bp.get("")
@admin_required
def list_brands(user):
    args = request.args
    query = Brand.query
    search = (args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Brand.name.ilike(like), Brand.description.ilike(like)))
    status = (args.get("status") or "").strip().lower()
    if status in brand_service.BRAND_STATUSES:
        query = query.filter(Brand.status == status)
    query = brand_service.featured_filter(query, args.get("featured"))

    query = apply_sort(query, SORT_COLUMNS, args.get("sortBy"), args.get("sortOrder"), Brand.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách thương hiệu thành công", {
        "brands": [b.as_api() for b in items],
        "pagination": pagination,
    })


@bp.get("/stats")
@admin_required
def brand_stats(user):
    return ok("Lấy thống kê thương hiệu thành công", brand_service.stats())


@bp.get("/<int:brand_id>")
@admin_required
def get_brand(brand_id, user):
    return ok("Lấy thông tin thương hiệu thành công", _get_or_404(brand_id).as_api())


@bp.post("")
@admin_required
def create_brand(user):
    b = brand_service.create_brand(request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Tạo thương hiệu thành công", b.as_api(), status_code=201)


@bp.put("/<int:brand_id>")
@admin_required
def update_brand(brand_id, user):
    b = brand_service.update_brand(_get_or_404(brand_id), request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Cập nhật thương hiệu thành công", b.as_api())


@bp.patch("/<int:brand_id>/toggle-status")
@admin_required
def toggle_status(brand_id, user):
    b = brand_service.toggle_status(_get_or_404(brand_id))
    db.session.commit()
    return ok("Cập nhật trạng thái thương hiệu thành công", b.as_api())


@bp.delete("/<int:brand_id>")
@admin_required
def delete_brand(brand_id, user):
    brand_service.delete_brand(_get_or_404(brand_id))
    db.session.commit()
    return ok("Xóa thương hiệu thành công", {"_id": brand_id})


@bp.delete("/bulk-delete")
@admin_required
def bulk_delete(user):
    """Brands that still have products are skipped and reported."""
    ids = parse_id_list((request.get_json(silent=True) or {}).get("ids"))
    if not ids:
        raise ApiError(msg.INVALID_DATA)
    deleted, skipped = [], []
    for b in Brand.query.filter(Brand.id.in_(ids)).all():
        try:
            brand_service.delete_brand(b)
        except ApiError as e:
            skipped.append({"_id": b.id, "message": e.message})
        else:
            deleted.append(b.id)
    db.session.commit()
    return ok(f"Đã xóa {len(deleted)} thương hiệu", {"deleted": deleted, "skipped": skipped})
