# sportstore/coupon/routes.py
from __future__ import annotations

from flask import request
from sqlalchemy import and_, or_

from . import bp
from .. import messages as msg
from ..errors import ApiError, NotFound
from ..extensions import db
from ..model import Coupon, CouponUsage
from ..services import coupon_service
from ..utils.api import ok
from ..utils.dates import utcnow
from ..utils.decorators import admin_required, current_user, login_required
from ..utils.pagination import apply_sort, page_args, paginate
from ..utils.parsing import parse_id_list
from ..utils.validators import require_number

SORT_COLUMNS = {
    "code": Coupon.code,
    "value": Coupon.value,
    "usageCount": Coupon.used_count,
    "startDate": Coupon.start_date,
    "endDate": Coupon.end_date,
    "createdAt": Coupon.created_at,
}


def _get_or_404(coupon_id) -> Coupon:
    c = db.session.get(Coupon, coupon_id)
    if not c:
        raise NotFound(msg.COUPON_NOT_FOUND)
    return c


def _status_filter(query, status, now):
    used_up = Coupon.used_count >= Coupon.usage_limit
    live = and_(Coupon.status == "active", Coupon.end_date >= now, ~used_up)
    if status == "inactive":
        return query.filter(Coupon.status == "inactive")
    if status == "expired":
        return query.filter(Coupon.status == "active", or_(Coupon.end_date < now, used_up))
    if status == "upcoming":
        return query.filter(live, Coupon.start_date > now)
    if status == "active":
        return query.filter(live, Coupon.start_date <= now)
    return query


def _apply_body():
    data = request.get_json(silent=True) or {}
    code = coupon_service.normalize_code(data.get("code"))
    if not code:
        raise ApiError("Vui lòng nhập mã giảm giá", data={"field": "code"})
    amount = require_number(data, "amount", "Giá trị đơn hàng", minimum=0)
    return code, amount


# ---- storefront ---------------------------------------------------------------

@bp.post("/validate")
def validate_coupon():
    code, amount = _apply_body()
    user = current_user(optional=True)
    coupon, discount = coupon_service.check_coupon(code, amount, user)
    return ok("Mã giảm giá hợp lệ", coupon_service.quote(coupon, amount, discount))


@bp.post("/apply")
@login_required
def apply_coupon(user):
    code, amount = _apply_body()
    coupon, discount = coupon_service.check_coupon(code, amount, user)
    return ok("Áp dụng mã giảm giá thành công", coupon_service.quote(coupon, amount, discount))


# ---- admin -------------------------------------------------------------------

@bp.get("/admin")
@admin_required
def list_coupons(user):
    args = request.args
    now = utcnow()
    query = Coupon.query
    search = (args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Coupon.code.ilike(like), Coupon.description.ilike(like)))
    query = _status_filter(query, (args.get("status") or "").strip().lower(), now)
    ctype = (args.get("type") or "").strip().lower()
    if ctype in coupon_service.COUPON_TYPES:
        query = query.filter(Coupon.type == ctype)

    query = apply_sort(query, SORT_COLUMNS, args.get("sort"), args.get("order"), Coupon.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách mã giảm giá thành công", {
        "coupons": [c.as_api(now) for c in items],
        "pagination": pagination,
    })


@bp.get("/admin/<int:coupon_id>")
@admin_required
def get_coupon(coupon_id, user):
    return ok("Lấy thông tin mã giảm giá thành công", _get_or_404(coupon_id).as_api())


@bp.post("/admin")
@admin_required
def create_coupon(user):
    data = request.get_json(silent=True) or {}
    c = coupon_service.create_coupon(data)
    db.session.commit()
    return ok("Tạo mã giảm giá thành công", c.as_api(), status_code=201)


@bp.put("/admin/<int:coupon_id>")
@admin_required
def update_coupon(coupon_id, user):
    c = _get_or_404(coupon_id)
    coupon_service.update_coupon(c, request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Cập nhật mã giảm giá thành công", c.as_api())


def _delete(c: Coupon):
    CouponUsage.query.filter_by(coupon_id=c.id).delete(synchronize_session=False)
    db.session.delete(c)


@bp.delete("/admin/<int:coupon_id>")
@admin_required
def delete_coupon(coupon_id, user):
    _delete(_get_or_404(coupon_id))
    db.session.commit()
    return ok("Xóa mã giảm giá thành công", {"_id": coupon_id})


@bp.delete("/admin/bulk-delete")
@admin_required
def bulk_delete_coupons(user):
    ids = parse_id_list((request.get_json(silent=True) or {}).get("couponIds"))
    if not ids:
        raise ApiError(msg.INVALID_DATA)
    coupons = Coupon.query.filter(Coupon.id.in_(ids)).all()
    for c in coupons:
        _delete(c)
    db.session.commit()
    return ok(f"Đã xóa {len(coupons)} mã giảm giá", {"deletedCount": len(coupons)})


@bp.put("/admin/<int:coupon_id>/pause")
@admin_required
def pause_coupon(coupon_id, user):
    c = coupon_service.pause_coupon(_get_or_404(coupon_id))
    db.session.commit()
    return ok("Đã tạm dừng mã giảm giá", c.as_api())


@bp.put("/admin/<int:coupon_id>/activate")
@admin_required
def activate_coupon(coupon_id, user):
    c = coupon_service.activate_coupon(_get_or_404(coupon_id))
    db.session.commit()
    return ok("Đã kích hoạt mã giảm giá", c.as_api())


@bp.post("/admin/update-expired")
@admin_required
def update_expired_coupons(user):
    count = coupon_service.update_expired()
    db.session.commit()
    return ok(f"Đã cập nhật {count} mã giảm giá hết hạn", {"updatedCount": count})
