from flask import request
from sqlalchemy import or_

from . import bp
from .. import messages as msg
from ..errors import ApiError, NotFound
from ..extensions import db
from ..model import User
from ..services import customer_service
from ..utils.api import ok
from ..utils.decorators import admin_required
from ..utils.pagination import apply_sort, page_args, paginate
from ..utils.parsing import parse_id_list

SORT_COLUMNS = {
    "createdAt": User.created_at,
    "name": User.name,
    "email": User.email,
    "totalSpent": User.total_spent,
}


def _get_or_404(user_id) -> User:
    u = db.session.get(User, user_id)
    if not u:
        raise NotFound(msg.USER_NOT_FOUND)
    return u


@bp.get("")
@admin_required
def list_users(user):
    args = request.args
    query = User.query
    q = (args.get("q") or "").strip()
    if q:
        like = f"%{q}%"
        query = query.filter(or_(User.email.ilike(like), User.name.ilike(like), User.phone.ilike(like)))
    for key, col in (("role", User.role), ("status", User.status)):
        value = (args.get(key) or "").strip().lower()
        if value:
            query = query.filter(col == value)
    query = apply_sort(query, SORT_COLUMNS, args.get("sort"), args.get("order"), User.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách người dùng thành công", {
        "users": [u.as_dict() for u in items],
        "pagination": pagination,
    })


@bp.get("/<int:user_id>")
@admin_required
def get_user(user_id, user):
    return ok("Lấy thông tin người dùng thành công", _get_or_404(user_id).as_dict())


@bp.post("")
@admin_required
def create_user(user):
    target = customer_service.create_user(request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Tạo người dùng thành công", target.as_dict(), status_code=201)


@bp.put("/<int:user_id>")
@admin_required
def update_user(user_id, user):
    target = customer_service.update_user(_get_or_404(user_id), request.get_json(silent=True) or {}, actor=user)
    db.session.commit()
    return ok("Cập nhật người dùng thành công", target.as_dict())


@bp.delete("/<int:user_id>")
@admin_required
def delete_user(user_id, user):
    customer_service.delete_user(_get_or_404(user_id), actor=user)
    db.session.commit()
    return ok("Xóa người dùng thành công", {"_id": user_id})


@bp.post("/bulk-delete")
@admin_required
def bulk_delete(user):
    """Deletes what it can; refusals are returned per id."""
    ids = parse_id_list((request.get_json(silent=True) or {}).get("userIds"))
    if not ids:
        raise ApiError(msg.INVALID_DATA)
    deleted, skipped = [], []
    for target in User.query.filter(User.id.in_(ids)).all():
        try:
            customer_service.delete_user(target, actor=user)
        except ApiError as e:
            skipped.append({"_id": target.id, "message": e.message})
        else:
            deleted.append(target.id)
    db.session.commit()
    return ok(f"Đã xóa {len(deleted)} người dùng", {"deleted": deleted, "skipped": skipped})


@bp.put("/<int:user_id>/reset-password")
@admin_required
def reset_password(user_id, user):
    customer_service.reset_password(_get_or_404(user_id), request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Đặt lại mật khẩu thành công")
