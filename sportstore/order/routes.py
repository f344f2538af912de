# sportstore/order/routes.py
from datetime import datetime, timedelta

from flask import request
from sqlalchemy import or_

from . import bp
from .. import messages as msg
from ..errors import NotFound, ValidationError
from ..extensions import db
from ..model import Order, User
from ..services import order_service
from ..utils.api import ok
from ..utils.decorators import admin_required, login_required
from ..utils.pagination import apply_sort, page_args, paginate

SORT_COLUMNS = {
    "createdAt": Order.created_at,
    "updatedAt": Order.updated_at,
    "totalAmount": Order.total,
}


def _get_or_404(order_id) -> Order:
    o = db.session.get(Order, order_id)
    if not o:
        raise NotFound(msg.ORDER_NOT_FOUND)
    return o


def _own_or_404(order_id, user) -> Order:
    o = _get_or_404(order_id)
    if o.user_id != user.id:
        raise NotFound(msg.ORDER_NOT_FOUND)
    return o


def _day(value, key):
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError("Ngày không hợp lệ (YYYY-MM-DD)", field=key)


@bp.post("")
@login_required
def create_order(user):
    data = request.get_json(silent=True) or {}
    order = order_service.create_order(user, data)
    db.session.commit()
    return ok(msg.ORDER_CREATED, order.as_api(), status_code=201)


@bp.get("/my-orders")
@login_required
def my_orders(user):
    query = Order.query.filter(Order.user_id == user.id)
    status = (request.args.get("status") or "").strip().lower()
    if status in order_service.ORDER_STATUSES:
        query = query.filter(Order.status == status)
    page, limit = page_args()
    items, pagination = paginate(query.order_by(Order.created_at.desc(), Order.id.desc()), page, limit)
    return ok("Lấy danh sách đơn hàng thành công", {
        "orders": [o.as_api() for o in items],
        "pagination": pagination,
    })


@bp.get("/my-orders/<int:order_id>")
@login_required
def my_order(order_id, user):
    return ok("Lấy thông tin đơn hàng thành công", _own_or_404(order_id, user).as_api())


@bp.put("/my-orders/<int:order_id>/cancel")
@login_required
def cancel_my_order(order_id, user):
    order = _own_or_404(order_id, user)
    reason = (request.get_json(silent=True) or {}).get("reason")
    order_service.cancel_by_owner(order, user, reason)
    db.session.commit()
    return ok(msg.ORDER_CANCELLED, order.as_api())


# ---------- admin ----------

@bp.get("/admin")
@admin_required
def admin_list(user):
    """
    Query params:
      keyword        -> order code, customer email or name
      status         -> pending|processing|shipped|delivered|cancelled
      paymentMethod  -> cod|banking|momo|vnpay|stripe
      startDate      -> YYYY-MM-DD
      endDate        -> YYYY-MM-DD (inclusive)
      sort           -> createdAt|updatedAt|totalAmount; order asc|desc
    """
    args = request.args
    query = Order.query.join(User, User.id == Order.user_id)

    keyword = (args.get("keyword") or "").strip()
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(or_(Order.short_id.ilike(like), User.email.ilike(like), User.name.ilike(like)))
    status = (args.get("status") or "").strip().lower()
    if status:
        query = query.filter(Order.status == status)
    method = (args.get("paymentMethod") or "").strip().lower()
    if method:
        query = query.filter(Order.payment_method == method)
    if args.get("startDate"):
        query = query.filter(Order.created_at >= _day(args["startDate"], "startDate"))
    if args.get("endDate"):
        # make end inclusive for the whole day
        query = query.filter(Order.created_at < _day(args["endDate"], "endDate") + timedelta(days=1))

    query = apply_sort(query, SORT_COLUMNS, args.get("sort"), args.get("order"), Order.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách đơn hàng thành công", {
        "orders": [o.as_api() for o in items],
        "pagination": pagination,
    })


@bp.get("/<int:order_id>")
@admin_required
def get_order(order_id, user):
    return ok("Lấy thông tin đơn hàng thành công", _get_or_404(order_id).as_api())


@bp.put("/<int:order_id>/status")
@admin_required
def update_status(order_id, user):
    order = _get_or_404(order_id)
    data = request.get_json(silent=True) or {}
    order_service.update_status(order, data.get("status"), actor=user, reason=data.get("reason"))
    db.session.commit()
    return ok(msg.ORDER_STATUS_UPDATED, order.as_api())
