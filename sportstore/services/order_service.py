# sportstore/services/order_service.py
"""Checkout and the order status flow.

Orders move forward one step at a time::

    pending -> processing -> shipped -> delivered

and can be cancelled while still ``pending`` or ``processing``. Cancelling
puts the stock back and frees the coupon use; delivering books the revenue
(sold counts, the customer's total spent, COD payment).
"""
from __future__ import annotations

import logging
import secrets
from decimal import Decimal

from flask import current_app

from .. import messages as msg
from ..errors import ApiError, Forbidden, ValidationError
from ..extensions import db
from ..model import Cart, Coupon, Order, OrderItem, Product, User
from ..utils.dates import iso, utcnow
from ..utils.money import D, round_money
from ..utils.parsing import parse_int
from ..utils.validators import check_phone, require_str
from . import coupon_service

log = logging.getLogger(__name__)

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_METHODS = ("cod", "banking", "momo", "vnpay", "stripe")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")

STATUS_LABELS = {
    "pending": "Chờ xác nhận",
    "processing": "Đã xác nhận và đang chuẩn bị hàng",
    "shipped": "Đang giao hàng",
    "delivered": "Đã giao hàng",
    "cancelled": "Đã hủy",
}

_FLOW = ("pending", "processing", "shipped", "delivered")
_CANCELLABLE = ("pending", "processing")


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS["pending"])


def next_status(status: str) -> str | None:
    if status not in _FLOW or status == _FLOW[-1]:
        return None
    return _FLOW[_FLOW.index(status) + 1]


def can_transition(current: str, target: str) -> bool:
    if target == "cancelled":
        return current in _CANCELLABLE
    return next_status(current) == target


def _gen_short_id():
    return f"ORD-{utcnow().strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"


def clean_shipping_address(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Địa chỉ giao hàng là bắt buộc", field="shippingAddress")
    address = {
        "fullName": require_str(data, "fullName", "Họ tên người nhận", max_len=100),
        "phone": check_phone(data.get("phone")),
        "address": require_str(data, "address", "Địa chỉ", max_len=200),
        "city": require_str(data, "city", "Thành phố", max_len=100),
        "district": require_str(data, "district", "Quận/huyện", max_len=100),
        "ward": require_str(data, "ward", "Phường/xã", max_len=100),
    }
    return address


def shipping_fee_for(subtotal: Decimal) -> Decimal:
    cfg = current_app.config
    if subtotal >= D(cfg["FREE_SHIPPING_THRESHOLD"]):
        return D(0)
    return D(cfg["SHIPPING_FEE"])


def _requested_lines(user: User, data: dict):
    """[(product_id, qty, size, color)] from the body or, without items, the cart."""
    items = data.get("items")
    if items:
        lines = []
        for raw in items:
            if not isinstance(raw, dict):
                raise ValidationError(msg.INVALID_DATA, field="items")
            qty = parse_int(raw.get("quantity"), 0)
            if qty < 1:
                raise ValidationError("Số lượng phải lớn hơn 0", field="items")
            lines.append((parse_int(raw.get("productId"), 0), qty, raw.get("size") or None, raw.get("color") or None))
        return lines
    cart = Cart.query.filter_by(user_id=user.id).first()
    if not cart or not cart.items:
        raise ApiError(msg.CART_EMPTY, status_code=422)
    return [(i.product_id, i.quantity, i.size, i.color) for i in cart.items]


def _history_entry(status, actor: User | None, note=None):
    return {"status": status, "at": iso(utcnow()), "by": actor.id if actor else None, "note": note}


def create_order(user: User, data: dict) -> Order:
    address = clean_shipping_address(data.get("shippingAddress"))
    method = (data.get("paymentMethod") or "cod").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError("Phương thức thanh toán không hợp lệ", field="paymentMethod")
    lines = _requested_lines(user, data)

    # Lock product rows to avoid oversell
    ids = {pid for pid, *_ in lines}
    products = db.session.query(Product).filter(Product.id.in_(ids)).with_for_update().all()
    pmap = {p.id: p for p in products}

    subtotal = D(0)
    order_items = []
    wanted = {}
    for pid, qty, size, color in lines:
        p = pmap.get(pid)
        if not p or not p.is_active:
            raise ApiError(msg.PRODUCT_UNAVAILABLE, status_code=409, data={"productId": pid})
        wanted[pid] = wanted.get(pid, 0) + qty
        if wanted[pid] > (p.stock or 0):
            raise ApiError(msg.INSUFFICIENT_STOCK.format(name=p.name), status_code=409, data={"productId": pid})
        unit = round_money(p.effective_price)
        line_total = round_money(unit * qty)
        subtotal += line_total
        order_items.append(OrderItem(
            product_id=p.id, sku=p.sku, name=p.name, image_url=p.main_image,
            size=size, color=color, unit_price=unit, quantity=qty, line_total=line_total,
        ))
    subtotal = round_money(subtotal)

    coupon = None
    discount = D(0)
    if data.get("couponCode"):
        coupon, discount = coupon_service.check_coupon(data["couponCode"], subtotal, user, lock=True)

    fee = shipping_fee_for(subtotal)
    order = Order(
        short_id=_gen_short_id(),
        user_id=user.id,
        status="pending",
        payment_method=method,
        payment_status="pending",
        shipping_address=address,
        note=(data.get("note") or "").strip()[:500] or None,
        subtotal=subtotal,
        shipping_fee=fee,
        discount=discount,
        total=round_money(max(D(0), subtotal - discount) + fee),
        coupon_code=coupon.code if coupon else None,
        status_history=[_history_entry("pending", user)],
        items=order_items,
    )
    db.session.add(order)
    db.session.flush()

    for pid, qty in wanted.items():
        pmap[pid].stock = (pmap[pid].stock or 0) - qty
    if coupon:
        coupon_service.record_usage(coupon, user, order)

    # purchased lines leave the cart
    cart = Cart.query.filter_by(user_id=user.id).first()
    if cart:
        for item in [i for i in cart.items if i.product_id in wanted]:
            cart.items.remove(item)

    log.info("order %s created by user %s total=%s", order.short_id, user.id, order.total)
    return order


def _restock(order: Order):
    for item in order.items:
        if item.product_id is None:
            continue
        p = db.session.get(Product, item.product_id)
        if p:
            p.stock = (p.stock or 0) + item.quantity


def _book_delivery(order: Order):
    if order.payment_method == "cod":
        order.payment_status = "paid"
    if order.user:
        order.user.total_spent = float(D(order.user.total_spent) + D(order.total))
    for item in order.items:
        p = db.session.get(Product, item.product_id) if item.product_id else None
        if p:
            p.sold_count = (p.sold_count or 0) + item.quantity


def update_status(order: Order, target: str, actor: User | None = None, reason: str | None = None) -> Order:
    target = (target or "").strip().lower()
    if target not in ORDER_STATUSES:
        raise ValidationError("Trạng thái đơn hàng không hợp lệ", field="status")
    if not can_transition(order.status, target):
        raise ApiError(msg.ORDER_INVALID_TRANSITION.format(
            current=status_label(order.status), target=status_label(target)))

    previous = order.status
    order.status = target
    if target == "cancelled":
        order.cancel_reason = (reason or "").strip()[:500] or None
        _restock(order)
        if order.coupon_code:
            coupon = Coupon.query.filter_by(code=order.coupon_code).first()
            if coupon:
                coupon_service.release_usage(coupon, order)
        if order.payment_status == "paid":
            order.payment_status = "refunded"
    elif target == "delivered":
        _book_delivery(order)

    order.status_history = [*(order.status_history or []), _history_entry(target, actor, reason)]
    log.info("order %s: %s -> %s (by %s)", order.short_id, previous, target, actor.id if actor else None)
    return order


def cancel_by_owner(order: Order, user: User, reason: str | None = None) -> Order:
    if order.user_id != user.id:
        raise Forbidden(msg.FORBIDDEN)
    if order.status != "pending":
        raise ApiError(msg.ORDER_CANNOT_CANCEL)
    return update_status(order, "cancelled", actor=user, reason=reason)
