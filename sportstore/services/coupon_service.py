# sportstore/services/coupon_service.py
from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from .. import messages as msg
from ..errors import ApiError, Conflict, NotFound, ValidationError
from ..extensions import db
from ..model import Coupon, CouponUsage, Order, User
from ..utils.dates import parse_iso8601, utcnow
from ..utils.money import D, format_price, round_money
from ..utils.validators import optional_number, require_number

log = logging.getLogger(__name__)

CODE_RE = re.compile(r"^[A-Z0-9_-]{3,20}$")
COUPON_TYPES = ("percentage", "fixed")
ADMIN_STATUSES = ("active", "inactive")

# payload key -> (attribute, label, kwargs for the number check)
_NUMBER_FIELDS = {
    "value": ("value", "Giá trị giảm giá", {"minimum": 0}),
    "usageLimit": ("usage_limit", "Giới hạn sử dụng", {"minimum": 1, "integer": True}),
    "userLimit": ("user_limit", "Giới hạn sử dụng trên mỗi user", {"minimum": 1, "integer": True}),
    "minimumPurchaseAmount": ("minimum_purchase_amount", "Số tiền tối thiểu", {"minimum": 0}),
    "maxDiscount": ("max_discount", "Giá trị giảm giá tối đa", {"minimum": 0}),
}
_REQUIRED_ON_CREATE = ("type", "value", "usageLimit", "userLimit", "startDate", "endDate")


def normalize_code(code) -> str:
    return (code or "").strip().upper()


def _clean_code(raw) -> str:
    code = normalize_code(raw)
    if not CODE_RE.match(code):
        raise ValidationError(msg.COUPON_CODE_FORMAT, field="code")
    return code


def _clean_date(data, key, label):
    raw = data.get(key)
    if not raw:
        raise ValidationError(f"Vui lòng chọn {label}", field=key)
    dt = parse_iso8601(raw)
    if dt is None:
        raise ValidationError(f"{label.capitalize()} không hợp lệ", field=key)
    return dt


def clean_coupon_payload(data: dict, partial: bool = False) -> dict:
    """Validate a create/update body and return model attributes.

    With ``partial`` only the keys present are checked; cross-field rules
    are checked by :func:`check_coupon_rules` on the merged record.
    """
    out = {}
    if not partial:
        missing = [k for k in _REQUIRED_ON_CREATE if data.get(k) in (None, "")]
        if missing:
            raise ValidationError(f"{msg.INVALID_DATA}: {', '.join(missing)}", field=missing[0])

    if "code" in data or not partial:
        out["code"] = _clean_code(data.get("code"))
    if "type" in data:
        ctype = (data.get("type") or "").strip().lower()
        if ctype not in COUPON_TYPES:
            raise ValidationError("Vui lòng chọn loại giảm giá", field="type")
        out["type"] = ctype
    for key, (attr, label, kw) in _NUMBER_FIELDS.items():
        if key not in data:
            continue
        if key == "maxDiscount":
            out[attr] = optional_number(data, key, label, **kw)
        elif key == "minimumPurchaseAmount" and data.get(key) in (None, ""):
            out[attr] = 0.0
        else:
            out[attr] = require_number(data, key, label, **kw)
    if "startDate" in data:
        out["start_date"] = _clean_date(data, "startDate", "ngày bắt đầu")
    if "endDate" in data:
        out["end_date"] = _clean_date(data, "endDate", "ngày kết thúc")
    if "description" in data:
        out["description"] = (data.get("description") or "").strip()[:500] or None
    if "status" in data and data.get("status"):
        status = str(data["status"]).strip().lower()
        if status not in ADMIN_STATUSES:
            raise ValidationError(msg.INVALID_DATA, field="status")
        out["status"] = status
    return out


def check_coupon_rules(ctype, value, start_date, end_date):
    if ctype == "percentage" and value is not None and value > 100:
        raise ValidationError(msg.COUPON_PERCENT_RANGE, field="value")
    if start_date and end_date and not end_date > start_date:
        raise ValidationError(msg.COUPON_DATE_ORDER, field="endDate")


def _code_taken(code, exclude_id=None):
    q = Coupon.query.filter(func.upper(Coupon.code) == code)
    if exclude_id is not None:
        q = q.filter(Coupon.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def create_coupon(data: dict) -> Coupon:
    fields = clean_coupon_payload(data)
    check_coupon_rules(fields["type"], fields["value"], fields["start_date"], fields["end_date"])
    if _code_taken(fields["code"]):
        raise Conflict(msg.COUPON_EXISTS)
    fields.setdefault("minimum_purchase_amount", 0.0)
    c = Coupon(**fields)
    db.session.add(c)
    db.session.flush()
    log.info("coupon %s created", c.code)
    return c


def update_coupon(coupon: Coupon, data: dict) -> Coupon:
    fields = clean_coupon_payload(data, partial=True)
    check_coupon_rules(
        fields.get("type", coupon.type),
        fields.get("value", coupon.value),
        fields.get("start_date", coupon.start_date),
        fields.get("end_date", coupon.end_date),
    )
    if "code" in fields and fields["code"] != coupon.code and _code_taken(fields["code"], coupon.id):
        raise Conflict(msg.COUPON_EXISTS)
    for attr, value in fields.items():
        setattr(coupon, attr, value)
    return coupon


def pause_coupon(coupon: Coupon) -> Coupon:
    coupon.status = "inactive"
    return coupon


def activate_coupon(coupon: Coupon, now: datetime | None = None) -> Coupon:
    now = now or utcnow()
    if coupon.end_date and now > coupon.end_date:
        raise ApiError(msg.COUPON_EXPIRED, status_code=400)
    if coupon.is_exhausted():
        raise ApiError(msg.COUPON_EXHAUSTED, status_code=400)
    coupon.status = "active"
    return coupon


def update_expired(now: datetime | None = None) -> int:
    """Flip every coupon past its end date (or out of uses) to inactive."""
    now = now or utcnow()
    count = 0
    for c in Coupon.query.filter(Coupon.status == "active").all():
        if c.effective_status(now) == "expired":
            c.status = "inactive"
            count += 1
    if count:
        log.info("marked %d expired coupons inactive", count)
    return count


# ---- applying ---------------------------------------------------------------

def compute_discount(coupon: Coupon, amount) -> Decimal:
    base = D(amount)
    if base <= 0:
        return D(0)
    if coupon.type == "percentage":
        disc = round_money(base * D(min(coupon.value, 100)) / D(100))
        if coupon.max_discount:
            disc = min(disc, D(coupon.max_discount))
    else:
        disc = round_money(D(coupon.value))
    return min(disc, base)


def user_usage_count(coupon: Coupon, user: User) -> int:
    return coupon.usages.filter(CouponUsage.user_id == user.id).count()


def check_coupon(code, amount, user: User | None = None, now: datetime | None = None, lock: bool = False):
    """Return ``(coupon, discount)`` or raise ApiError with the reason.

    Checkout passes ``lock`` so the coupon row stays locked until its usage is recorded.
    """
    query = Coupon.query.filter(func.upper(Coupon.code) == normalize_code(code))
    if lock:
        query = query.with_for_update()
    coupon = query.first()
    if not coupon:
        raise NotFound(msg.COUPON_NOT_FOUND)

    status = coupon.effective_status(now)
    if status == "inactive":
        raise ApiError(msg.COUPON_PAUSED)
    if status == "upcoming":
        raise ApiError(msg.COUPON_UPCOMING)
    if status == "expired":
        raise ApiError(msg.COUPON_EXHAUSTED if coupon.is_exhausted() else msg.COUPON_EXPIRED)

    if user is not None and user_usage_count(coupon, user) >= coupon.user_limit:
        raise ApiError(msg.COUPON_USER_LIMIT)

    if D(amount) < D(coupon.minimum_purchase_amount):
        symbol = current_app.config.get("CURRENCY_SYMBOL", "₫")
        raise ApiError(msg.COUPON_MIN_PURCHASE.format(amount=format_price(coupon.minimum_purchase_amount, symbol)))

    return coupon, compute_discount(coupon, amount)


def quote(coupon: Coupon, amount, discount: Decimal) -> dict:
    return {
        "coupon": coupon.as_api(),
        "amount": float(round_money(amount)),
        "discount": float(discount),
        "finalAmount": float(round_money(D(amount) - discount)),
    }


def record_usage(coupon: Coupon, user: User, order: Order | None = None):
    coupon.used_count = (coupon.used_count or 0) + 1
    db.session.add(CouponUsage(coupon_id=coupon.id, user_id=user.id, order_id=order.id if order else None))
    log.info("coupon %s used by user %s (%d/%d)", coupon.code, user.id, coupon.used_count, coupon.usage_limit)


def release_usage(coupon: Coupon, order: Order):
    usage = coupon.usages.filter(CouponUsage.order_id == order.id).first()
    if usage:
        db.session.delete(usage)
        coupon.used_count = max(0, (coupon.used_count or 0) - 1)
