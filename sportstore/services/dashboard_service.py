# sportstore/services/dashboard_service.py
"""Aggregates for the admin dashboard. Revenue only counts delivered orders."""
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..model import Order, OrderItem, Product, User
from ..utils.dates import utcnow
from ..utils.money import D, round_money
from .order_service import ORDER_STATUSES

PERIODS = {"day": 30, "week": 12, "month": 12}


def stats() -> dict:
    revenue = db.session.query(func.coalesce(func.sum(Order.total), 0)).filter(Order.status == "delivered").scalar()
    by_status = dict(db.session.query(Order.status, func.count(Order.id)).group_by(Order.status).all())
    return {
        "totalUsers": User.query.filter_by(role="user").count(),
        "totalOrders": Order.query.count(),
        "totalProducts": Product.query.count(),
        "totalRevenue": float(round_money(D(revenue))),
        "ordersByStatus": {s: int(by_status.get(s, 0)) for s in ORDER_STATUSES},
    }


def _bucket_start(dt: datetime, period: str) -> datetime:
    day = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return day - timedelta(days=day.weekday())
    if period == "month":
        return day.replace(day=1)
    return day


def _previous(start: datetime, period: str) -> datetime:
    if period == "week":
        return start - timedelta(weeks=1)
    if period == "month":
        return (start - timedelta(days=1)).replace(day=1)
    return start - timedelta(days=1)


def _label(start: datetime, period: str) -> str:
    if period == "month":
        return start.strftime("%Y-%m")
    return start.strftime("%Y-%m-%d")


def revenue(period: str = "day", now: datetime | None = None) -> list[dict]:
    """Delivered revenue per bucket, oldest first, empty buckets included."""
    period = (period or "day").lower()
    if period not in PERIODS:
        raise ValidationError("Khoảng thời gian không hợp lệ", field="period")
    now = now or utcnow()

    starts = [_bucket_start(now, period)]
    for _ in range(PERIODS[period] - 1):
        starts.append(_previous(starts[-1], period))
    starts.reverse()

    buckets = {s: {"date": _label(s, period), "revenue": D(0), "orders": 0} for s in starts}
    orders = Order.query.filter(Order.status == "delivered", Order.created_at >= starts[0]).all()
    for o in orders:
        bucket = buckets.get(_bucket_start(o.created_at, period))
        if bucket is not None:
            bucket["revenue"] += D(o.total)
            bucket["orders"] += 1
    return [{**b, "revenue": float(round_money(b["revenue"]))} for b in buckets.values()]


def recent_orders(limit: int = 10):
    return Order.query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()


def top_products(limit: int = 5) -> list[dict]:
    rows = (
        db.session.query(
            OrderItem.product_id,
            func.max(OrderItem.name),
            func.sum(OrderItem.quantity),
            func.sum(OrderItem.line_total),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.status == "delivered", OrderItem.product_id.isnot(None))
        .group_by(OrderItem.product_id)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(limit)
        .all()
    )
    return [
        {"productId": pid, "name": name, "quantitySold": int(qty or 0), "revenue": float(round_money(D(total)))}
        for pid, name, qty, total in rows
    ]


def new_customers(limit: int = 5):
    return User.query.filter_by(role="user").order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()
