# --- sportstore/model/coupon.py ---
from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..utils.dates import utcnow, iso

STATUS_LABELS = {
    "active": "Hoạt động",
    "inactive": "Tạm dừng",
    "expired": "Hết hạn",
    "upcoming": "Sắp diễn ra",
}


class Coupon(db.Model):
    __tablename__ = "coupon"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    description = db.Column(db.String(500))

    # "percentage" or "fixed"
    type = db.Column(db.String(16), nullable=False, default="percentage")
    value = db.Column(db.Float, nullable=False, default=0.0)
    max_discount = db.Column(db.Float, nullable=True)              # cap for percentage coupons
    minimum_purchase_amount = db.Column(db.Float, nullable=False, default=0.0)

    usage_limit = db.Column(db.Integer, nullable=False, default=1)  # global usage cap
    user_limit = db.Column(db.Integer, nullable=False, default=1)   # per user cap
    used_count = db.Column(db.Integer, nullable=False, default=0)

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)

    # stored status is what the admin set; expired/upcoming are derived
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    usages = db.relationship("CouponUsage", backref="coupon", cascade="all, delete-orphan", lazy="dynamic")

    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit

    def effective_status(self, now: datetime | None = None) -> str:
        now = now or utcnow()
        if self.status == "inactive":
            return "inactive"
        if self.end_date and now > self.end_date:
            return "expired"
        if self.is_exhausted():
            return "expired"
        if self.start_date and now < self.start_date:
            return "upcoming"
        return "active"

    def as_api(self, now: datetime | None = None):
        status = self.effective_status(now)
        return {
            "_id": self.id,
            "code": self.code,
            "description": self.description,
            "type": self.type,
            "value": self.value,
            "maxDiscount": self.max_discount,
            "minimumPurchaseAmount": self.minimum_purchase_amount,
            "usageLimit": self.usage_limit,
            "userLimit": self.user_limit,
            "usageCount": self.used_count,
            "startDate": iso(self.start_date),
            "endDate": iso(self.end_date),
            "status": status,
            "statusLabel": STATUS_LABELS[status],
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class CouponUsage(db.Model):
    __tablename__ = "coupon_usage"

    id = db.Column(db.Integer, primary_key=True)
    coupon_id = db.Column(db.Integer, db.ForeignKey("coupon.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
