from ..extensions import db
from ..utils.dates import utcnow, iso


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    short_id = db.Column(db.String(32), unique=True, index=True)  # e.g. "ORD-20251022-5F3A"
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    payment_method = db.Column(db.String(20), nullable=False, default="cod")
    payment_status = db.Column(db.String(20), nullable=False, default="pending")

    # shipping snapshot {fullName, phone, address, city, district, ward}
    shipping_address = db.Column(db.JSON, nullable=False)
    note = db.Column(db.String(500))
    cancel_reason = db.Column(db.String(500))
    status_history = db.Column(db.JSON, default=list)

    # Money snapshot
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    shipping_fee = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    coupon_code = db.Column(db.String(20))

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", lazy="joined")
    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def as_api(self):
        from ..services.order_service import status_label, next_status

        return {
            "_id": self.id,
            "shortId": self.short_id,
            "user": {
                "_id": self.user.id,
                "email": self.user.email,
                "name": self.user.name,
                "phone": self.user.phone,
            } if self.user else None,
            "status": self.status,
            "statusLabel": status_label(self.status),
            "nextStatus": next_status(self.status),
            "paymentMethod": self.payment_method,
            "paymentStatus": self.payment_status,
            "shippingAddress": self.shipping_address,
            "note": self.note,
            "cancelReason": self.cancel_reason,
            "statusHistory": self.status_history or [],
            "items": [i.as_api() for i in self.items],
            "subtotal": float(self.subtotal or 0),
            "shippingFee": float(self.shipping_fee or 0),
            "discount": float(self.discount or 0),
            "totalPrice": float(self.total or 0),
            "couponCode": self.coupon_code,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="SET NULL"), index=True)
    sku = db.Column(db.String(50))
    name = db.Column(db.String(200))
    image_url = db.Column(db.String(1024))
    size = db.Column(db.String(32))
    color = db.Column(db.String(32))

    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def as_api(self):
        return {
            "productId": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "image": self.image_url,
            "size": self.size,
            "color": self.color,
            "price": float(self.unit_price or 0),
            "quantity": self.quantity,
            "totalPrice": float(self.line_total or 0),
        }
