# sportstore/model/cart.py
from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..utils.dates import utcnow, iso
from ..utils.money import D, round_money


class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.id.asc()",
    )

    # --------- money helpers / totals ----------
    def subtotal_dec(self) -> Decimal:
        return round_money(sum((i.line_total_dec() for i in self.items), Decimal("0")))

    def original_subtotal_dec(self) -> Decimal:
        return round_money(sum((D(i.product.price) * i.quantity for i in self.items), Decimal("0")))

    def item_count(self) -> int:
        return sum(int(i.quantity or 0) for i in self.items)

    def as_api(self):
        subtotal = self.subtotal_dec()
        original = self.original_subtotal_dec()
        return {
            "_id": self.id,
            "items": [i.as_api() for i in self.items],
            "totalQuantity": self.item_count(),
            "originalTotal": float(original),
            "savings": float(round_money(original - subtotal)),
            "totalPrice": float(subtotal),
            "updatedAt": iso(self.updated_at),
        }


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    size = db.Column(db.String(32))
    color = db.Column(db.String(32))

    product = db.relationship("Product", lazy="joined")

    def unit_price_dec(self) -> Decimal:
        return D(self.product.effective_price)

    def line_total_dec(self) -> Decimal:
        return round_money(self.unit_price_dec() * Decimal(self.quantity))

    def as_api(self):
        p = self.product
        return {
            "_id": self.id,
            "productId": self.product_id,
            "sku": p.sku,
            "name": p.name,
            "image": p.main_image,
            "price": float(p.price or 0),
            "salePrice": p.effective_price,
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
            "stock": p.stock,
            "totalPrice": float(self.line_total_dec()),
        }
