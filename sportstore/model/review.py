# sportstore/model/review.py
from ..extensions import db
from ..utils.dates import utcnow, iso


class Review(db.Model):
    __tablename__ = "review"
    __table_args__ = (db.UniqueConstraint("user_id", "product_id", name="uq_review_user_product"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)

    rating = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(100), nullable=False)
    content = db.Column(db.String(1000), nullable=False)
    images = db.Column(db.JSON, default=list)

    is_verified = db.Column(db.Boolean, default=False)
    is_public = db.Column(db.Boolean, default=True, index=True)
    likes = db.Column(db.Integer, default=0)

    admin_reply = db.Column(db.String(1000))
    replied_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", lazy="joined")
    product = db.relationship("Product", lazy="joined")

    def as_api(self):
        return {
            "_id": self.id,
            "user": {"_id": self.user_id, "name": self.user.name if self.user else None},
            "product": {
                "_id": self.product_id,
                "name": self.product.name if self.product else None,
                "sku": self.product.sku if self.product else None,
            },
            "orderId": self.order_id,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "images": self.images or [],
            "isVerified": bool(self.is_verified),
            "isPublic": bool(self.is_public),
            "likes": self.likes or 0,
            "adminReply": {"content": self.admin_reply, "repliedAt": iso(self.replied_at)} if self.admin_reply else None,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
