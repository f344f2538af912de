# sportstore/model/question.py
from ..extensions import db
from ..utils.dates import utcnow, iso


class Question(db.Model):
    __tablename__ = "question"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    content = db.Column(db.String(500), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)  # pending | approved | rejected
    answer = db.Column(db.String(1000))
    answered_at = db.Column(db.DateTime)
    is_verified = db.Column(db.Boolean, default=False)
    helpful = db.Column(db.Integer, default=0)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    user = db.relationship("User", lazy="joined")
    product = db.relationship("Product", lazy="joined")

    def as_api(self):
        return {
            "_id": self.id,
            "productSku": self.product.sku if self.product else None,
            "productName": self.product.name if self.product else None,
            "user": {"_id": self.user_id, "name": self.user.name if self.user else None},
            "question": self.content,
            "status": self.status,
            "answer": self.answer,
            "answeredAt": iso(self.answered_at),
            "isVerified": bool(self.is_verified),
            "isHelpful": self.helpful or 0,
            "createdAt": iso(self.created_at),
        }
