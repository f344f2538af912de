# sportstore/model/brand.py
from ..extensions import db
from ..utils.dates import utcnow, iso

BRAND_FLAGS = ("is_premium", "is_trending", "is_new", "featured")


class Brand(db.Model):
    """Partner brand shown on the storefront; products link to it by `brand_id`."""

    __tablename__ = "brand"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    slug = db.Column(db.String(100), nullable=False, unique=True, index=True)
    logo = db.Column(db.String(512))
    description = db.Column(db.String(1000), nullable=False, default="")
    rating = db.Column(db.Float, default=0.0)
    features = db.Column(db.JSON, default=list)

    is_premium = db.Column(db.Boolean, default=False)
    is_trending = db.Column(db.Boolean, default=False)
    is_new = db.Column(db.Boolean, default=False)
    featured = db.Column(db.Boolean, default=False, index=True)
    status = db.Column(db.String(20), nullable=False, default="active", index=True)  # active|inactive

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    products = db.relationship("Product", lazy=True)

    def as_api(self):
        return {
            "_id": self.id,
            "name": self.name,
            "slug": self.slug,
            "logo": self.logo,
            "description": self.description,
            "rating": float(self.rating or 0),
            "features": self.features or [],
            "isPremium": bool(self.is_premium),
            "isTrending": bool(self.is_trending),
            "isNew": bool(self.is_new),
            "featured": bool(self.featured),
            "status": self.status,
            "productsCount": len(self.products),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
