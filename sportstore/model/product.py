# sportstore/model/product.py
from ..extensions import db
from ..utils.dates import utcnow, iso


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(50), nullable=False, unique=True, index=True)
    slug = db.Column(db.String(255), index=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False, default="")
    brand = db.Column(db.String(100), index=True)   # display name, kept in sync with brand_id

    price = db.Column(db.Float, nullable=False, default=0.0)
    discount_price = db.Column(db.Float, nullable=True)   # sale price, must stay below price
    stock = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, index=True)
    is_featured = db.Column(db.Boolean, default=False, index=True)
    sold_count = db.Column(db.Integer, default=0)
    view_count = db.Column(db.Integer, default=0)

    sizes = db.Column(db.JSON, default=list)
    colors = db.Column(db.JSON, default=list)
    specifications = db.Column(db.JSON, default=dict)
    tags = db.Column(db.JSON, default=list)

    category_id = db.Column(db.Integer, db.ForeignKey("category.id"), nullable=True, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brand.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    images = db.relationship(
        "ProductImage",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductImage.id.asc()",
    )

    @property
    def effective_price(self) -> float:
        if self.discount_price is not None and 0 <= self.discount_price < self.price:
            return float(self.discount_price)
        return float(self.price or 0)

    @property
    def main_image(self):
        for img in self.images:
            if img.main:
                return img.image_url
        return self.images[0].image_url if self.images else None

    def as_api(self):
        return {
            "_id": self.id,
            "sku": self.sku,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "brand": self.brand,
            "brandId": self.brand_id,
            "price": float(self.price or 0),
            "discountPrice": self.discount_price,
            "salePrice": self.effective_price,
            "stock": self.stock,
            "isActive": bool(self.is_active),
            "isFeatured": bool(self.is_featured),
            "soldCount": self.sold_count or 0,
            "viewCount": self.view_count or 0,
            "sizes": self.sizes or [],
            "colors": self.colors or [],
            "specifications": self.specifications or {},
            "tags": self.tags or [],
            "mainImage": self.main_image,
            "images": [img.image_url for img in self.images],
            "category": self.category.as_dict() if self.category else None,
            "categoryId": self.category_id,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class ProductImage(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    image_url = db.Column(db.String(1024), nullable=False)
    main = db.Column(db.Boolean, default=False)
