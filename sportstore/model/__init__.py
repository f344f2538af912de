# ------ sportstore/model/__init__.py ------

from .user import User, RefreshToken, membership_tier
from .category import Category
from .brand import Brand, BRAND_FLAGS
from .product import Product, ProductImage
from .cart import Cart, CartItem
from .coupon import Coupon, CouponUsage
from .order import Order, OrderItem
from .review import Review
from .question import Question
from .favorite import Favorite

__all__ = [
    "User",
    "RefreshToken",
    "membership_tier",
    "Category",
    "Brand",
    "BRAND_FLAGS",
    "Product",
    "ProductImage",
    "Cart",
    "CartItem",
    "Coupon",
    "CouponUsage",
    "Order",
    "OrderItem",
    "Review",
    "Question",
    "Favorite",
]
