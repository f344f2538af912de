# sportstore/services/review_service.py
import logging

from sqlalchemy import func

from .. import messages as msg
from ..errors import Conflict, NotFound, ValidationError
from ..extensions import db
from ..model import Order, OrderItem, Product, Review, User
from ..utils.dates import utcnow
from ..utils.parsing import parse_bool, parse_int
from ..utils.validators import require_str

log = logging.getLogger(__name__)


def rating_summary(product_id=None, public_only=True) -> dict:
    q = db.session.query(Review.rating, func.count(Review.id))
    if product_id is not None:
        q = q.filter(Review.product_id == product_id)
    if public_only:
        q = q.filter(Review.is_public.is_(True))
    counts = dict(q.group_by(Review.rating).all())

    distribution = {str(star): int(counts.get(star, 0)) for star in range(1, 6)}
    total = sum(distribution.values())
    weighted = sum(int(star) * n for star, n in distribution.items())
    return {
        "averageRating": round(weighted / total, 1) if total else 0,
        "totalReviews": total,
        "ratingDistribution": distribution,
    }


def verified_order_for(user: User, product_id: int):
    """Latest delivered order of `user` that contains the product, if any."""
    return (
        Order.query.join(OrderItem, OrderItem.order_id == Order.id)
        .filter(
            Order.user_id == user.id,
            Order.status == "delivered",
            OrderItem.product_id == product_id,
        )
        .order_by(Order.created_at.desc())
        .first()
    )


def _clean_rating(data):
    rating = parse_int(data.get("rating"), 0)
    if not 1 <= rating <= 5:
        raise ValidationError("Đánh giá phải từ 1 đến 5 sao", field="rating")
    return rating


def create_review(user: User, data: dict) -> Review:
    product = db.session.get(Product, parse_int(data.get("productId") or data.get("product"), 0))
    if not product:
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    rating = _clean_rating(data)
    title = require_str(data, "title", "Tiêu đề", max_len=100)
    content = require_str(data, "content", "Nội dung đánh giá", min_len=10, max_len=1000)

    if Review.query.filter_by(user_id=user.id, product_id=product.id).first():
        raise Conflict(msg.REVIEW_EXISTS)

    images = [str(u) for u in (data.get("images") or []) if u][:5]
    order = verified_order_for(user, product.id)
    review = Review(
        user_id=user.id,
        product_id=product.id,
        order_id=order.id if order else None,
        rating=rating,
        title=title,
        content=content,
        images=images,
        is_verified=order is not None,
    )
    db.session.add(review)
    db.session.flush()
    log.info("review %s on product %s by user %s (verified=%s)", review.id, product.id, user.id, review.is_verified)
    return review


def update_flags(review: Review, data: dict) -> Review:
    if "isPublic" in data:
        review.is_public = parse_bool(data["isPublic"])
    if "isVerified" in data:
        review.is_verified = parse_bool(data["isVerified"])
    if "rating" in data:
        review.rating = _clean_rating(data)
    return review


def set_reply(review: Review, data: dict) -> Review:
    review.admin_reply = require_str(data, "content", "Nội dung phản hồi", max_len=1000)
    review.replied_at = utcnow()
    return review


def delete_reply(review: Review) -> Review:
    review.admin_reply = None
    review.replied_at = None
    return review
