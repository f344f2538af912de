from flask import request
from sqlalchemy import func, or_

from . import bp
from .. import messages as msg
from ..errors import ApiError, Forbidden, NotFound
from ..extensions import db
from ..model import Product, Review, User
from ..services import review_service
from ..utils.api import ok
from ..utils.decorators import admin_required, login_required
from ..utils.pagination import apply_sort, page_args, paginate
from ..utils.parsing import parse_id_list, parse_opt_bool, parse_opt_int

SORT_COLUMNS = {
    "createdAt": Review.created_at,
    "rating": Review.rating,
    "likes": Review.likes,
}


def _get_or_404(review_id) -> Review:
    r = db.session.get(Review, review_id)
    if not r:
        raise NotFound(msg.REVIEW_NOT_FOUND)
    return r


def _product_from_arg(value) -> Product:
    """`product` may be an id or a SKU."""
    pid = parse_opt_int(value)
    product = db.session.get(Product, pid) if pid is not None else \
        Product.query.filter(Product.sku == (value or "").strip().upper()).first()
    if not product:
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    return product


@bp.get("")
def list_reviews():
    product = _product_from_arg(request.args.get("product"))
    query = Review.query.filter(Review.product_id == product.id, Review.is_public.is_(True))
    rating = parse_opt_int(request.args.get("rating"))
    if rating:
        query = query.filter(Review.rating == rating)
    query = apply_sort(query, SORT_COLUMNS, request.args.get("sort"), request.args.get("order"), Review.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách đánh giá thành công", {
        "reviews": [r.as_api() for r in items],
        "pagination": pagination,
        "summary": review_service.rating_summary(product.id),
    })


@bp.post("/create")
@login_required
def create_review(user):
    review = review_service.create_review(user, request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Đánh giá sản phẩm thành công", review.as_api(), status_code=201)


@bp.delete("/delete/<int:review_id>")
@login_required
def delete_own_review(review_id, user):
    review = _get_or_404(review_id)
    if review.user_id != user.id:
        raise Forbidden(msg.FORBIDDEN)
    db.session.delete(review)
    db.session.commit()
    return ok("Xóa đánh giá thành công", {"_id": review_id})


# ---------- admin ----------

@bp.get("/admin")
@admin_required
def admin_list(user):
    args = request.args
    query = Review.query.join(User, User.id == Review.user_id).join(Product, Product.id == Review.product_id)
    keyword = (args.get("keyword") or "").strip()
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(or_(
            Review.title.ilike(like), Review.content.ilike(like),
            User.name.ilike(like), Product.name.ilike(like),
        ))
    rating = parse_opt_int(args.get("rating"))
    if rating:
        query = query.filter(Review.rating == rating)
    for key, col in (("isVerified", Review.is_verified), ("isPublic", Review.is_public)):
        flag = parse_opt_bool(args.get(key))
        if flag is not None:
            query = query.filter(col.is_(flag))
    query = apply_sort(query, SORT_COLUMNS, args.get("sort"), args.get("order"), Review.created_at.desc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách đánh giá thành công", {
        "reviews": [r.as_api() for r in items],
        "pagination": pagination,
    })


@bp.get("/admin/stats")
@admin_required
def admin_stats(user):
    summary = review_service.rating_summary(public_only=False)
    counts = dict(
        db.session.query(Review.is_verified, func.count(Review.id)).group_by(Review.is_verified).all()
    )
    summary.update({
        "verifiedReviews": int(counts.get(True, 0)),
        "hiddenReviews": Review.query.filter(Review.is_public.is_(False)).count(),
        "repliedReviews": Review.query.filter(Review.admin_reply.isnot(None)).count(),
    })
    return ok("Lấy thống kê đánh giá thành công", summary)


@bp.put("/admin/<int:review_id>")
@admin_required
def admin_update(review_id, user):
    review = review_service.update_flags(_get_or_404(review_id), request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Cập nhật đánh giá thành công", review.as_api())


@bp.delete("/admin/<int:review_id>")
@admin_required
def admin_delete(review_id, user):
    db.session.delete(_get_or_404(review_id))
    db.session.commit()
    return ok("Xóa đánh giá thành công", {"_id": review_id})


@bp.delete("/admin/bulk-delete")
@admin_required
def admin_bulk_delete(user):
    ids = parse_id_list((request.get_json(silent=True) or {}).get("reviewIds"))
    if not ids:
        raise ApiError(msg.INVALID_DATA)
    count = Review.query.filter(Review.id.in_(ids)).delete(synchronize_session=False)
    db.session.commit()
    return ok(f"Đã xóa {count} đánh giá", {"deletedCount": count})


@bp.put("/admin/<int:review_id>/reply")
@admin_required
def admin_reply(review_id, user):
    review = review_service.set_reply(_get_or_404(review_id), request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Phản hồi đánh giá thành công", review.as_api())


@bp.put("/admin/<int:review_id>/reply/update")
@admin_required
def admin_update_reply(review_id, user):
    review = _get_or_404(review_id)
    if not review.admin_reply:
        raise NotFound("Đánh giá chưa có phản hồi")
    review_service.set_reply(review, request.get_json(silent=True) or {})
    db.session.commit()
    return ok("Cập nhật phản hồi thành công", review.as_api())


@bp.delete("/admin/<int:review_id>/reply")
@admin_required
def admin_delete_reply(review_id, user):
    review = review_service.delete_reply(_get_or_404(review_id))
    db.session.commit()
    return ok("Xóa phản hồi thành công", review.as_api())
