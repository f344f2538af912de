from flask import request

from . import bp
from .. import messages as msg
from ..errors import Forbidden, NotFound
from ..extensions import db
from ..model import Product, Question
from ..services.product_service import get_by_sku
from ..utils.api import ok
from ..utils.dates import utcnow
from ..utils.decorators import admin_required, login_required
from ..utils.pagination import page_args, paginate
from ..utils.parsing import parse_int
from ..utils.validators import require_str


def _get_or_404(question_id) -> Question:
    q = db.session.get(Question, question_id)
    if not q:
        raise NotFound(msg.QUESTION_NOT_FOUND)
    return q


@bp.get("/product/<sku>")
def list_for_product(sku):
    product = get_by_sku(sku)
    query = (
        Question.query.filter(Question.product_id == product.id, Question.status == "approved")
        .order_by(Question.helpful.desc(), Question.created_at.desc())
    )
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách câu hỏi thành công", {
        "questions": [q.as_api() for q in items],
        "pagination": pagination,
    })


@bp.post("")
@login_required
def create_question(user):
    data = request.get_json(silent=True) or {}
    if data.get("productSku"):
        product = get_by_sku(data["productSku"])
    else:
        product = db.session.get(Product, parse_int(data.get("productId"), 0))
        if not product:
            raise NotFound(msg.PRODUCT_NOT_FOUND)
    data = {"question": data.get("question", data.get("content"))}
    q = Question(
        product_id=product.id,
        user_id=user.id,
        content=require_str(data, "question", "Câu hỏi", min_len=10, max_len=500),
    )
    db.session.add(q)
    db.session.commit()
    return ok("Câu hỏi của bạn đã được gửi và đang chờ duyệt", q.as_api(), status_code=201)


@bp.delete("/<int:question_id>")
@login_required
def delete_question(question_id, user):
    q = _get_or_404(question_id)
    if q.user_id != user.id and user.role != "admin":
        raise Forbidden(msg.FORBIDDEN)
    db.session.delete(q)
    db.session.commit()
    return ok("Xóa câu hỏi thành công", {"_id": question_id})


@bp.post("/helpful/<int:question_id>")
def mark_helpful(question_id):
    q = _get_or_404(question_id)
    q.helpful = (q.helpful or 0) + 1
    db.session.commit()
    return ok("Cảm ơn phản hồi của bạn", q.as_api())


# ---------- admin ----------

@bp.get("/admin/pending")
@admin_required
def pending(user):
    query = Question.query.filter(Question.status == "pending").order_by(Question.created_at.asc())
    page, limit = page_args()
    items, pagination = paginate(query, page, limit)
    return ok("Lấy danh sách câu hỏi chờ duyệt thành công", {
        "questions": [q.as_api() for q in items],
        "pagination": pagination,
    })


@bp.put("/admin/<int:question_id>/approve")
@admin_required
def approve(question_id, user):
    q = _get_or_404(question_id)
    q.status = "approved"
    db.session.commit()
    return ok("Đã duyệt câu hỏi", q.as_api())


@bp.put("/admin/<int:question_id>/reject")
@admin_required
def reject(question_id, user):
    q = _get_or_404(question_id)
    q.status = "rejected"
    db.session.commit()
    return ok("Đã từ chối câu hỏi", q.as_api())


@bp.put("/admin/<int:question_id>/answer")
@admin_required
def answer(question_id, user):
    q = _get_or_404(question_id)
    q.answer = require_str(request.get_json(silent=True) or {}, "answer", "Câu trả lời", max_len=1000)
    q.answered_at = utcnow()
    q.status = "approved"
    db.session.commit()
    return ok("Đã trả lời câu hỏi", q.as_api())


@bp.put("/admin/<int:question_id>/verify")
@admin_required
def verify(question_id, user):
    q = _get_or_404(question_id)
    q.is_verified = not q.is_verified
    db.session.commit()
    return ok("Cập nhật xác minh câu hỏi thành công", q.as_api())
