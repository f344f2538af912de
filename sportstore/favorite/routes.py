from flask import request

from . import bp
from .. import messages as msg
from ..errors import NotFound
from ..extensions import db
from ..model import Favorite, Product
from ..utils.api import ok
from ..utils.decorators import login_required
from ..utils.parsing import parse_int


def _favorites(user):
    rows = Favorite.query.filter_by(user_id=user.id).order_by(Favorite.created_at.desc()).all()
    return [f.product.as_api() for f in rows if f.product]


@bp.get("")
@login_required
def list_favorites(user):
    return ok("Lấy danh sách yêu thích thành công", _favorites(user))


@bp.post("/add")
@login_required
def add_favorite(user):
    pid = parse_int((request.get_json(silent=True) or {}).get("productId"), 0)
    if not db.session.get(Product, pid):
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    if not Favorite.query.filter_by(user_id=user.id, product_id=pid).first():
        db.session.add(Favorite(user_id=user.id, product_id=pid))
        db.session.commit()
    return ok("Đã thêm vào danh sách yêu thích", _favorites(user))


@bp.post("/remove")
@login_required
def remove_favorite(user):
    pid = parse_int((request.get_json(silent=True) or {}).get("productId"), 0)
    Favorite.query.filter_by(user_id=user.id, product_id=pid).delete(synchronize_session=False)
    db.session.commit()
    return ok("Đã xóa khỏi danh sách yêu thích", _favorites(user))
