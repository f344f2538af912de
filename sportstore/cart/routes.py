# sportstore/cart/routes.py
from flask import request

from . import bp
from ..extensions import db
from ..services import cart_service
from ..utils.api import ok
from ..utils.decorators import login_required


def _body():
    return request.get_json(silent=True) or {}


@bp.get("")
@login_required
def get_cart(user):
    cart = cart_service.get_or_create_cart(user)
    db.session.commit()
    return ok("Lấy giỏ hàng thành công", cart.as_api())


@bp.post("/add")
@login_required
def add_to_cart(user):
    cart = cart_service.add_item(user, _body())
    db.session.commit()
    return ok("Đã thêm sản phẩm vào giỏ hàng", cart.as_api())


@bp.put("/update")
@login_required
def update_cart_item(user):
    cart = cart_service.update_item(user, _body())
    db.session.commit()
    return ok("Cập nhật giỏ hàng thành công", cart.as_api())


@bp.delete("/remove")
@login_required
def remove_cart_item(user):
    cart = cart_service.remove_item(user, _body())
    db.session.commit()
    return ok("Đã xóa sản phẩm khỏi giỏ hàng", cart.as_api())


@bp.delete("/clear")
@login_required
def clear_cart(user):
    cart = cart_service.clear_cart(user)
    db.session.commit()
    return ok("Đã xóa toàn bộ giỏ hàng", cart.as_api())
