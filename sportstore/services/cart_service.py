from .. import messages as msg
from ..errors import ApiError, NotFound, ValidationError
from ..extensions import db
from ..model import Cart, CartItem, Product, User
from ..utils.parsing import parse_int


def get_or_create_cart(user: User) -> Cart:
    cart = Cart.query.filter_by(user_id=user.id).first()
    if not cart:
        cart = Cart(user_id=user.id)
        db.session.add(cart)
        db.session.flush()
    return cart


def _sellable_product(product_id) -> Product:
    product = db.session.get(Product, parse_int(product_id, 0))
    if not product:
        raise NotFound(msg.PRODUCT_NOT_FOUND)
    if not product.is_active:
        raise ApiError(msg.PRODUCT_UNAVAILABLE, status_code=409)
    if (product.stock or 0) <= 0:
        raise ApiError(msg.OUT_OF_STOCK, status_code=409)
    return product


def _quantity(data) -> int:
    qty = parse_int(data.get("quantity"), 1)
    if qty < 1:
        raise ValidationError("Số lượng phải lớn hơn 0", field="quantity")
    return qty


def _find_item(cart: Cart, product_id, size=None, color=None):
    pid = parse_int(product_id, 0)
    return next(
        (i for i in cart.items if i.product_id == pid and i.size == size and i.color == color),
        None,
    )


def add_item(user: User, data: dict) -> Cart:
    """Body: {productId, quantity, size?, color?}; quantity is clamped to stock."""
    cart = get_or_create_cart(user)
    product = _sellable_product(data.get("productId"))
    qty = _quantity(data)
    size, color = data.get("size") or None, data.get("color") or None

    item = _find_item(cart, product.id, size, color)
    if item:
        item.quantity = min(item.quantity + qty, product.stock)
    else:
        item = CartItem(product=product, quantity=min(qty, product.stock), size=size, color=color)
        cart.items.append(item)
    db.session.flush()
    return cart


def update_item(user: User, data: dict) -> Cart:
    cart = get_or_create_cart(user)
    item = _find_item(cart, data.get("productId"), data.get("size") or None, data.get("color") or None)
    if not item:
        raise NotFound(msg.CART_ITEM_NOT_FOUND)
    qty = _quantity(data)
    stock = item.product.stock or 0
    if stock <= 0:
        raise ApiError(msg.OUT_OF_STOCK, status_code=409)
    item.quantity = min(qty, stock)
    db.session.flush()
    return cart


def remove_item(user: User, data: dict) -> Cart:
    cart = get_or_create_cart(user)
    item = _find_item(cart, data.get("productId"), data.get("size") or None, data.get("color") or None)
    if not item:
        raise NotFound(msg.CART_ITEM_NOT_FOUND)
    cart.items.remove(item)
    db.session.flush()
    return cart


def clear_cart(user: User) -> Cart:
    cart = get_or_create_cart(user)
    cart.items.clear()
    db.session.flush()
    return cart
