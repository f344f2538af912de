# sportstore/services/customer_service.py
import logging

from werkzeug.security import generate_password_hash

from .. import messages as msg
from ..errors import ApiError, Conflict, ValidationError
from ..extensions import db
from ..model import Cart, CouponUsage, Favorite, Order, Question, RefreshToken, Review, User
from ..utils.parsing import parse_bool
from ..utils.validators import check_password, check_phone, clean_email, optional_str

log = logging.getLogger(__name__)

ROLES = ("user", "admin")
STATUSES = ("active", "inactive", "blocked")


def _choice(data, key, choices):
    value = (data.get(key) or "").strip().lower()
    if value not in choices:
        raise ValidationError(msg.INVALID_DATA, field=key)
    return value


def _admin_count():
    return User.query.filter_by(role="admin").count()


def create_user(data: dict) -> User:
    email = clean_email(data.get("email"))
    password = check_password(data.get("password"))
    if User.query.filter_by(email=email).first():
        raise Conflict(msg.EMAIL_EXISTS)
    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        name=optional_str(data, "name", "Họ tên", min_len=2, max_len=100) or email.split("@")[0],
        phone=check_phone(data["phone"]) if data.get("phone") else None,
        address=optional_str(data, "address", "Địa chỉ", min_len=5, max_len=200),
        role=_choice(data, "role", ROLES) if data.get("role") else "user",
        status=_choice(data, "status", STATUSES) if data.get("status") else "active",
        is_verified=parse_bool(data.get("isVerified")),
    )
    db.session.add(user)
    db.session.flush()
    log.info("admin created user %s (role=%s)", user.id, user.role)
    return user


def update_user(target: User, data: dict, actor: User) -> User:
    if "name" in data:
        target.name = optional_str(data, "name", "Họ tên", min_len=2, max_len=100) or target.name
    if "phone" in data:
        target.phone = check_phone(data["phone"]) if data.get("phone") else None
    if "address" in data:
        target.address = optional_str(data, "address", "Địa chỉ", min_len=5, max_len=200)
    if "isVerified" in data:
        target.is_verified = parse_bool(data["isVerified"])
    if data.get("role"):
        role = _choice(data, "role", ROLES)
        if target.role == "admin" and role != "admin" and _admin_count() <= 1:
            raise ApiError("Không thể hạ quyền quản trị viên cuối cùng")
        target.role = role
    if data.get("status"):
        status = _choice(data, "status", STATUSES)
        if target.id == actor.id and status != "active":
            raise ApiError("Không thể khóa tài khoản của chính mình")
        target.status = status
        if status != "active":
            RefreshToken.query.filter_by(user_id=target.id).delete(synchronize_session=False)
    return target


def check_deletable(target: User, actor: User):
    if target.id == actor.id:
        raise ApiError(msg.CANNOT_DELETE_SELF)
    if target.role == "admin" and _admin_count() <= 1:
        raise ApiError(msg.CANNOT_DELETE_LAST_ADMIN)
    if db.session.query(Order.query.filter_by(user_id=target.id).exists()).scalar():
        raise Conflict(msg.USER_HAS_ORDERS)


def delete_user(target: User, actor: User):
    check_deletable(target, actor)
    uid = target.id
    cart = Cart.query.filter_by(user_id=uid).first()
    if cart:
        db.session.delete(cart)
    for model in (Favorite, Review, Question, CouponUsage):
        model.query.filter_by(user_id=uid).delete(synchronize_session=False)
    db.session.delete(target)
    db.session.flush()
    log.info("user %s deleted by admin %s", uid, actor.id)


def reset_password(target: User, data: dict) -> User:
    password = check_password(data.get("newPassword"), data.get("confirmPassword"), field="newPassword")
    target.password_hash = generate_password_hash(password)
    RefreshToken.query.filter_by(user_id=target.id).delete(synchronize_session=False)
    log.info("password reset for user %s", target.id)
    return target
