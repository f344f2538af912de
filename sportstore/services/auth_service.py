# sportstore/services/auth_service.py
import logging
import uuid
from datetime import timedelta

from flask import current_app
from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash, generate_password_hash

from .. import messages as msg
from ..errors import ApiError
from ..extensions import db
from ..model import RefreshToken, User
from ..utils.dates import utcnow
from ..utils.validators import check_password, check_phone, clean_email, optional_str

log = logging.getLogger(__name__)


# --- helper: create & persist a token pair ---
def issue_tokens(user: User):
    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role},
    )
    refresh_token_str = uuid.uuid4().hex
    db.session.add(RefreshToken(
        user_id=user.id,
        token=refresh_token_str,
        expires_at=utcnow() + timedelta(days=current_app.config["REFRESH_TOKEN_DAYS"]),
    ))
    return access_token, refresh_token_str


def token_payload(user: User, access_token: str, refresh_token: str):
    return {
        "user": user.as_dict(),
        "accessToken": access_token,
        "refreshToken": refresh_token,
    }


def register_user(data: dict) -> User:
    email = clean_email(data.get("email"))
    check_password(data.get("password"), data.get("confirmPassword", data.get("password")))
    name = optional_str(data, "name", "Họ tên", min_len=2, max_len=100) \
        or optional_str(data, "fullname", "Họ tên", min_len=2, max_len=100)
    phone = check_phone(data.get("phone")) if data.get("phone") else None

    if User.query.filter_by(email=email).first():
        raise ApiError(msg.EMAIL_EXISTS, status_code=409)

    # Bootstrap: very first account becomes admin
    is_first_user = db.session.query(User.id).count() == 0
    user = User(
        email=email,
        password_hash=generate_password_hash(data["password"]),
        name=name or email.split("@")[0],
        phone=phone,
        role="admin" if is_first_user else "user",
    )
    db.session.add(user)
    db.session.flush()
    log.info("registered user %s (role=%s)", user.id, user.role)
    return user


def authenticate(email, password) -> User:
    email = (email or "").strip().lower()
    if not email or not password:
        raise ApiError(msg.INVALID_CREDENTIALS, status_code=400)
    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        log.info("failed login for %s", email)
        raise ApiError(msg.INVALID_CREDENTIALS, status_code=401)
    if user.status != "active":
        raise ApiError(msg.ACCOUNT_BLOCKED, status_code=403)
    return user


def rotate_refresh_token(token_str: str):
    """Refresh tokens are single use: the presented one is deleted."""
    row = RefreshToken.query.filter_by(token=token_str).first() if token_str else None
    if not row or row.expires_at < utcnow():
        raise ApiError(msg.INVALID_REFRESH_TOKEN, status_code=401)
    user = db.session.get(User, row.user_id)
    db.session.delete(row)
    db.session.flush()
    if not user or user.status != "active":
        raise ApiError(msg.INVALID_REFRESH_TOKEN, status_code=401)
    return user, issue_tokens(user)


def revoke_refresh_token(user: User, token_str: str | None) -> int:
    """Deletes that one token of the user; other devices stay logged in."""
    if not token_str:
        return 0
    q = RefreshToken.query.filter_by(user_id=user.id, token=token_str)
    return q.delete(synchronize_session=False)


def update_profile(user: User, data: dict) -> User:
    if "name" in data or "fullname" in data:
        key = "name" if "name" in data else "fullname"
        user.name = optional_str(data, key, "Họ tên", min_len=2, max_len=100) or user.name
    if data.get("phone"):
        user.phone = check_phone(data["phone"])
    if "address" in data:
        user.address = optional_str(data, "address", "Địa chỉ", min_len=5, max_len=200)
    if "avatar" in data:
        user.avatar = data.get("avatar") or None
    return user


def change_password(user: User, data: dict):
    if not check_password_hash(user.password_hash, data.get("currentPassword") or ""):
        raise ApiError(msg.WRONG_CURRENT_PASSWORD, status_code=400)
    new = check_password(data.get("newPassword"), field="newPassword")
    if new != data.get("confirmNewPassword"):
        raise ApiError(msg.PASSWORD_MISMATCH, status_code=400, data={"field": "confirmNewPassword"})
    user.password_hash = generate_password_hash(new)
    # every other session has to log in again
    RefreshToken.query.filter_by(user_id=user.id).delete(synchronize_session=False)
