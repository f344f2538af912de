from flask import request

from . import bp
from .. import messages as msg
from ..extensions import db
from ..services import auth_service
from ..utils.api import ok
from ..utils.decorators import login_required


@bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    user = auth_service.register_user(data)
    access_token, refresh_token = auth_service.issue_tokens(user)
    db.session.commit()
    return ok(msg.REGISTER_SUCCESS, auth_service.token_payload(user, access_token, refresh_token), status_code=201)


@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    user = auth_service.authenticate(data.get("email"), data.get("password"))
    access_token, refresh_token = auth_service.issue_tokens(user)
    db.session.commit()
    return ok(msg.LOGIN_SUCCESS, auth_service.token_payload(user, access_token, refresh_token))


@bp.post("/refresh")
def refresh():
    data = request.get_json(silent=True) or {}
    token_str = data.get("refreshToken") or data.get("refresh_token")
    user, (access_token, refresh_token) = auth_service.rotate_refresh_token(token_str)
    db.session.commit()
    return ok("Làm mới token thành công", auth_service.token_payload(user, access_token, refresh_token))


@bp.post("/logout")
@login_required
def logout(user):
    data = request.get_json(silent=True) or {}
    auth_service.revoke_refresh_token(user, data.get("refreshToken") or data.get("refresh_token"))
    db.session.commit()
    return ok(msg.LOGOUT_SUCCESS)


@bp.get("/check")
@login_required
def check(user):
    return ok("Xác thực thành công", {"user": user.as_dict()})


@bp.get("/profile")
@login_required
def get_profile(user):
    return ok("Lấy thông tin thành công", {"user": user.as_dict()})


@bp.put("/profile")
@login_required
def update_profile(user):
    data = request.get_json(silent=True) or {}
    auth_service.update_profile(user, data)
    db.session.commit()
    return ok("Cập nhật thông tin thành công", {"user": user.as_dict()})


@bp.put("/change-password")
@login_required
def change_password(user):
    data = request.get_json(silent=True) or {}
    auth_service.change_password(user, data)
    db.session.commit()
    return ok("Đổi mật khẩu thành công")
