# tests/conftest.py
from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from sportstore import create_app
from sportstore.config import TestingConfig
from sportstore.extensions import db
from sportstore.model import Category, Coupon, Product, ProductImage, User
from sportstore.utils.dates import utcnow

PASSWORD = "Secret@123"


@pytest.fixture
def app():
    """App on an in-memory database, with its context held for the whole test."""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(email, role="user", **kw):
    u = User(
        email=email,
        name=kw.pop("name", email.split("@")[0]),
        password_hash=generate_password_hash(kw.pop("password", PASSWORD)),
        role=role,
        **kw,
    )
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def admin(app):
    return _make_user("admin@sportstore.vn", role="admin", name="Quản trị")


@pytest.fixture
def user(app, admin):
    return _make_user("khach@example.com", name="Nguyễn Văn A", phone="0901234567")


@pytest.fixture
def other_user(app, admin):
    return _make_user("khach2@example.com", name="Trần Thị B")


def headers_for(user):
    return {"Authorization": f"Bearer {create_access_token(identity=str(user.id))}"}


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def user_headers(user):
    return headers_for(user)


@pytest.fixture
def category(app):
    c = Category(name="Giày bóng đá", slug="giay-bong-da")
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture
def make_product(app):
    """Factory: make_product(sku="SP1", price=..., stock=...)"""
    counter = {"n": 0}

    def _make(**kw):
        counter["n"] += 1
        n = counter["n"]
        image = kw.pop("image", f"https://cdn.example.com/p{n}.jpg")
        p = Product(
            sku=kw.pop("sku", f"SKU-{n:03d}"),
            name=kw.pop("name", f"Sản phẩm {n}"),
            description=kw.pop("description", "Mô tả sản phẩm thể thao"),
            price=kw.pop("price", 200000),
            stock=kw.pop("stock", 10),
            **kw,
        )
        if image:
            p.images.append(ProductImage(image_url=image, main=True))
        db.session.add(p)
        db.session.commit()
        return p

    return _make


@pytest.fixture
def make_coupon(app):
    def _make(**kw):
        now = utcnow()
        c = Coupon(
            code=kw.pop("code", "SALE10"),
            type=kw.pop("type", "percentage"),
            value=kw.pop("value", 10),
            usage_limit=kw.pop("usage_limit", 100),
            user_limit=kw.pop("user_limit", 1),
            minimum_purchase_amount=kw.pop("minimum_purchase_amount", 0),
            start_date=kw.pop("start_date", now - timedelta(days=1)),
            end_date=kw.pop("end_date", now + timedelta(days=30)),
            **kw,
        )
        db.session.add(c)
        db.session.commit()
        return c

    return _make


@pytest.fixture
def shipping_address():
    return {
        "fullName": "Nguyễn Văn A",
        "phone": "0901234567",
        "address": "12 Lê Lợi",
        "city": "Hồ Chí Minh",
        "district": "Quận 1",
        "ward": "Bến Nghé",
    }
