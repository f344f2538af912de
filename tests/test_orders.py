# tests/test_orders.py
import re

import pytest

from sportstore import messages as msg
from sportstore.extensions import db
from sportstore.model import CartItem, Coupon, CouponUsage, Order, Product, User
from sportstore.services import order_service
from sportstore.services.order_service import can_transition, next_status, status_label

from .conftest import headers_for


def _place(client, headers, address, **body):
    body.setdefault("shippingAddress", address)
    return client.post("/api/orders", json=body, headers=headers)


class TestStatusFlow:
    def test_next_status(self):
        assert next_status("pending") == "processing"
        assert next_status("shipped") == "delivered"
        assert next_status("delivered") is None
        assert next_status("cancelled") is None

    @pytest.mark.parametrize("current,target,allowed", [
        ("pending", "processing", True),
        ("pending", "shipped", False),
        ("processing", "pending", False),
        ("pending", "cancelled", True),
        ("processing", "cancelled", True),
        ("shipped", "cancelled", False),
        ("delivered", "cancelled", False),
        ("cancelled", "pending", False),
    ])
    def test_can_transition(self, current, target, allowed):
        assert can_transition(current, target) is allowed

    def test_unknown_status_label_falls_back(self):
        assert status_label("lost") == status_label("pending")


class TestCreateOrder:
    def test_from_items(self, client, user_headers, make_product, shipping_address):
        p = make_product(price=200000, stock=5)
        resp = _place(client, user_headers, shipping_address,
                      items=[{"productId": p.id, "quantity": 2, "size": "42"}], note="Giao giờ hành chính")
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert re.match(r"^ORD-\d{8}-[0-9A-F]{6}$", data["shortId"])
        assert data["status"] == "pending"
        assert data["nextStatus"] == "processing"
        assert data["paymentMethod"] == "cod"
        assert data["subtotal"] == 400000
        assert data["shippingFee"] == 30000
        assert data["totalPrice"] == 430000
        assert data["items"][0]["size"] == "42"
        assert data["statusHistory"][0]["status"] == "pending"
        assert db.session.get(Product, p.id).stock == 3

    def test_free_shipping_over_threshold(self, client, user_headers, make_product, shipping_address):
        p = make_product(price=250000)
        data = _place(client, user_headers, shipping_address,
                      items=[{"productId": p.id, "quantity": 2}]).get_json()["data"]
        assert data["shippingFee"] == 0
        assert data["totalPrice"] == 500000

    def test_uses_sale_price_snapshot(self, client, user_headers, make_product, shipping_address):
        p = make_product(price=300000, discount_price=240000)
        data = _place(client, user_headers, shipping_address,
                      items=[{"productId": p.id, "quantity": 1}]).get_json()["data"]
        p.price = 999999
        db.session.commit()
        order = db.session.get(Order, data["_id"])
        assert order.items[0].as_api()["price"] == 240000

    def test_from_cart(self, client, user_headers, make_product, shipping_address):
        a, b = make_product(), make_product()
        client.post("/api/cart/add", json={"productId": a.id, "quantity": 2}, headers=user_headers)
        resp = _place(client, user_headers, shipping_address)
        assert resp.status_code == 201
        assert [i["productId"] for i in resp.get_json()["data"]["items"]] == [a.id]
        assert CartItem.query.count() == 0
        assert b.stock == 10

    def test_purchase_leaves_other_cart_lines(self, client, user_headers, make_product, shipping_address):
        a, b = make_product(), make_product()
        client.post("/api/cart/add", json={"productId": a.id}, headers=user_headers)
        client.post("/api/cart/add", json={"productId": b.id}, headers=user_headers)
        _place(client, user_headers, shipping_address, items=[{"productId": a.id, "quantity": 1}])
        assert [i.product_id for i in CartItem.query.all()] == [b.id]

    def test_empty_cart(self, client, user_headers, shipping_address):
        resp = _place(client, user_headers, shipping_address)
        assert resp.status_code == 422
        assert resp.get_json()["message"] == msg.CART_EMPTY

    def test_insufficient_stock_rolls_back(self, client, user_headers, make_product, shipping_address):
        ok_product, scarce = make_product(stock=5), make_product(name="Bóng hiếm", stock=1)
        resp = _place(client, user_headers, shipping_address, items=[
            {"productId": ok_product.id, "quantity": 1},
            {"productId": scarce.id, "quantity": 2},
        ])
        assert resp.status_code == 409
        assert resp.get_json()["message"] == msg.INSUFFICIENT_STOCK.format(name="Bóng hiếm")
        assert db.session.get(Product, ok_product.id).stock == 5
        assert Order.query.count() == 0

    def test_inactive_product(self, client, user_headers, make_product, shipping_address):
        p = make_product(is_active=False)
        resp = _place(client, user_headers, shipping_address, items=[{"productId": p.id, "quantity": 1}])
        assert resp.status_code == 409
        assert resp.get_json()["message"] == msg.PRODUCT_UNAVAILABLE

    @pytest.mark.parametrize("field,value", [
        ("phone", "12345"),
        ("fullName", ""),
        ("ward", None),
    ])
    def test_address_validation(self, client, user_headers, make_product, shipping_address, field, value):
        p = make_product()
        address = dict(shipping_address, **{field: value})
        resp = _place(client, user_headers, address, items=[{"productId": p.id, "quantity": 1}])
        assert resp.status_code == 400
        assert resp.get_json()["data"] == {"field": field}

    def test_payment_method(self, client, user_headers, make_product, shipping_address):
        p = make_product()
        resp = _place(client, user_headers, shipping_address, paymentMethod="bitcoin",
                      items=[{"productId": p.id, "quantity": 1}])
        assert resp.status_code == 400
        resp = _place(client, user_headers, shipping_address, paymentMethod="MOMO",
                      items=[{"productId": p.id, "quantity": 1}])
        assert resp.get_json()["data"]["paymentMethod"] == "momo"

    def test_with_coupon(self, client, user, user_headers, make_product, make_coupon, shipping_address):
        p = make_product(price=300000)
        c = make_coupon(code="SALE10", value=10)
        data = _place(client, user_headers, shipping_address, couponCode="sale10",
                      items=[{"productId": p.id, "quantity": 2}]).get_json()["data"]
        assert data["subtotal"] == 600000
        assert data["discount"] == 60000
        assert data["shippingFee"] == 0
        assert data["totalPrice"] == 540000
        assert data["couponCode"] == "SALE10"
        assert db.session.get(Coupon, c.id).used_count == 1
        assert CouponUsage.query.filter_by(user_id=user.id, order_id=data["_id"]).count() == 1

    def test_coupon_rejection_keeps_stock(self, client, user_headers, make_product, make_coupon, shipping_address):
        p = make_product(price=100000)
        make_coupon(code="BIG", minimum_purchase_amount=1000000)
        resp = _place(client, user_headers, shipping_address, couponCode="BIG",
                      items=[{"productId": p.id, "quantity": 1}])
        assert resp.status_code == 400
        assert db.session.get(Product, p.id).stock == 10

    @pytest.mark.parametrize("items", [[5], ["abc"], [None]])
    def test_items_must_be_objects(self, client, user_headers, shipping_address, items):
        resp = _place(client, user_headers, shipping_address, items=items)
        assert resp.status_code == 400
        assert resp.get_json()["data"] == {"field": "items"}

    def test_coupon_row_is_locked(self, client, user_headers, make_product, make_coupon, shipping_address,
                                  monkeypatch):
        seen = []
        check = order_service.coupon_service.check_coupon

        def spy(*args, **kw):
            seen.append(kw.get("lock"))
            return check(*args, **kw)

        monkeypatch.setattr(order_service.coupon_service, "check_coupon", spy)
        p = make_product(price=300000)
        make_coupon(code="LOCK10", value=10)
        resp = _place(client, user_headers, shipping_address, couponCode="LOCK10",
                      items=[{"productId": p.id, "quantity": 1}])
        assert resp.status_code == 201
        assert seen == [True]

    def test_requires_login(self, client, shipping_address):
        assert client.post("/api/orders", json={"shippingAddress": shipping_address}).status_code == 401


@pytest.fixture
def placed(client, user_headers, make_product, shipping_address):
    """One pending COD order of 2 x 200000 for the default user."""
    product = make_product(price=200000, stock=10)
    resp = _place(client, user_headers, shipping_address, items=[{"productId": product.id, "quantity": 2}])
    return db.session.get(Order, resp.get_json()["data"]["_id"]), product


class TestMyOrders:
    def test_list_and_detail(self, client, user_headers, placed):
        order, _ = placed
        data = client.get("/api/orders/my-orders", headers=user_headers).get_json()["data"]
        assert [o["_id"] for o in data["orders"]] == [order.id]
        resp = client.get(f"/api/orders/my-orders/{order.id}", headers=user_headers)
        assert resp.get_json()["data"]["shortId"] == order.short_id

    def test_status_filter(self, client, user_headers, placed):
        data = client.get("/api/orders/my-orders?status=delivered", headers=user_headers).get_json()["data"]
        assert data["orders"] == []

    def test_other_users_order_is_hidden(self, client, other_user, placed):
        order, _ = placed
        resp = client.get(f"/api/orders/my-orders/{order.id}", headers=headers_for(other_user))
        assert resp.status_code == 404
        resp = client.put(f"/api/orders/my-orders/{order.id}/cancel", headers=headers_for(other_user))
        assert resp.status_code == 404

    def test_cancel_restocks(self, client, user_headers, placed):
        order, product = placed
        assert product.stock == 8
        resp = client.put(f"/api/orders/my-orders/{order.id}/cancel",
                          json={"reason": "Đổi ý"}, headers=user_headers)
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["status"] == "cancelled"
        assert data["cancelReason"] == "Đổi ý"
        assert [h["status"] for h in data["statusHistory"]] == ["pending", "cancelled"]
        assert db.session.get(Product, product.id).stock == 10

    def test_cannot_cancel_after_confirmation(self, client, admin, user_headers, placed):
        order, _ = placed
        order_service.update_status(order, "processing", actor=admin)
        db.session.commit()
        resp = client.put(f"/api/orders/my-orders/{order.id}/cancel", headers=user_headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == msg.ORDER_CANNOT_CANCEL


class TestAdminOrders:
    def test_full_flow_books_revenue(self, client, admin_headers, user, placed):
        order, product = placed
        for status in ("processing", "shipped", "delivered"):
            resp = client.put(f"/api/orders/{order.id}/status", json={"status": status}, headers=admin_headers)
            assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["status"] == "delivered"
        assert data["paymentStatus"] == "paid"
        assert data["nextStatus"] is None
        assert db.session.get(User, user.id).total_spent == 430000
        assert db.session.get(Product, product.id).sold_count == 2

    def test_cannot_skip_steps(self, client, admin_headers, placed):
        order, _ = placed
        resp = client.put(f"/api/orders/{order.id}/status", json={"status": "delivered"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == msg.ORDER_INVALID_TRANSITION.format(
            current="Chờ xác nhận", target="Đã giao hàng")

    def test_unknown_status(self, client, admin_headers, placed):
        order, _ = placed
        resp = client.put(f"/api/orders/{order.id}/status", json={"status": "lost"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["data"] == {"field": "status"}

    def test_admin_cancel_releases_coupon_and_refunds(self, client, admin_headers, user_headers,
                                                      make_product, make_coupon, shipping_address):
        p = make_product(price=300000)
        c = make_coupon(code="SALE10")
        data = _place(client, user_headers, shipping_address, couponCode="SALE10", paymentMethod="banking",
                      items=[{"productId": p.id, "quantity": 2}]).get_json()["data"]
        order = db.session.get(Order, data["_id"])
        order.payment_status = "paid"
        db.session.commit()
        client.put(f"/api/orders/{order.id}/status", json={"status": "processing"}, headers=admin_headers)
        resp = client.put(f"/api/orders/{order.id}/status",
                          json={"status": "cancelled", "reason": "Hết hàng"}, headers=admin_headers)
        data = resp.get_json()["data"]
        assert data["status"] == "cancelled"
        assert data["paymentStatus"] == "refunded"
        assert db.session.get(Coupon, c.id).used_count == 0
        assert CouponUsage.query.count() == 0
        assert db.session.get(Product, p.id).stock == 10

    def test_shipped_order_cannot_be_cancelled(self, client, admin, admin_headers, placed):
        order, _ = placed
        order_service.update_status(order, "processing", actor=admin)
        order_service.update_status(order, "shipped", actor=admin)
        db.session.commit()
        resp = client.put(f"/api/orders/{order.id}/status", json={"status": "cancelled"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_list_filters(self, client, admin_headers, user_headers, other_user, placed, make_product,
                          shipping_address):
        order, _ = placed
        p = make_product()
        _place(client, headers_for(other_user), shipping_address, paymentMethod="momo",
               items=[{"productId": p.id, "quantity": 1}])

        def ids(**params):
            resp = client.get("/api/orders/admin", query_string=params, headers=admin_headers)
            return [o["_id"] for o in resp.get_json()["data"]["orders"]]

        assert len(ids()) == 2
        assert ids(keyword="khach@example") == [order.id]
        assert ids(keyword=order.short_id) == [order.id]
        assert ids(paymentMethod="cod") == [order.id]
        assert ids(status="cancelled") == []

    def test_bad_date_filter(self, client, admin_headers):
        resp = client.get("/api/orders/admin?startDate=19-10-2026", headers=admin_headers)
        assert resp.status_code == 400

    def test_requires_admin(self, client, user_headers, placed):
        order, _ = placed
        assert client.get(f"/api/orders/{order.id}", headers=user_headers).status_code == 403
        assert client.get("/api/orders/admin", headers=user_headers).status_code == 403
