# tests/test_reviews.py
from sportstore import messages as msg
from sportstore.extensions import db
from sportstore.model import Order, OrderItem, Review
from sportstore.services.review_service import rating_summary

from .conftest import headers_for


def _review(user, product, rating, **kw):
    r = Review(
        user_id=user.id,
        product_id=product.id,
        rating=rating,
        title=kw.pop("title", "Sản phẩm tốt"),
        content=kw.pop("content", "Chất lượng ổn so với giá tiền"),
        **kw,
    )
    db.session.add(r)
    db.session.commit()
    return r


def _delivered_order(user, product, shipping_address):
    o = Order(
        short_id="ORD-20260101-AAAAAA",
        user_id=user.id,
        status="delivered",
        shipping_address=shipping_address,
        subtotal=product.price,
        total=product.price,
        items=[OrderItem(product_id=product.id, sku=product.sku, name=product.name,
                         unit_price=product.price, quantity=1, line_total=product.price)],
    )
    db.session.add(o)
    db.session.commit()
    return o


class TestRatingSummary:
    def test_empty(self, app):
        assert rating_summary(1) == {
            "averageRating": 0,
            "totalReviews": 0,
            "ratingDistribution": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
        }

    def test_counts_public_reviews(self, user, other_user, admin, make_product):
        p = make_product()
        _review(user, p, 5)
        _review(other_user, p, 4)
        _review(admin, p, 1, is_public=False)
        summary = rating_summary(p.id)
        assert summary["averageRating"] == 4.5
        assert summary["totalReviews"] == 2
        assert summary["ratingDistribution"]["5"] == 1
        assert summary["ratingDistribution"]["1"] == 0
        assert rating_summary(p.id, public_only=False)["totalReviews"] == 3


class TestPublicReviews:
    def test_create(self, client, user_headers, make_product):
        p = make_product()
        body = {"productId": p.id, "rating": 5, "title": "Rất êm", "content": "Đi đá bóng rất êm chân",
                "images": [f"https://cdn.example.com/r{i}.jpg" for i in range(7)]}
        resp = client.post("/api/reviews/create", json=body, headers=user_headers)
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["isVerified"] is False
        assert len(data["images"]) == 5

        resp = client.post("/api/reviews/create", json=body, headers=user_headers)
        assert resp.status_code == 409
        assert resp.get_json()["message"] == msg.REVIEW_EXISTS

    def test_verified_after_delivery(self, client, user, user_headers, make_product, shipping_address):
        p = make_product()
        order = _delivered_order(user, p, shipping_address)
        body = {"productId": p.id, "rating": 4, "title": "Ổn", "content": "Giao hàng nhanh, đóng gói kỹ"}
        data = client.post("/api/reviews/create", json=body, headers=user_headers).get_json()["data"]
        assert data["isVerified"] is True
        assert data["orderId"] == order.id

    def test_validation(self, client, user_headers, make_product):
        p = make_product()
        base = {"productId": p.id, "rating": 5, "title": "Tốt", "content": "Nội dung đủ dài"}
        for overrides, field in (({"rating": 6}, "rating"), ({"content": "ngắn"}, "content"), ({"title": ""}, "title")):
            resp = client.post("/api/reviews/create", json=dict(base, **overrides), headers=user_headers)
            assert resp.status_code == 400
            assert resp.get_json()["data"] == {"field": field}
        resp = client.post("/api/reviews/create", json=dict(base, productId=999), headers=user_headers)
        assert resp.status_code == 404

    def test_list_by_sku_hides_private(self, client, user, other_user, make_product):
        p = make_product(sku="RV-1")
        _review(user, p, 5)
        _review(other_user, p, 3, is_public=False)
        data = client.get("/api/reviews?product=rv-1").get_json()["data"]
        assert [r["rating"] for r in data["reviews"]] == [5]
        assert data["summary"]["totalReviews"] == 1
        assert client.get(f"/api/reviews?product={p.id}&rating=3").get_json()["data"]["reviews"] == []

    def test_unknown_product(self, client):
        assert client.get("/api/reviews?product=NOPE").status_code == 404

    def test_owner_delete(self, client, user, other_user, make_product):
        r = _review(user, make_product(), 5)
        rid = r.id
        assert client.delete(f"/api/reviews/delete/{rid}", headers=headers_for(other_user)).status_code == 403
        assert client.delete(f"/api/reviews/delete/{rid}", headers=headers_for(user)).status_code == 200
        assert db.session.get(Review, rid) is None


class TestAdminReviews:
    def test_list_filters(self, client, admin_headers, user, other_user, make_product):
        p = make_product(name="Vợt cầu lông Yonex")
        _review(user, p, 5, is_verified=True)
        _review(other_user, p, 2, content="Cước căng không đều, hơi thất vọng")
        resp = client.get("/api/reviews/admin?isVerified=true", headers=admin_headers)
        assert [r["rating"] for r in resp.get_json()["data"]["reviews"]] == [5]
        resp = client.get("/api/reviews/admin", query_string={"keyword": "thất vọng"}, headers=admin_headers)
        assert [r["rating"] for r in resp.get_json()["data"]["reviews"]] == [2]
        resp = client.get("/api/reviews/admin", query_string={"keyword": "Yonex"}, headers=admin_headers)
        assert resp.get_json()["data"]["pagination"]["total"] == 2

    def test_stats(self, client, admin_headers, user, other_user, make_product):
        p = make_product()
        _review(user, p, 5, is_verified=True, admin_reply="Cảm ơn bạn")
        _review(other_user, p, 3, is_public=False)
        data = client.get("/api/reviews/admin/stats", headers=admin_headers).get_json()["data"]
        assert data["totalReviews"] == 2
        assert data["averageRating"] == 4.0
        assert data["verifiedReviews"] == 1
        assert data["hiddenReviews"] == 1
        assert data["repliedReviews"] == 1

    def test_update_flags(self, client, admin_headers, user, make_product):
        r = _review(user, make_product(), 4)
        resp = client.put(f"/api/reviews/admin/{r.id}", json={"isPublic": False, "isVerified": True},
                          headers=admin_headers)
        data = resp.get_json()["data"]
        assert data["isPublic"] is False
        assert data["isVerified"] is True

    def test_update_flags_reads_string_booleans(self, client, admin_headers, user, make_product):
        r = _review(user, make_product(), 4)
        resp = client.put(f"/api/reviews/admin/{r.id}", json={"isPublic": "false", "isVerified": "0"},
                          headers=admin_headers)
        data = resp.get_json()["data"]
        assert data["isPublic"] is False
        assert data["isVerified"] is False

    def test_reply_lifecycle(self, client, admin_headers, user, make_product):
        r = _review(user, make_product(), 4)
        url = f"/api/reviews/admin/{r.id}/reply"
        assert client.put(f"{url}/update", json={"content": "Sửa"}, headers=admin_headers).status_code == 404

        resp = client.put(url, json={"content": "Cảm ơn bạn đã ủng hộ"}, headers=admin_headers)
        assert resp.get_json()["data"]["adminReply"]["content"] == "Cảm ơn bạn đã ủng hộ"
        resp = client.put(f"{url}/update", json={"content": "Shop cảm ơn"}, headers=admin_headers)
        assert resp.get_json()["data"]["adminReply"]["content"] == "Shop cảm ơn"
        resp = client.delete(url, headers=admin_headers)
        assert resp.get_json()["data"]["adminReply"] is None

        assert client.put(url, json={"content": ""}, headers=admin_headers).status_code == 400

    def test_delete_and_bulk_delete(self, client, admin_headers, user, other_user, admin, make_product):
        p = make_product()
        ids = [_review(u, p, 5).id for u in (user, other_user, admin)]
        assert client.delete(f"/api/reviews/admin/{ids[0]}", headers=admin_headers).status_code == 200
        resp = client.delete("/api/reviews/admin/bulk-delete", json={"reviewIds": ids[1:]}, headers=admin_headers)
        assert resp.get_json()["data"] == {"deletedCount": 2}
        assert Review.query.count() == 0

    def test_requires_admin(self, client, user_headers):
        assert client.get("/api/reviews/admin", headers=user_headers).status_code == 403
