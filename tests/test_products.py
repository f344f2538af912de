# tests/test_products.py
from io import BytesIO

import pandas as pd
import pytest

from sportstore import messages as msg
from sportstore.errors import ApiError
from sportstore.extensions import db
from sportstore.model import CartItem, Category, Favorite, Product
from sportstore.services import product_io
from sportstore.services.search_service import HOT_KEYWORDS, MAX_SUGGESTIONS, suggest


def _product_body(**overrides):
    body = {
        "name": "Giày Nike Mercurial",
        "description": "Giày bóng đá sân cỏ nhân tạo",
        "sku": "nk-merc-01",
        "price": 1500000,
        "discountPrice": 1290000,
        "stock": 20,
        "brand": "Nike",
        "sizes": ["40", "41", "42"],
        "images": ["https://cdn.example.com/merc-1.jpg", "https://cdn.example.com/merc-2.jpg"],
    }
    body.update(overrides)
    return body


class TestPublicCatalogue:
    def test_list_only_active(self, client, make_product):
        make_product(name="Áo đấu")
        make_product(name="Ẩn", is_active=False)
        resp = client.get("/api/products")
        data = resp.get_json()["data"]
        assert [p["name"] for p in data["products"]] == ["Áo đấu"]
        assert data["pagination"] == {"total": 1, "page": 1, "limit": 10, "totalPages": 1}

    def test_admin_can_list_inactive(self, client, make_product, admin_headers):
        make_product(is_active=False)
        resp = client.get("/api/products?isActive=false", headers=admin_headers)
        assert resp.get_json()["data"]["pagination"]["total"] == 1

    def test_filters_and_sort(self, client, make_product, category):
        make_product(name="Bóng rổ Spalding", price=500000, brand="Spalding")
        make_product(name="Giày Adidas", price=900000, brand="Adidas", category_id=category.id)
        make_product(name="Giày Puma", price=1200000, brand="Puma", category_id=category.id)

        resp = client.get(f"/api/products?category={category.slug}&sort=price&order=asc")
        assert [p["name"] for p in resp.get_json()["data"]["products"]] == ["Giày Adidas", "Giày Puma"]

        resp = client.get("/api/products?minPrice=600000&maxPrice=1000000")
        assert [p["brand"] for p in resp.get_json()["data"]["products"]] == ["Adidas"]

        resp = client.get("/api/products", query_string={"keyword": "giày", "brand": "puma"})
        assert [p["name"] for p in resp.get_json()["data"]["products"]] == ["Giày Puma"]

    def test_limit_is_capped(self, client, make_product):
        make_product()
        assert client.get("/api/products?limit=1000").get_json()["data"]["pagination"]["limit"] == 100

    def test_by_sku_counts_views(self, client, make_product):
        p = make_product(sku="AD-001")
        client.get("/api/products/sku/ad-001")
        resp = client.get("/api/products/sku/AD-001")
        assert resp.get_json()["data"]["viewCount"] == 2
        assert db.session.get(Product, p.id).view_count == 2

    def test_missing_product(self, client):
        resp = client.get("/api/products/999")
        assert resp.status_code == 404
        assert resp.get_json()["message"] == msg.PRODUCT_NOT_FOUND

    def test_featured(self, client, make_product):
        make_product(name="Nổi bật", is_featured=True)
        make_product(name="Thường")
        names = [p["name"] for p in client.get("/api/products/featured").get_json()["data"]["products"]]
        assert names == ["Nổi bật"]


class TestSearch:
    def test_suggestions_ignore_case_and_accents(self):
        assert suggest("GIAY", ["Giày bóng đá", "Áo đấu"]) == ["Giày bóng đá"]
        assert suggest("bong", HOT_KEYWORDS) == ["giày bóng đá", "bóng rổ"]
        assert suggest("   ", HOT_KEYWORDS) == []

    def test_suggestions_are_capped(self):
        assert len(suggest("a", [f"a{i}" for i in range(20)])) == MAX_SUGGESTIONS

    def test_suggestions_drop_duplicates(self):
        assert suggest("nike", ["Nike", "NIKE", "nike"]) == ["Nike"]

    def test_search_endpoint(self, client, make_product, category):
        make_product(name="Giày Nike Tiempo", brand="Nike")
        make_product(name="Vợt tennis Wilson")
        data = client.get("/api/products/search?keyword=nike").get_json()["data"]
        assert [p["name"] for p in data["products"]] == ["Giày Nike Tiempo"]
        assert "Nike" in data["suggestions"]

        data = client.get("/api/products/search?keyword=giay").get_json()["data"]
        assert data["suggestions"][0] == category.name

    def test_empty_keyword(self, client):
        assert client.get("/api/products/search").get_json()["data"] == {"products": [], "suggestions": []}


class TestAdminProducts:
    def test_create(self, client, admin_headers, category):
        resp = client.post("/api/products", json=_product_body(categoryId=category.id), headers=admin_headers)
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["sku"] == "NK-MERC-01"
        assert data["slug"] == "giay-nike-mercurial"
        assert data["salePrice"] == 1290000
        assert data["mainImage"] == "https://cdn.example.com/merc-1.jpg"
        assert data["category"]["_id"] == category.id

    def test_requires_admin(self, client, user_headers):
        assert client.post("/api/products", json=_product_body(), headers=user_headers).status_code == 403

    def test_duplicate_sku(self, client, admin_headers, make_product):
        make_product(sku="NK-MERC-01")
        resp = client.post("/api/products", json=_product_body(), headers=admin_headers)
        assert resp.status_code == 409
        assert resp.get_json()["message"] == msg.SKU_EXISTS

    @pytest.mark.parametrize("overrides,field", [
        ({"name": ""}, "name"),
        ({"name": "x" * 201}, "name"),
        ({"description": ""}, "description"),
        ({"price": -1}, "price"),
        ({"stock": 1.5}, "stock"),
        ({"discountPrice": 1500000}, "discountPrice"),
    ])
    def test_validation(self, client, admin_headers, overrides, field):
        resp = client.post("/api/products", json=_product_body(**overrides), headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["data"] == {"field": field}

    def test_update_checks_discount_against_stored_price(self, client, admin_headers, make_product):
        p = make_product(price=300000)
        resp = client.put(f"/api/products/{p.id}", json={"discountPrice": 350000}, headers=admin_headers)
        assert resp.status_code == 400
        resp = client.put(f"/api/products/{p.id}", json={"discountPrice": 250000, "name": "Tên mới"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["slug"] == "ten-moi"

    def test_toggle_status_and_featured(self, client, admin_headers, make_product):
        p = make_product(sku="TG-1")
        resp = client.patch(f"/api/products/admin/{p.id}/toggle-status", headers=admin_headers)
        assert resp.get_json()["data"]["isActive"] is False
        resp = client.put("/api/products/sku/TG-1/featured", json={"isFeatured": True}, headers=admin_headers)
        assert resp.get_json()["data"]["isFeatured"] is True

    def test_delete_cleans_up(self, client, admin_headers, make_product, user):
        pid = make_product().id
        db.session.add(Favorite(user_id=user.id, product_id=pid))
        db.session.commit()
        resp = client.delete(f"/api/products/{pid}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(Product, pid) is None
        assert Favorite.query.count() == 0
        assert CartItem.query.count() == 0

    def test_bulk_delete(self, client, admin_headers, make_product):
        ids = [make_product().id for _ in range(3)]
        resp = client.post("/api/products/bulk-delete", json={"productIds": ids[:2]}, headers=admin_headers)
        assert resp.get_json()["data"] == {"deletedCount": 2}
        assert Product.query.count() == 1


class TestSpreadsheet:
    def test_export(self, client, admin_headers, make_product, category):
        make_product(sku="EX-1", name="Áo Real", category_id=category.id, sizes=["M", "L"])
        resp = client.get("/api/products/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.mimetype == product_io.XLSX_MIMETYPE
        df = pd.read_excel(BytesIO(resp.data))
        assert list(df.columns) == product_io.COLUMNS
        row = df.iloc[0]
        assert row["SKU"] == "EX-1"
        assert row["Category"] == category.name
        assert row["Sizes"] == "M, L"

    def test_import_upserts_by_sku(self, app, make_product):
        make_product(sku="IM-1", name="Cũ", price=100000)
        df = pd.DataFrame([
            {"SKU": "im-1", "Name": "Mới", "Price": 150000, "Stock": 5, "Category": "Phụ kiện"},
            {"SKU": "IM-2", "Name": "Băng đô", "Price": 50000, "Stock": 30, "Category": "Phụ kiện"},
            {"SKU": "", "Name": "Thiếu SKU", "Price": 1, "Stock": 1, "Category": None},
            {"SKU": "IM-3", "Name": "Giá sai", "Price": "abc", "Stock": 1, "Category": None},
        ])
        result = product_io.import_frame(df)
        db.session.commit()
        assert result["created"] == 1
        assert result["updated"] == 1
        assert [e["row"] for e in result["errors"]] == [4, 5]
        assert Product.query.filter_by(sku="IM-1").one().name == "Mới"
        assert Category.query.filter_by(name="Phụ kiện").count() == 1

    def test_bad_discount_cell_only_rejects_its_row(self, app):
        df = pd.DataFrame([
            {"SKU": "OK1", "Name": "Tất", "Price": 40000, "Stock": 9, "Discount Price": 30000},
            {"SKU": "BAD", "Name": "Găng", "Price": 90000, "Stock": 2, "Discount Price": "abc"},
        ])
        result = product_io.import_frame(df)
        db.session.commit()
        assert result["created"] == 1
        assert [e["row"] for e in result["errors"]] == [3]
        assert Product.query.filter_by(sku="OK1").one().discount_price == 30000
        assert Product.query.filter_by(sku="BAD").first() is None

    def test_import_requires_columns(self, app):
        with pytest.raises(ApiError, match="Price"):
            product_io.import_frame(pd.DataFrame([{"SKU": "A"}]))

    def test_import_endpoint_rejects_other_files(self, client, admin_headers):
        resp = client.post(
            "/api/products/import",
            data={"file": (BytesIO(b"a,b"), "products.csv")},
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_import_endpoint(self, client, admin_headers):
        buf = BytesIO()
        pd.DataFrame([{"SKU": "UP-1", "Name": "Bóng", "Price": 300000, "Stock": 4}]).to_excel(buf, index=False)
        buf.seek(0)
        resp = client.post(
            "/api/products/import",
            data={"file": (buf, "products.xlsx")},
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["created"] == 1
        assert Product.query.filter_by(sku="UP-1").one().stock == 4
