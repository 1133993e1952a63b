"""
Product API tests: multipart + JSON create/update, listing, stats,
image uploads and the health endpoint.
"""

import json
import os

from garment_erp.extensions import db
from garment_erp.models import Product, ProductVariant
from garment_erp.services import image_storage
from tests.conftest import create_product, make_variants, png_upload


def _multipart(client, method, url, headers, **fields):
    return getattr(client, method)(
        url,
        data=fields,
        headers=headers,
        content_type="multipart/form-data",
    )


# ============================================================================
# Create
# ============================================================================

class TestCreateProductAPI:

    def test_multipart_create_with_image(self, client, admin_headers, app):
        resp = _multipart(
            client, "post", "/api/products", admin_headers,
            serial_number="FL-2024-001",
            price="129.90",
            composition="95% cotton, 5% elastane",
            variants=json.dumps(make_variants(("Black", "S", 5), ("Black", "M", 0))),
            image=png_upload(),
        )

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["serial_number"] == "FL-2024-001"
        assert product["price"] == 129.9
        assert product["created_by_username"] == "admin"
        assert len(product["variants"]) == 2
        assert product["image_url"].startswith("/uploads/clothing-")
        assert os.path.exists(image_storage.path_for(product["image_url"]))

    def test_json_create_without_image(self, client, user_headers):
        resp = client.post("/api/products", json={
            "serial_number": "FL-JSON",
            "price": 15,
            "variants": make_variants(("Navy", "L", 2)),
        }, headers=user_headers)

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["image_url"] is None
        assert product["composition"] is None
        assert product["total_quantity"] == 2

    def test_missing_variants(self, client, user_headers):
        resp = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-NOVAR",
            price="5",
        )

        assert resp.status_code == 400
        assert db.session.query(Product).count() == 0

    def test_malformed_variants_json(self, client, user_headers):
        resp = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-BADJSON",
            price="5",
            variants="[{not json",
        )
        assert resp.status_code == 400

    def test_quantity_beyond_column_range(self, client, user_headers, app):
        folder = app.config["UPLOAD_FOLDER"]
        files_before = set(os.listdir(folder)) if os.path.isdir(folder) else set()

        resp = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-HUGEQTY",
            price="5",
            variants=json.dumps([{"color": "Black", "size": "S", "quantity": 10**20}]),
            image=png_upload(),
        )

        assert resp.status_code == 400
        assert "quantity" in resp.get_json()["error"]
        assert db.session.query(Product).count() == 0
        files_after = set(os.listdir(folder)) if os.path.isdir(folder) else set()
        assert files_after == files_before

    def test_update_quantity_beyond_column_range(self, client, user_headers):
        product = create_product()

        resp = client.put(f"/api/products/{product['id']}", json={
            "variants": [{"color": "Black", "size": "S", "quantity": 10**20}],
        }, headers=user_headers)

        assert resp.status_code == 400
        assert db.session.query(ProductVariant).filter_by(product_id=product["id"]).count() == 2

    def test_unknown_field_rejected(self, client, user_headers):
        resp = client.post("/api/products", json={
            "serial_number": "FL-X",
            "price": "5",
            "owner": "me",
            "variants": make_variants(("Black", "S", 1)),
        }, headers=user_headers)

        assert resp.status_code == 400
        assert "owner" in resp.get_json()["error"]

    def test_bad_image_type(self, client, user_headers):
        resp = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-PDF",
            price="5",
            variants=json.dumps(make_variants(("Black", "S", 1))),
            image=png_upload(name="size-chart.pdf", mimetype="application/pdf"),
        )

        assert resp.status_code == 400
        assert db.session.query(Product).count() == 0

    def test_oversized_image(self, client, user_headers, app):
        resp = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-HUGE",
            price="5",
            variants=json.dumps(make_variants(("Black", "S", 1))),
            image=png_upload(size=app.config["MAX_IMAGE_BYTES"] + 1),
        )

        assert resp.status_code == 400
        assert db.session.query(Product).count() == 0

    def test_duplicate_serial(self, client, user_headers):
        create_product(serial_number="FL-DUP")

        resp = client.post("/api/products", json={
            "serial_number": "FL-DUP",
            "price": "5",
            "variants": make_variants(("Red", "S", 1)),
        }, headers=user_headers)

        assert resp.status_code == 400
        assert resp.get_json()["field"] == "serial_number"
        assert db.session.query(Product).count() == 1

    def test_requires_auth(self, client, db_session):
        resp = client.post("/api/products", json={})
        assert resp.status_code == 401


# ============================================================================
# Read / list
# ============================================================================

class TestReadProductAPI:

    def test_get_product(self, client, user_headers):
        product = create_product()

        resp = client.get(f"/api/products/{product['id']}", headers=user_headers)

        assert resp.status_code == 200
        assert resp.get_json()["product"]["serial_number"] == "FL-001"

    def test_get_missing_product(self, client, user_headers):
        resp = client.get("/api/products/9999", headers=user_headers)
        assert resp.status_code == 404

    def test_list_pagination(self, client, user_headers):
        for i in range(25):
            create_product(serial_number=f"FL-{i:03d}")

        resp = client.get("/api/products?page=2&limit=20", headers=user_headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert len(data["items"]) == 5
        assert data["pagination"] == {"page": 2, "limit": 20, "total": 25, "totalPages": 2}

    def test_list_limit_capped(self, client, user_headers):
        resp = client.get("/api/products?limit=500", headers=user_headers)
        assert resp.get_json()["pagination"]["limit"] == 100

    def test_list_filters(self, client, user_headers):
        create_product(serial_number="TS-1", variants=make_variants(("Black", "S", 1), ("Black", "M", 1)))
        create_product(serial_number="TS-2", variants=make_variants(("White", "S", 1)))

        resp = client.get("/api/products?color=bla", headers=user_headers)
        items = resp.get_json()["items"]
        assert [p["serial_number"] for p in items] == ["TS-1"]

        resp = client.get("/api/products?size=S", headers=user_headers)
        assert resp.get_json()["pagination"]["total"] == 2

        resp = client.get("/api/products?search=TS-2", headers=user_headers)
        assert [p["serial_number"] for p in resp.get_json()["items"]] == ["TS-2"]

    def test_stats_summary(self, client, user_headers):
        create_product(price="10.00", variants=make_variants(("Black", "S", 2), ("White", "M", 1)))

        resp = client.get("/api/products/stats/summary", headers=user_headers)

        assert resp.status_code == 200
        assert resp.get_json() == {
            "totalProducts": 1,
            "totalQuantity": 3,
            "totalValue": 30.0,
            "uniqueColors": 2,
            "uniqueSizes": 2,
        }


# ============================================================================
# Update
# ============================================================================

class TestUpdateProductAPI:

    def test_partial_json_update(self, client, user_headers):
        product = create_product(price="10.00", composition="linen")

        resp = client.put(f"/api/products/{product['id']}", json={"price": "11.00"}, headers=user_headers)

        assert resp.status_code == 200
        updated = resp.get_json()["product"]
        assert updated["price"] == 11.0
        assert updated["composition"] == "linen"
        assert len(updated["variants"]) == 2

    def test_multipart_update_replaces_variants(self, client, user_headers):
        product = create_product()

        resp = _multipart(
            client, "put", f"/api/products/{product['id']}", user_headers,
            variants=json.dumps(make_variants(("Grey", "XXL", 4))),
        )

        assert resp.status_code == 200
        variants = resp.get_json()["product"]["variants"]
        assert [(v["color"], v["size"], v["quantity"]) for v in variants] == [("Grey", "XXL", 4)]
        assert db.session.query(ProductVariant).filter_by(product_id=product["id"]).count() == 1

    def test_update_with_image_swaps_file(self, client, user_headers):
        created = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-PIC",
            price="5",
            variants=json.dumps(make_variants(("Black", "S", 1))),
            image=png_upload(name="a.png"),
        ).get_json()["product"]

        resp = _multipart(
            client, "put", f"/api/products/{created['id']}", user_headers,
            image=png_upload(name="b.webp", mimetype="image/webp"),
        )

        assert resp.status_code == 200
        updated = resp.get_json()["product"]
        assert updated["image_url"].endswith(".webp")
        assert not os.path.exists(image_storage.path_for(created["image_url"]))
        assert os.path.exists(image_storage.path_for(updated["image_url"]))

    def test_update_duplicate_serial(self, client, user_headers):
        create_product(serial_number="FL-A")
        other = create_product(serial_number="FL-B")

        resp = client.put(f"/api/products/{other['id']}", json={"serial_number": "FL-A"}, headers=user_headers)

        assert resp.status_code == 400
        assert resp.get_json()["field"] == "serial_number"

    def test_update_invalid_variants_keeps_old(self, client, user_headers):
        product = create_product()

        resp = client.put(f"/api/products/{product['id']}", json={
            "variants": [{"color": "Black", "size": "S", "quantity": "lots"}],
        }, headers=user_headers)

        assert resp.status_code == 400
        assert db.session.query(ProductVariant).filter_by(product_id=product["id"]).count() == 2

    def test_update_missing_product(self, client, user_headers):
        resp = client.put("/api/products/9999", json={"price": "1"}, headers=user_headers)
        assert resp.status_code == 404


# ============================================================================
# Delete
# ============================================================================

class TestDeleteProductAPI:

    def test_delete_product_and_image(self, client, user_headers):
        created = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-DEL",
            price="5",
            variants=json.dumps(make_variants(("Black", "S", 1), ("White", "S", 2))),
            image=png_upload(),
        ).get_json()["product"]
        image_path = image_storage.path_for(created["image_url"])

        resp = client.delete(f"/api/products/{created['id']}", headers=user_headers)

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Product deleted"}
        assert db.session.query(ProductVariant).filter_by(product_id=created["id"]).count() == 0
        assert not os.path.exists(image_path)

        resp = client.get(f"/api/products/{created['id']}", headers=user_headers)
        assert resp.status_code == 404

    def test_delete_missing_product(self, client, user_headers):
        resp = client.delete("/api/products/9999", headers=user_headers)
        assert resp.status_code == 404


# ============================================================================
# System
# ============================================================================

class TestSystemRoutes:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "OK"
        assert data["timestamp"].endswith("Z")

    def test_uploaded_image_is_served(self, client, user_headers):
        created = _multipart(
            client, "post", "/api/products", user_headers,
            serial_number="FL-SERVE",
            price="5",
            variants=json.dumps(make_variants(("Black", "S", 1))),
            image=png_upload(),
        ).get_json()["product"]

        resp = client.get(created["image_url"])

        assert resp.status_code == 200
        assert resp.data.startswith(b"\x89PNG")

    def test_missing_upload(self, client, db_session):
        resp = client.get("/uploads/clothing-missing.png")
        assert resp.status_code == 404

    def test_cors_headers(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
