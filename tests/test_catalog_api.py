import pytest
from bson import ObjectId


def _product_body(collection_id, **overrides):
    body = {
        "title": "Cargo Pants",
        "description": "Relaxed fit cargo pants",
        "images": ["https://cdn.example.com/cargo.jpg"],
        "collection": str(collection_id),
        "price": 450,
        "sizes": [" s", "m "],
        "colors": [" Olive "],
        "stock": 20,
    }
    body.update(overrides)
    return body


class TestCollections:
    def test_create_and_list(self, client, admin_headers):
        created = client.post("/api/collections", json={"name": "Winter", "description": "Heavy knits"},
                              headers=admin_headers)

        assert created.status_code == 201
        listing = client.get("/api/collections").json()
        assert listing["count"] == 1
        assert listing["data"][0]["name"] == "Winter"
        assert listing["data"][0]["isActive"] is True

    def test_create_requires_admin(self, client):
        response = client.post("/api/collections", json={"name": "Winter"})

        assert response.status_code == 401

    def test_duplicate_name_ignores_case(self, client, collection_id, admin_headers):
        response = client.post("/api/collections", json={"name": "summer drop"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "name", "message": "Collection with this name already exists"}]

    def test_name_with_regex_characters(self, client, admin_headers):
        client.post("/api/collections", json={"name": "Tees (Basic)"}, headers=admin_headers)

        response = client.post("/api/collections", json={"name": "Tees (basic)"}, headers=admin_headers)
        other = client.post("/api/collections", json={"name": "Tees Basic"}, headers=admin_headers)

        assert response.status_code == 400
        assert other.status_code == 201

    def test_rename_to_own_name_allowed(self, client, collection_id, admin_headers):
        response = client.put(f"/api/collections/{collection_id}", json={"name": "SUMMER DROP"},
                              headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "SUMMER DROP"

    @pytest.mark.parametrize("field", ["name", "isActive"])
    def test_update_rejects_null(self, client, db, collection_id, admin_headers, field):
        response = client.put(f"/api/collections/{collection_id}", json={field: None}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": field, "message": "Field cannot be null"}]
        stored = db["collection"].find_one({"_id": collection_id})
        assert stored["name"] == "Summer Drop"
        assert stored["isActive"] is True

    def test_update_clears_description(self, client, collection_id, admin_headers):
        response = client.put(f"/api/collections/{collection_id}", json={"description": None},
                              headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["description"] is None

    def test_inactive_collection_hidden(self, client, collection_id, admin_headers):
        client.put(f"/api/collections/{collection_id}", json={"isActive": False}, headers=admin_headers)

        assert client.get(f"/api/collections/{collection_id}").status_code == 404
        assert client.get("/api/collections").json()["count"] == 0

    def test_delete_blocked_while_products_exist(self, client, collection_id, make_product, admin_headers):
        make_product()
        make_product()

        response = client.delete(f"/api/collections/{collection_id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Cannot delete collection with 2 product(s). Please delete products first."
        )

    def test_delete_empty_collection(self, client, db, collection_id, admin_headers):
        response = client.delete(f"/api/collections/{collection_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Collection deleted successfully"
        assert db["collection"].count_documents({}) == 0

    def test_unknown_collection(self, client, admin_headers):
        assert client.get(f"/api/collections/{ObjectId()}").status_code == 404
        assert client.delete(f"/api/collections/{ObjectId()}", headers=admin_headers).status_code == 404


class TestProducts:
    def test_create_normalizes_options(self, client, collection_id, admin_headers):
        response = client.post("/api/products", json=_product_body(collection_id), headers=admin_headers)

        assert response.status_code == 201
        product = response.json()["data"]
        assert product["sizes"] == ["S", "M"]
        assert product["colors"] == ["Olive"]
        assert product["salesCount"] == 0
        assert product["collection"] == {"id": str(collection_id), "name": "Summer Drop"}

    def test_unknown_collection(self, client, admin_headers):
        response = client.post("/api/products", json=_product_body(ObjectId()), headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "collection", "message": "Invalid collection ID"}]

    def test_original_price_must_exceed_price(self, client, collection_id, admin_headers):
        response = client.post("/api/products", json=_product_body(collection_id, originalPrice=400),
                               headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "Original price must be greater than current price"

    def test_image_must_be_url(self, client, collection_id, admin_headers):
        response = client.post("/api/products", json=_product_body(collection_id, images=["cargo.jpg"]),
                               headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "images"

    def test_list_filters_and_sorts(self, client, collection_id, make_product):
        make_product(title="Cheap", price=50.0)
        make_product(title="Mid", price=150.0)
        make_product(title="Dear", price=900.0)
        make_product(title="Hidden", price=100.0, is_active=False)

        by_price = client.get("/api/products", params={"sort": "price-desc"}).json()
        ranged = client.get("/api/products", params={"minPrice": 100, "maxPrice": 500}).json()
        scoped = client.get("/api/products", params={"collection": str(collection_id)}).json()

        assert [p["title"] for p in by_price["data"]] == ["Dear", "Mid", "Cheap"]
        assert [p["title"] for p in ranged["data"]] == ["Mid"]
        assert scoped["count"] == 3

    def test_popular_sort_uses_sales(self, client, db, make_product):
        slow = make_product(title="Slow")
        fast = make_product(title="Fast")
        db["product"].update_one({"_id": fast}, {"$set": {"salesCount": 12}})
        db["product"].update_one({"_id": slow}, {"$set": {"salesCount": 3}})

        titles = [p["title"] for p in client.get("/api/products", params={"sort": "popular"}).json()["data"]]

        assert titles == ["Fast", "Slow"]

    def test_get_expands_collection(self, client, collection_id, make_product):
        product_id = make_product(title="Linen Shirt")

        response = client.get(f"/api/products/{product_id}")

        assert response.json()["data"]["collection"] == {
            "id": str(collection_id),
            "name": "Summer Drop",
            "description": "Light fabrics",
        }

    def test_inactive_product_not_found(self, client, make_product):
        product_id = make_product(is_active=False)

        assert client.get(f"/api/products/{product_id}").status_code == 404

    def test_partial_update(self, client, db, make_product, admin_headers):
        product_id = make_product(title="Tee", price=100.0)

        response = client.put(f"/api/products/{product_id}", json={"price": 80, "originalPrice": 100},
                              headers=admin_headers)

        assert response.status_code == 200
        stored = db["product"].find_one({"_id": product_id})
        assert stored["price"] == 80
        assert stored["originalPrice"] == 100
        assert stored["title"] == "Tee"

    def test_update_checked_against_stored_price(self, client, make_product, admin_headers):
        product_id = make_product(price=100.0)

        response = client.put(f"/api/products/{product_id}", json={"originalPrice": 90}, headers=admin_headers)

        assert response.status_code == 400

    def test_update_moves_collection(self, client, db, make_product, admin_headers):
        product_id = make_product()
        other = client.post("/api/collections", json={"name": "Archive"}, headers=admin_headers).json()["data"]

        response = client.put(f"/api/products/{product_id}", json={"collectionId": other["id"]},
                              headers=admin_headers)

        assert response.json()["data"]["collection"]["name"] == "Archive"
        assert db["product"].find_one({"_id": product_id})["collection"] == ObjectId(other["id"])

    def test_delete(self, client, db, make_product, admin_headers):
        product_id = make_product()

        response = client.delete(f"/api/products/{product_id}", headers=admin_headers)
        again = client.delete(f"/api/products/{product_id}", headers=admin_headers)

        assert response.status_code == 200
        assert again.status_code == 404
        assert db["product"].count_documents({}) == 0
