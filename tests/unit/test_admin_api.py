"""Tests for the admin panel endpoints."""
import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_dish_store
from app.core.errors import GENERIC_MESSAGE
from app.main import app


NEW_DISH = {
    "name_en": "Mango Lassi",
    "name_nl": "Mangolassi",
    "price": "4.50",
    "allergens": ["milk"],
    "variants": [
        {"name_en": "Small", "sort_order": 0},
        {"name_en": "Large", "price": "5.50", "sort_order": 1},
    ],
}


class TestAdminDishes:
    """Test dish management."""

    def test_list_dishes_includes_inactive(self, authenticated_client, menu_data):
        response = authenticated_client.get("/api/admin/dishes")

        assert response.status_code == 200
        slugs = {dish["slug"] for dish in response.json()}
        assert slugs == {"samosas", "chicken-biryani", "retired-dish"}

    def test_create_dish(self, authenticated_client, menu_data):
        response = authenticated_client.post(
            "/api/admin/dishes", json={**NEW_DISH, "category_id": menu_data["starters"].id}
        )

        assert response.status_code == 201
        dish = response.json()
        assert dish["slug"] == "mango-lassi"
        assert dish["price"] == 4.5
        assert dish["name_nl"] == "Mangolassi"
        assert [variant["name_en"] for variant in dish["variants"]] == ["Small", "Large"]

        public = authenticated_client.get("/api/menu/mango-lassi", params={"locale": "nl"}).json()
        assert public["name"] == "Mangolassi"
        assert public["category"]["slug"] == "starters"

    def test_create_dish_duplicate_name_gets_unique_slug(self, authenticated_client):
        first = authenticated_client.post("/api/admin/dishes", json=NEW_DISH).json()
        second = authenticated_client.post("/api/admin/dishes", json=NEW_DISH).json()

        assert first["slug"] == "mango-lassi"
        assert second["slug"] == "mango-lassi-1"

    @pytest.mark.parametrize("overrides", [{"price": "-1"}, {"name_en": ""}, {"category_id": 999}])
    def test_create_dish_invalid(self, authenticated_client, overrides):
        response = authenticated_client.post("/api/admin/dishes", json={**NEW_DISH, **overrides})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_update_dish_replaces_variants(self, authenticated_client, menu_data):
        dish_id = menu_data["samosas"].id

        response = authenticated_client.put(
            f"/api/admin/dishes/{dish_id}",
            json={"name_en": "Samosas", "price": "9.00", "variants": [{"name_en": "Paneer"}]},
        )

        assert response.status_code == 200
        dish = response.json()
        assert dish["slug"] == "samosas"
        assert dish["price"] == 9.0
        assert [variant["name_en"] for variant in dish["variants"]] == ["Paneer"]

    def test_deactivated_dish_leaves_public_menu(self, authenticated_client, menu_data):
        dish_id = menu_data["biryani"].id

        authenticated_client.put(
            f"/api/admin/dishes/{dish_id}",
            json={"name_en": "Chicken Biryani", "price": "22.50", "is_active": False},
        )

        assert authenticated_client.get("/api/menu/chicken-biryani").status_code == 404

    def test_delete_dish(self, authenticated_client, menu_data):
        dish_id = menu_data["samosas"].id

        response = authenticated_client.delete(f"/api/admin/dishes/{dish_id}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert authenticated_client.get(f"/api/admin/dishes/{dish_id}").status_code == 404

    def test_unknown_dish(self, authenticated_client):
        response = authenticated_client.put("/api/admin/dishes/999", json=NEW_DISH)

        assert response.status_code == 404
        assert response.json() == {"error": "Dish not found", "code": "NOT_FOUND"}


class TestAdminCategories:
    """Test category management."""

    def test_create_and_list(self, authenticated_client, menu_data):
        response = authenticated_client.post(
            "/api/admin/categories", json={"name_en": "Drinks", "name_fr": "Boissons"}
        )

        assert response.status_code == 201
        assert response.json()["slug"] == "drinks"

        names = [category["name_en"] for category in authenticated_client.get("/api/admin/categories").json()]
        assert names == ["Drinks", "Mains", "Starters"]

    def test_create_duplicate_slug(self, authenticated_client, menu_data):
        response = authenticated_client.post(
            "/api/admin/categories", json={"name_en": "Starters"}
        )

        assert response.json()["slug"] == "starters-1"

    def test_update_category(self, authenticated_client, menu_data):
        category_id = menu_data["mains"].id

        response = authenticated_client.put(
            f"/api/admin/categories/{category_id}",
            json={"name_en": "Main Courses", "name_nl": "Hoofdgerechten", "is_active": False},
        )

        assert response.status_code == 200
        assert response.json()["name_en"] == "Main Courses"
        public = [category["slug"] for category in authenticated_client.get("/api/categories").json()]
        assert public == ["starters"]

    def test_delete_category_keeps_dishes(self, authenticated_client, menu_data):
        category_id = menu_data["starters"].id

        response = authenticated_client.delete(f"/api/admin/categories/{category_id}")

        assert response.status_code == 200
        dish = authenticated_client.get("/api/menu/samosas").json()
        assert dish["category"] is None


class TestAdminOrders:
    """Test order management."""

    def test_list_orders(self, authenticated_client, place_order):
        order_id = place_order()["orderId"]

        response = authenticated_client.get("/api/admin/orders")

        assert response.status_code == 200
        assert [order["id"] for order in response.json()] == [order_id]
        assert authenticated_client.get("/api/admin/orders", params={"status": "PAID"}).json() == []

    def test_status_progression(self, authenticated_client, place_order):
        order_id = place_order()["orderId"]

        for status in ("PAID", "PREPARING", "SHIPPED", "DELIVERED"):
            response = authenticated_client.put(
                f"/api/admin/orders/{order_id}/status", json={"status": status}
            )
            assert response.status_code == 200
            assert response.json()["status"] == status

    def test_illegal_status_change(self, authenticated_client, place_order):
        order_id = place_order()["orderId"]

        response = authenticated_client.put(
            f"/api/admin/orders/{order_id}/status", json={"status": "SHIPPED"}
        )

        assert response.status_code == 400
        assert response.json()["fields"] == {"status": "invalid_transition"}

    def test_unknown_status(self, authenticated_client, place_order):
        order_id = place_order()["orderId"]

        response = authenticated_client.put(
            f"/api/admin/orders/{order_id}/status", json={"status": "LOST"}
        )

        assert response.status_code == 400


class TestAdminFailures:
    """Test that unexpected failures in admin routes return the JSON error body."""

    class BrokenDishStore:
        async def list_dishes(self):
            raise RuntimeError("password=hunter2 host=10.0.0.5")

    def _client(self, authenticated_client):
        app.dependency_overrides[get_dish_store] = self.BrokenDishStore
        return TestClient(
            app, raise_server_exceptions=False, cookies=authenticated_client.cookies
        )

    def test_unexpected_failure_hidden_in_production(self, authenticated_client, test_settings):
        test_settings.environment = "production"

        response = self._client(authenticated_client).get("/api/admin/dishes")

        assert response.status_code == 500
        assert response.json() == {"error": GENERIC_MESSAGE, "code": "INTERNAL_ERROR"}

    def test_unexpected_failure_shown_in_development(self, authenticated_client):
        response = self._client(authenticated_client).get("/api/admin/dishes")

        assert response.status_code == 500
        assert response.json() == {
            "error": "password=hunter2 host=10.0.0.5",
            "code": "INTERNAL_ERROR",
        }
