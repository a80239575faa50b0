"""Unit tests for order creation, lookup and status transitions."""
import pytest
from decimal import Decimal
from sqlalchemy import func, select

from app.core.errors import AppError, NotFoundError, ValidationError
from app.db.models import Dish, Order, OrderItem, OrderStatus
from app.services.ordering.models import DeliveryInfo, OrderItemInput
from app.services.ordering.service import can_transition, order_total, parse_status
from app.services.persistence.orders import OrderPersistenceService

SAMOSAS = {"dish_id": 1, "quantity": 2, "price": Decimal("8.50")}
BIRYANI = {"dish_id": 2, "quantity": 1, "price": Decimal("22.50")}


async def count_rows(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestStatusRules:
    """Test the order status graph helpers."""

    @pytest.mark.parametrize("current,new", [
        ("PENDING", "PAID"),
        ("PENDING", "CANCELLED"),
        ("PAID", "PREPARING"),
        ("PAID", "CANCELLED"),
        ("PREPARING", "SHIPPED"),
        ("SHIPPED", "DELIVERED"),
    ])
    def test_allowed_transitions(self, current, new):
        assert can_transition(current, new) is True

    @pytest.mark.parametrize("current,new", [
        ("PENDING", "SHIPPED"),
        ("PAID", "PENDING"),
        ("DELIVERED", "PENDING"),
        ("DELIVERED", "CANCELLED"),
        ("CANCELLED", "PAID"),
        ("SHIPPED", "CANCELLED"),
    ])
    def test_forbidden_transitions(self, current, new):
        assert can_transition(current, new) is False

    def test_parse_status_is_case_insensitive(self):
        assert parse_status("paid") is OrderStatus.PAID
        assert parse_status(" Shipped ") is OrderStatus.SHIPPED

    def test_parse_unknown_status(self):
        with pytest.raises(ValidationError):
            parse_status("LOST")

    def test_order_total(self):
        items = [OrderItemInput(**SAMOSAS), OrderItemInput(**BIRYANI)]
        assert order_total(items) == Decimal("39.50")


class TestOrderCreation:
    """Test order creation through the order service."""

    @pytest.mark.asyncio
    async def test_create_order(self, order_service):
        """Two samosas and one biryani make a 39.50 PENDING order."""
        order = await order_service.create(
            buyer_reference="session-a",
            items=[SAMOSAS, BIRYANI],
            total_amount=Decimal("39.50"),
            delivery_info=DeliveryInfo(first_name="An", email="an@example.be", city="Gent"),
            locale="nl",
        )

        assert order.id is not None
        assert order.status == OrderStatus.PENDING.value
        assert order.total_amount == Decimal("39.50")
        assert order.user_id == "session-a"
        assert order.email == "an@example.be"
        assert order.first_name == "An"
        assert order.locale == "nl"
        assert [(item.dish_id, item.quantity, item.price) for item in order.items] == [
            (1, 2, Decimal("8.50")),
            (2, 1, Decimal("22.50")),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("declared", [39.5, "39.50", "39.499"])
    async def test_total_compared_at_cents(self, order_service, declared):
        order = await order_service.create("session-a", [SAMOSAS, BIRYANI], declared)
        assert order.total_amount == Decimal("39.50")

    @pytest.mark.asyncio
    async def test_total_mismatch_rejected(self, order_service, test_db):
        with pytest.raises(ValidationError) as exc_info:
            await order_service.create("session-a", [SAMOSAS, BIRYANI], Decimal("40.00"))

        assert exc_info.value.fields == {"totalAmount": "mismatch"}
        assert await count_rows(test_db, Order) == 0

    @pytest.mark.asyncio
    async def test_out_of_range_total_rejected(self, order_service, test_db):
        with pytest.raises(ValidationError) as exc_info:
            await order_service.create("session-a", [SAMOSAS], "1e30")

        assert exc_info.value.fields == {"totalAmount": "too_large"}
        assert await count_rows(test_db, Order) == 0

    @pytest.mark.asyncio
    async def test_item_total_above_column_limit_rejected(self, order_service, test_db):
        item = {"dish_id": 1, "quantity": 2, "price": "99999999.99"}

        with pytest.raises(ValidationError) as exc_info:
            await order_service.create("session-a", [item], "199999999.98")

        assert "totalAmount" in exc_info.value.fields
        assert await count_rows(test_db, Order) == 0

    @pytest.mark.asyncio
    async def test_delivery_details_with_form_keys(self, order_service):
        order = await order_service.create(
            "session-a",
            [SAMOSAS],
            Decimal("17.00"),
            delivery_info={
                "firstName": "An",
                "postalCode": "9000",
                "deliveryInstructions": "Ring twice",
                "email": "an@example.be",
            },
        )

        assert order.first_name == "An"
        assert order.postal_code == "9000"
        assert order.delivery_instructions == "Ring twice"
        assert order.email == "an@example.be"

    @pytest.mark.asyncio
    async def test_delivery_details_with_field_names(self, order_service):
        order = await order_service.create(
            "session-a", [SAMOSAS], Decimal("17.00"),
            delivery_info={"first_name": "An", "city": "Gent"},
        )

        assert order.first_name == "An"
        assert order.city == "Gent"

    @pytest.mark.asyncio
    async def test_empty_items_rejected(self, order_service, test_db):
        with pytest.raises(ValidationError):
            await order_service.create("session-a", [], Decimal("0"))

        assert await count_rows(test_db, Order) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("item", [
        {"dish_id": 1, "quantity": 0, "price": "8.50"},
        {"dish_id": 1, "quantity": 1, "price": "-8.50"},
        {"dish_id": "samosas", "quantity": 1, "price": "8.50"},
        {"quantity": 1, "price": "8.50"},
        {"dish_id": 1, "quantity": 10**20, "price": "8.50"},
        {"dish_id": 1, "quantity": 1, "price": "1e30"},
    ])
    async def test_invalid_items_rejected(self, order_service, item):
        with pytest.raises(ValidationError):
            await order_service.create("session-a", [item], Decimal("8.50"))

    @pytest.mark.asyncio
    async def test_total_unaffected_by_later_price_change(self, order_service, test_db):
        """Order prices are snapshots; editing the dish afterwards changes nothing."""
        dish = Dish(name="Samosas", name_en="Samosas", slug="samosas", price=Decimal("8.50"))
        test_db.add(dish)
        await test_db.commit()

        order = await order_service.create(
            "session-a", [{"dish_id": dish.id, "quantity": 2, "price": "8.50"}], "17.00"
        )

        dish.price = Decimal("12.00")
        await test_db.commit()

        reloaded = await order_service.get_by_id(order.id)
        assert reloaded.total_amount == Decimal("17.00")
        assert reloaded.items[0].price == Decimal("8.50")
        assert reloaded.items[0].dish.price == Decimal("12.00")


class TestOrderAtomicity:
    """Test that an order and its items are written all or nothing."""

    @pytest.mark.asyncio
    async def test_failing_item_rolls_back_everything(self, test_db):
        """A rejected second item leaves neither the order nor the first item behind."""
        persistence = OrderPersistenceService(test_db)
        items = [
            {"dish_id": 1, "quantity": 1, "price": Decimal("8.50")},
            {"dish_id": None, "quantity": 1, "price": Decimal("3.50")},
            {"dish_id": 3, "quantity": 1, "price": Decimal("19.00")},
        ]

        with pytest.raises(AppError):
            await persistence.create_order_with_items(
                user_id="session-a", total_amount=Decimal("31.00"), items=items
            )

        assert await count_rows(test_db, Order) == 0
        assert await count_rows(test_db, OrderItem) == 0

    @pytest.mark.asyncio
    async def test_unexpected_failure_rolls_back_and_propagates(self, test_db, monkeypatch):
        persistence = OrderPersistenceService(test_db)
        original = persistence.build_order_item
        calls = []

        def failing_build(order_id, item_data):
            calls.append(order_id)
            if len(calls) == 2:
                raise RuntimeError("simulated failure")
            return original(order_id, item_data)

        monkeypatch.setattr(persistence, "build_order_item", failing_build)

        with pytest.raises(RuntimeError):
            await persistence.create_order_with_items(
                user_id="session-a",
                total_amount=Decimal("39.50"),
                items=[SAMOSAS, BIRYANI],
            )

        assert await count_rows(test_db, Order) == 0
        assert await count_rows(test_db, OrderItem) == 0


class TestOrderLookup:
    """Test order lookups."""

    @pytest.mark.asyncio
    async def test_get_by_id_unknown(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.get_by_id(999)

    @pytest.mark.asyncio
    async def test_get_by_email_newest_first(self, order_service):
        created = []
        for _ in range(3):
            order = await order_service.create(
                "session-a", [BIRYANI], "22.50", delivery_info={"email": "an@example.be"}
            )
            created.append(order.id)
        await order_service.create(
            "session-b", [BIRYANI], "22.50", delivery_info={"email": "someone@example.be"}
        )

        orders = await order_service.get_by_email("an@example.be")

        assert [order.id for order in orders] == list(reversed(created))
        assert all(len(order.items) == 1 for order in orders)

    @pytest.mark.asyncio
    async def test_get_by_email_exact_match(self, order_service):
        await order_service.create(
            "session-a", [BIRYANI], "22.50", delivery_info={"email": "an@example.be"}
        )

        assert await order_service.get_by_email("nobody@example.be") == []
        assert await order_service.get_by_email("AN@example.be") == []
        assert await order_service.get_by_email("") == []

    @pytest.mark.asyncio
    async def test_get_by_buyer(self, order_service):
        await order_service.create("session-a", [BIRYANI], "22.50")
        await order_service.create("session-b", [BIRYANI], "22.50")

        orders = await order_service.get_by_buyer("session-a")

        assert len(orders) == 1
        assert orders[0].user_id == "session-a"

    @pytest.mark.asyncio
    async def test_list_orders_by_status(self, order_service):
        first = await order_service.create("session-a", [BIRYANI], "22.50")
        await order_service.create("session-b", [BIRYANI], "22.50")
        await order_service.update_status(first.id, "PAID")

        paid = await order_service.list_orders(status="paid")
        everything = await order_service.list_orders()

        assert [order.id for order in paid] == [first.id]
        assert len(everything) == 2


class TestStatusUpdates:
    """Test status changes through the order service."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, order_service):
        order = await order_service.create("session-a", [BIRYANI], "22.50")

        for status in ("PAID", "PREPARING", "SHIPPED", "DELIVERED"):
            order = await order_service.update_status(order.id, status)
            assert order.status == status

    @pytest.mark.asyncio
    async def test_payment_reference_recorded(self, order_service):
        order = await order_service.create("session-a", [BIRYANI], "22.50")

        order = await order_service.update_status(order.id, "PENDING", payment_reference="cs_123")
        assert order.status == "PENDING"
        assert order.payment_reference == "cs_123"

        found = await order_service.get_by_payment_reference("cs_123")
        assert found.id == order.id

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, order_service):
        order = await order_service.create("session-a", [BIRYANI], "22.50")
        await order_service.update_status(order.id, "PAID")

        order = await order_service.update_status(order.id, "PAID")

        assert order.status == "PAID"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path,target", [
        ([], "SHIPPED"),
        (["PAID", "PREPARING", "SHIPPED", "DELIVERED"], "PENDING"),
        (["CANCELLED"], "PAID"),
    ])
    async def test_illegal_transition_rejected(self, order_service, path, target):
        order = await order_service.create("session-a", [BIRYANI], "22.50")
        for status in path:
            await order_service.update_status(order.id, status)

        with pytest.raises(ValidationError):
            await order_service.update_status(order.id, target)

        unchanged = await order_service.get_by_id(order.id)
        assert unchanged.status == (path[-1] if path else "PENDING")

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, order_service):
        order = await order_service.create("session-a", [BIRYANI], "22.50")

        with pytest.raises(ValidationError):
            await order_service.update_status(order.id, "LOST")

    @pytest.mark.asyncio
    async def test_update_unknown_order(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.update_status(999, "PAID")
