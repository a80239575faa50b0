"""Shared test fixtures and configuration."""
import pytest
import os
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RESTAURANT_NAME", "Test Restaurant")

from fastapi.testclient import TestClient

from app.main import app
from app.api import auth
from app.core.config import Settings
from app.core.dependencies import get_payment_provider
from app.db.database import Base, get_db
from app.db.models import Category, Dish, DishVariant
from app.services.cart.service import CartService
from app.services.ordering.service import OrderService
from app.services.payment.mock import MockPaymentProvider
from app.services.persistence.cart import CartPersistenceService
from app.services.persistence.orders import OrderPersistenceService


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_PASSWORD = "testpass123"


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        restaurant_name="Test Restaurant",
        app_url="http://testserver",
        admin_password=ADMIN_PASSWORD,
        environment="development",
        stripe_secret_key=None,
        payment_webhook_secret=None,
    )


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def cart_service(test_db):
    return CartService(CartPersistenceService(test_db))


@pytest.fixture
def order_service(test_db):
    return OrderService(OrderPersistenceService(test_db))


@pytest.fixture
def api_db_path(tmp_path):
    """SQLite file shared by the API client and the sync seeding session."""
    path = tmp_path / "storefront.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest.fixture
def api_session(api_db_path):
    """Synchronous session for arranging API test data."""
    engine = create_engine(f"sqlite:///{api_db_path}")
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()


@pytest.fixture
def override_get_db(api_db_path):
    """Override get_db with sessions on the per-test SQLite file."""
    # NullPool: every request opens its connection on the client's event loop
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{api_db_path}", poolclass=NullPool
    )
    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async def _override_get_db():
        async with session_factory() as session:
            yield session
    return _override_get_db


@pytest.fixture
def clean_auth_sessions():
    """Clean up admin sessions before and after tests."""
    auth._sessions.clear()
    yield
    auth._sessions.clear()


@pytest.fixture
def test_client(override_get_db, test_settings, clean_auth_sessions, monkeypatch):
    """Create FastAPI test client with overrides."""
    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_provider] = MockPaymentProvider

    # Override settings in modules that use it
    monkeypatch.setattr("app.core.config.settings", test_settings)
    monkeypatch.setattr("app.core.dependencies.settings", test_settings)
    monkeypatch.setattr("app.core.errors.settings", test_settings)
    monkeypatch.setattr("app.api.auth.settings", test_settings)
    monkeypatch.setattr("app.api.orders.settings", test_settings)
    monkeypatch.setattr("app.api.menu.settings", test_settings)
    monkeypatch.setattr("app.api.health.settings", test_settings)

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def authenticated_client(test_client):
    """Create test client with valid admin session cookie."""
    response = test_client.post(
        "/api/auth/login",
        json={"password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200

    # Session cookie is automatically stored in test_client
    return test_client


def build_menu(session):
    """Two categories, three dishes (one inactive), one dish with variants."""
    starters = Category(
        name="Starters", name_en="Starters", name_nl="Voorgerechten",
        name_fr="Entrées", slug="starters",
    )
    mains = Category(
        name="Mains", name_en="Mains", name_nl="Hoofdgerechten",
        name_fr="Plats", slug="mains",
    )
    session.add_all([starters, mains])
    session.flush()

    samosas = Dish(
        slug="samosas", name="Samosas", name_en="Samosas", name_nl="Samosa's",
        name_fr="Samoussas", description_en="Crispy pastry",
        description_nl="Knapperig deeg", price=Decimal("8.50"),
        category_id=starters.id, allergens=["gluten"],
        variants=[
            DishVariant(name_en="Vegetable", name_nl="Groenten", sort_order=1),
            DishVariant(name_en="Chicken", name_nl="Kip", price=Decimal("9.50"), sort_order=0),
            DishVariant(name_en="Old recipe", sort_order=2, is_active=False),
        ],
    )
    biryani = Dish(
        slug="chicken-biryani", name="Chicken Biryani", name_en="Chicken Biryani",
        price=Decimal("22.50"), category_id=mains.id,
    )
    retired = Dish(
        slug="retired-dish", name="Retired Dish", name_en="Retired Dish",
        price=Decimal("5.00"), is_active=False,
    )
    session.add_all([samosas, biryani, retired])
    session.commit()
    return {
        "starters": starters,
        "mains": mains,
        "samosas": samosas,
        "biryani": biryani,
        "retired": retired,
    }


@pytest.fixture
def menu_data(api_session):
    """Seed a small menu into the API database."""
    return build_menu(api_session)


DELIVERY = {
    "firstName": "An",
    "lastName": "Peeters",
    "email": "an@example.be",
    "phone": "+32 470 00 00 00",
    "address": "Veldstraat 1",
    "city": "Gent",
    "postalCode": "9000",
    "deliveryInstructions": "Ring twice",
}


@pytest.fixture
def fill_cart(test_client, menu_data):
    """Put two samosas and one biryani (39.50) in the client's cart."""
    def _fill_cart():
        samosas = menu_data["samosas"]
        biryani = menu_data["biryani"]
        test_client.post(
            "/api/cart",
            json={"dishId": samosas.id, "name": "Samosas", "price": 8.5, "quantity": 2},
        )
        test_client.post(
            "/api/cart",
            json={"dishId": biryani.id, "name": "Chicken Biryani", "price": "22.50", "quantity": 1},
        )
    return _fill_cart


@pytest.fixture
def place_order(test_client, fill_cart):
    """Fill the cart and check out; returns the checkout response body."""
    def _place_order(locale="nl"):
        fill_cart()
        response = test_client.post(
            "/api/checkout", json={"deliveryInfo": DELIVERY, "locale": locale}
        )
        assert response.status_code == 200
        return response.json()
    return _place_order


@pytest.fixture
def delivery():
    """Checkout form payload."""
    return dict(DELIVERY)
