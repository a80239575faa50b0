"""FastAPI dependencies."""
import secrets

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.database import get_db
from app.services.cart.service import CartService
from app.services.menu.repository import MenuRepository
from app.services.ordering.checkout import CheckoutService
from app.services.ordering.service import OrderService
from app.services.payment.base import PaymentProvider
from app.services.payment.mock import MockPaymentProvider
from app.services.payment.stripe import StripePaymentProvider
from app.services.persistence.cart import CartPersistenceService
from app.services.persistence.dishes import DishPersistenceService
from app.services.persistence.orders import OrderPersistenceService


def get_cart_session_id(request: Request, response: Response) -> str:
    """Shopper session id from the cart cookie; a new one is issued when absent."""
    session_id = request.cookies.get(settings.cart_cookie_name)
    if not session_id:
        session_id = secrets.token_urlsafe(32)
    response.set_cookie(
        key=settings.cart_cookie_name,
        value=session_id,
        httponly=True,
        max_age=settings.cart_cookie_max_age,
        samesite="lax",
    )
    return session_id


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    """Get cart service instance."""
    return CartService(CartPersistenceService(db))


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    """Get order service instance."""
    return OrderService(OrderPersistenceService(db))


def get_menu_repository(db: AsyncSession = Depends(get_db)) -> MenuRepository:
    """Get menu repository instance."""
    return MenuRepository(db)


def get_dish_store(db: AsyncSession = Depends(get_db)) -> DishPersistenceService:
    return DishPersistenceService(db)


def get_payment_provider() -> PaymentProvider:
    """Stripe when a secret key is configured, mock mode otherwise."""
    if settings.stripe_secret_key:
        return StripePaymentProvider(
            settings.stripe_secret_key, timeout=settings.database_timeout
        )
    return MockPaymentProvider()


def get_checkout_service(
    cart_service: CartService = Depends(get_cart_service),
    order_service: OrderService = Depends(get_order_service),
    payment_provider: PaymentProvider = Depends(get_payment_provider),
) -> CheckoutService:
    """Get checkout service instance."""
    return CheckoutService(cart_service, order_service, payment_provider)
