"""Checkout, payment webhook and order lookup endpoints."""
import hmac
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.dependencies import (
    get_cart_session_id,
    get_checkout_service,
    get_order_service,
)
from app.core.errors import AppError, UnauthorizedError
from app.core.i18n import pick_localized, resolve_locale
from app.db.models import Order
from app.services.ordering.checkout import CheckoutService
from app.services.ordering.models import CheckoutDeliveryInfo
from app.services.ordering.service import OrderService


router = APIRouter()
logger = logging.getLogger(__name__)


class OrderItemResponse(BaseModel):
    """Order item response model."""
    id: int
    dish_id: int = Field(alias="dishId")
    dish_name: Optional[str] = Field(default=None, alias="dishName")
    variant_id: Optional[int] = Field(default=None, alias="variantId")
    quantity: int
    price: float
    size: Optional[str] = None

    class Config:
        populate_by_name = True


class OrderResponse(BaseModel):
    """Order response model."""
    id: int
    status: str
    total_amount: float = Field(alias="totalAmount")
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    country: Optional[str] = None
    delivery_instructions: Optional[str] = Field(default=None, alias="deliveryInstructions")
    payment_reference: Optional[str] = Field(default=None, alias="paymentReference")
    created_at: str = Field(alias="createdAt")
    items: List[OrderItemResponse] = []

    class Config:
        populate_by_name = True


class CheckoutRequest(BaseModel):
    """Checkout request body."""
    delivery_info: CheckoutDeliveryInfo = Field(alias="deliveryInfo")
    locale: Optional[str] = None

    class Config:
        populate_by_name = True


class CheckoutResponse(BaseModel):
    """Checkout response model."""
    order_id: int = Field(alias="orderId")
    url: str

    class Config:
        populate_by_name = True


class PaymentEvent(BaseModel):
    """Payment provider notification."""
    type: str
    order_id: Optional[int] = Field(default=None, alias="orderId")
    payment_reference: Optional[str] = Field(default=None, alias="paymentReference")

    class Config:
        populate_by_name = True


def order_to_response(order: Order) -> OrderResponse:
    """Convert an order with loaded items to its response model."""
    return OrderResponse(
        id=order.id,
        status=order.status,
        total_amount=float(order.total_amount),
        email=order.email,
        first_name=order.first_name,
        last_name=order.last_name,
        phone=order.phone,
        address=order.address,
        city=order.city,
        postal_code=order.postal_code,
        country=order.country,
        delivery_instructions=order.delivery_instructions,
        payment_reference=order.payment_reference,
        created_at=order.created_at.isoformat() if order.created_at else "",
        items=[
            OrderItemResponse(
                id=item.id,
                dish_id=item.dish_id,
                dish_name=(
                    pick_localized(item.dish, "name", order.locale)
                    if item.dish is not None
                    else None
                ),
                variant_id=item.variant_id,
                quantity=item.quantity,
                price=float(item.price),
                size=item.size,
            )
            for item in order.items
        ],
    )


def get_base_url(request: Request) -> str:
    """Public base URL for payment redirects."""
    if settings.app_url:
        return settings.app_url.rstrip("/")
    return str(request.base_url).rstrip("/")


@router.post("/api/checkout", response_model=CheckoutResponse)
async def checkout(
    body: CheckoutRequest,
    request: Request,
    session_id: str = Depends(get_cart_session_id),
    checkout_service: CheckoutService = Depends(get_checkout_service),
):
    """Place an order for the current cart and return the payment redirect."""
    locale = resolve_locale(body.locale, settings.default_locale).value
    logger.info(
        f"[CHECKOUT] Request received - locale: {locale}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        order, url = await checkout_service.start_checkout(
            session_id,
            delivery_info=body.delivery_info,
            locale=locale,
            base_url=get_base_url(request),
        )
        return CheckoutResponse(order_id=order.id, url=url)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[CHECKOUT] Error creating checkout - {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to create checkout session") from e


def verify_webhook_secret(provided: Optional[str]) -> None:
    """Reject webhook calls without the shared secret. Open only in mock payment mode."""
    expected = settings.payment_webhook_secret
    if not expected:
        if not settings.stripe_secret_key:
            return
        logger.warning("[PAYMENT WEBHOOK] Stripe is configured without a webhook secret")
        raise UnauthorizedError("Invalid webhook secret")
    if not hmac.compare_digest((provided or "").encode(), expected.encode()):
        raise UnauthorizedError("Invalid webhook secret")


@router.post("/api/payments/webhook")
async def payment_webhook(
    event: PaymentEvent,
    x_webhook_secret: Optional[str] = Header(default=None),
    checkout_service: CheckoutService = Depends(get_checkout_service),
):
    """Apply a payment provider event to its order."""
    verify_webhook_secret(x_webhook_secret)

    logger.info(
        f"[PAYMENT WEBHOOK] Event {event.type} - order: {event.order_id}, "
        f"reference: {event.payment_reference}"
    )
    try:
        order = await checkout_service.handle_payment_event(
            event.type, order_id=event.order_id, reference=event.payment_reference
        )
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[PAYMENT WEBHOOK] Error handling event - {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to process payment event") from e

    return {
        "received": True,
        "orderId": order.id if order else None,
        "status": order.status if order else None,
    }


@router.get("/api/orders", response_model=List[OrderResponse])
async def get_orders_by_email(
    email: Optional[str] = None,
    order_service: OrderService = Depends(get_order_service),
):
    """Look up orders placed with an email address, newest first."""
    logger.info("[ORDERS] Lookup by email requested")
    if not email:
        return []
    try:
        orders = await order_service.get_by_email(email)
        logger.info(f"[ORDERS] Found {len(orders)} orders")
        return [order_to_response(order) for order in orders]
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[ORDERS] Error fetching orders - {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to fetch orders") from e


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    order_service: OrderService = Depends(get_order_service),
):
    """Get a single order with its items."""
    order = await order_service.get_by_id(order_id)
    return order_to_response(order)
