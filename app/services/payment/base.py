"""Payment provider interface."""
from abc import ABC, abstractmethod
from pydantic import BaseModel

from app.db.models import Order


class CheckoutSession(BaseModel):
    """Hosted checkout created by a payment provider."""

    url: str
    reference: str


class PaymentProvider(ABC):
    """Abstract base class for payment providers."""

    @abstractmethod
    async def create_checkout(
        self, order: Order, success_url: str, cancel_url: str
    ) -> CheckoutSession:
        """Create a hosted checkout for an order and return where to send the shopper."""
        pass
