"""Cart API endpoints."""
import logging
from typing import Any, List, Optional, Union
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.core.dependencies import get_cart_service, get_cart_session_id
from app.core.errors import AppError, ValidationError
from app.services.cart.models import CartLine
from app.services.cart.service import CartService

router = APIRouter()
logger = logging.getLogger(__name__)


class CartItemResponse(BaseModel):
    """Cart line item response model."""
    id: str
    dish_id: int = Field(alias="dishId")
    name: str
    price: float
    quantity: int
    image_src: Optional[str] = Field(default=None, alias="imageSrc")
    size: Optional[str] = None

    class Config:
        populate_by_name = True


class CartResponse(BaseModel):
    """Cart snapshot response model."""
    cart: List[CartItemResponse]
    success: Optional[bool] = None


class AddToCartRequest(BaseModel):
    """Add-to-cart request body."""
    dish_id: Optional[int] = Field(default=None, alias="dishId")
    name: Optional[str] = None
    price: Union[float, int, str, None] = None
    quantity: Union[int, float, str, None] = None
    image_src: Optional[str] = Field(default=None, alias="imageSrc")
    size: Optional[str] = None

    class Config:
        populate_by_name = True


class UpdateCartRequest(BaseModel):
    """Quantity update request body."""
    item_id: Optional[str] = Field(default=None, alias="itemId")
    quantity: Union[int, float, str, None] = None

    class Config:
        populate_by_name = True


def to_response(lines: List[CartLine], success: Optional[bool] = None) -> CartResponse:
    return CartResponse(
        cart=[
            CartItemResponse(
                id=line.id,
                dish_id=line.dish_id,
                name=line.name,
                price=float(line.price),
                quantity=line.quantity,
                image_src=line.image_src,
                size=line.size,
            )
            for line in lines
        ],
        success=success,
    )


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@router.get("/api/cart", response_model=CartResponse, response_model_exclude_none=True)
async def get_cart(
    session_id: str = Depends(get_cart_session_id),
    cart_service: CartService = Depends(get_cart_service),
):
    """Get the shopper's cart."""
    try:
        lines = await cart_service.get(session_id)
        logger.debug(f"[CART] Fetched {len(lines)} lines")
        return to_response(lines)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[CART] Error getting cart - {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to get cart") from e


@router.post("/api/cart", response_model=CartResponse, response_model_exclude_none=True)
async def add_to_cart(
    body: AddToCartRequest,
    session_id: str = Depends(get_cart_session_id),
    cart_service: CartService = Depends(get_cart_service),
):
    """Add a dish to the cart."""
    if _missing(body.dish_id) or _missing(body.name) or _missing(body.price) or _missing(body.quantity):
        raise ValidationError("Missing required fields")

    logger.info(f"[CART] Add dish {body.dish_id} x{body.quantity}")
    try:
        lines = await cart_service.add(
            session_id,
            dish_id=body.dish_id,
            name=body.name,
            price=body.price,
            quantity=body.quantity,
            image_src=body.image_src,
            size=body.size,
        )
        return to_response(lines, success=True)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[CART] Error adding to cart - {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to add item to cart") from e


@router.put("/api/cart", response_model=CartResponse, response_model_exclude_none=True)
async def update_cart_item(
    body: UpdateCartRequest,
    session_id: str = Depends(get_cart_session_id),
    cart_service: CartService = Depends(get_cart_service),
):
    """Update a line's quantity."""
    if _missing(body.item_id) or _missing(body.quantity):
        raise ValidationError("Missing required fields")

    logger.info(f"[CART] Update line {body.item_id} to quantity {body.quantity}")
    try:
        lines = await cart_service.update_quantity(session_id, body.item_id, body.quantity)
        return to_response(lines, success=True)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[CART] Error updating cart - {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to update cart") from e


@router.delete("/api/cart", response_model=CartResponse, response_model_exclude_none=True)
async def delete_from_cart(
    item_id: Optional[str] = Query(default=None, alias="itemId"),
    clear: Optional[str] = None,
    session_id: str = Depends(get_cart_session_id),
    cart_service: CartService = Depends(get_cart_service),
):
    """Remove one line (``?itemId=``) or empty the cart (``?clear=true``)."""
    try:
        if clear == "true":
            logger.info("[CART] Clearing cart")
            lines = await cart_service.clear(session_id)
            return to_response(lines, success=True)

        if not item_id:
            raise ValidationError("Missing itemId parameter")

        logger.info(f"[CART] Remove line {item_id}")
        lines = await cart_service.remove(session_id, item_id)
        return to_response(lines, success=True)
    except AppError:
        raise
    except Exception as e:
        logger.error(
            f"[CART] Error removing from cart - {type(e).__name__}: {e}", exc_info=True
        )
        raise AppError("Failed to remove item from cart") from e
