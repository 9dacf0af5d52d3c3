"""Order and cart view schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from storefront.schemas.product import product_to_response
from storefront.services.checkout_service import order_total


class OrderResponse(BaseModel):
    id: UUID
    products: list[dict[str, Any]]
    total: Decimal
    createdAt: datetime


def order_to_response(order) -> dict:
    return OrderResponse(
        id=order.id,
        products=order.products,
        total=order_total(order),
        createdAt=order.created_at,
    ).model_dump()


def cart_lines_to_response(lines) -> list[dict]:
    return [
        {"product": product_to_response(line.product), "quantity": line.quantity}
        for line in lines
    ]
