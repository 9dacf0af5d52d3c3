"""Checkout: quote the cart, open a payment session, turn the cart into an order."""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from storefront.config import get_settings
from storefront.core.exceptions import EmptyCartError, NotFoundError
from storefront.db.models.order import Order
from storefront.db.models.product import Product
from storefront.db.models.user import User
from storefront.services.cart_service import CartLine, clear_cart
from storefront.services.payment_service import (
    CheckoutSession,
    LineItem,
    StripeGateway,
    to_minor_units,
)
from storefront.services.storage_service import image_url

logger = logging.getLogger(__name__)


@dataclass
class Quote:
    lines: list[CartLine] = field(default_factory=list)
    total: Decimal = Decimal("0")


def quote_cart(db: Session, user: User) -> Quote:
    """Resolve every cart entry to its live product and sum quantity * price."""
    quote = Quote()
    for item in user.cart_items:
        product = db.get(Product, uuid.UUID(item["productId"]))
        if product is None:
            raise NotFoundError(f"Product {item['productId']} is no longer available")
        quote.lines.append(CartLine(product=product, quantity=item["quantity"]))
        quote.total += item["quantity"] * product.price
    return quote


def start_checkout(
    db: Session,
    user: User,
    gateway: StripeGateway,
    base_url: str,
) -> tuple[Quote, CheckoutSession]:
    quote = quote_cart(db, user)
    if not quote.lines:
        raise EmptyCartError()
    currency = get_settings().currency
    line_items = [
        LineItem(
            name=line.product.title,
            description=line.product.description,
            unit_amount=to_minor_units(line.product.price),
            currency=currency,
            quantity=line.quantity,
        )
        for line in quote.lines
    ]
    base = base_url.rstrip("/")
    session = gateway.create_checkout_session(
        line_items,
        success_url=f"{base}/checkout/success",
        cancel_url=f"{base}/checkout/cancel",
    )
    return quote, session


def snapshot_product(product: Product) -> dict:
    return {
        "id": str(product.id),
        "title": product.title,
        "price": str(product.price),
        "description": product.description,
        "imageUrl": image_url(product.image_url),
    }


def confirm_checkout(db: Session, user: User) -> Optional[Order]:
    """Persist an order copied from the cart, then empty the cart."""
    quote = quote_cart(db, user)
    if not quote.lines:
        return None
    order = Order(
        id=uuid.uuid4(),
        user_email=user.email,
        user_id=user.id,
        products=[
            {"product": snapshot_product(line.product), "quantity": line.quantity}
            for line in quote.lines
        ],
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    clear_cart(db, user)
    logger.info("Created order %s for user %s", order.id, user.id)
    return order


def list_orders(db: Session, user_id: uuid.UUID) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
        .all()
    )


def order_total(order: Order) -> Decimal:
    return sum(
        (Decimal(p["product"]["price"]) * p["quantity"] for p in order.products),
        Decimal("0"),
    )
