"""Stripe Checkout sessions."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import stripe

from storefront.config import Settings
from storefront.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class LineItem:
    name: str
    description: str
    unit_amount: int  # minor currency units
    currency: str
    quantity: int


@dataclass
class CheckoutSession:
    id: str
    url: Optional[str] = None


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    def __init__(self, settings: Settings):
        self.api_key = settings.stripe_secret_key

    def create_checkout_session(
        self,
        line_items: list[LineItem],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": item.currency,
                            "unit_amount": item.unit_amount,
                            "product_data": {
                                "name": item.name,
                                "description": item.description,
                            },
                        },
                        "quantity": item.quantity,
                    }
                    for item in line_items
                ],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session failed: %s", e)
            raise UpstreamError("Payment provider unavailable") from e
        return CheckoutSession(id=session.id, url=session.url)
