"""Cart embedded in the user row: add, remove, clear. Every mutation commits the user."""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.db.models.product import Product
from storefront.db.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    product: Product
    quantity: int


def _save_items(db: Session, user: User, items: list[dict]) -> User:
    # Reassign so the JSON column is flagged dirty
    user.cart = {"items": items}
    db.commit()
    db.refresh(user)
    return user


def add_to_cart(db: Session, user: User, product: Product) -> User:
    """Increment the product's quantity, or add it with quantity 1."""
    product_id = str(product.id)
    items = [dict(i) for i in user.cart_items]
    for item in items:
        if item["productId"] == product_id:
            item["quantity"] = item["quantity"] + 1
            break
    else:
        items.append({"productId": product_id, "quantity": 1})
    return _save_items(db, user, items)


def remove_from_cart(db: Session, user: User, product_id) -> User:
    """Drop the entry for product_id; absent ids are ignored."""
    items = [i for i in user.cart_items if i["productId"] != str(product_id)]
    return _save_items(db, user, items)


def clear_cart(db: Session, user: User) -> User:
    return _save_items(db, user, [])


def get_cart_lines(db: Session, user: User) -> list[CartLine]:
    """
    Cart entries joined with their live products.
    Entries whose product was deleted are dropped from the stored cart.
    """
    lines = []
    kept = []
    for item in user.cart_items:
        product = db.get(Product, uuid.UUID(item["productId"]))
        if product is None:
            logger.info("Dropping deleted product %s from cart of %s", item["productId"], user.id)
            continue
        kept.append(item)
        lines.append(CartLine(product=product, quantity=item["quantity"]))
    if len(kept) != len(user.cart_items):
        _save_items(db, user, [dict(i) for i in kept])
    return lines
