"""Product CRUD, owner-scoped writes and paginated listing."""

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from storefront.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from storefront.db.models.product import Product
from storefront.db.models.user import User
from storefront.schemas.common import parse_form
from storefront.schemas.product import ProductForm
from storefront.config import get_settings
from storefront.services.storage_service import delete_image

logger = logging.getLogger(__name__)

NOT_AN_IMAGE = "Attached file is not an image"


@dataclass
class Page:
    items: list[Product]
    current_page: int
    total_items: int
    per_page: int

    @property
    def has_next_page(self) -> bool:
        return self.per_page * self.current_page < self.total_items

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1

    @property
    def last_page(self) -> int:
        return math.ceil(self.total_items / self.per_page)

    def as_context(self) -> dict:
        return {
            "currentPage": self.current_page,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
            "nextPage": self.current_page + 1,
            "previousPage": self.current_page - 1,
            "lastPage": self.last_page,
        }


def parse_id(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def parse_page(value) -> int:
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def list_products(db: Session, page: int, per_page: int) -> Page:
    q = db.query(Product)
    total = q.count()
    items = (
        q.order_by(Product.created_at.asc(), Product.id.asc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return Page(items=items, current_page=page, total_items=total, per_page=per_page)


def get_product(db: Session, product_id) -> Product:
    pid = parse_id(product_id)
    product = db.get(Product, pid) if pid else None
    if not product:
        raise NotFoundError("Product not found.")
    return product


def list_owned_products(db: Session, owner_id: uuid.UUID) -> list[Product]:
    return (
        db.query(Product)
        .filter(Product.user_id == owner_id)
        .order_by(Product.created_at.desc())
        .all()
    )


def get_owned_product(db: Session, owner: User, product_id) -> Product:
    product = get_product(db, product_id)
    if product.user_id != owner.id:
        raise ForbiddenError("Not the owner of this product")
    return product


def create_product(
    db: Session,
    owner: User,
    data: dict,
    image_name: Optional[str],
) -> Product:
    """Validate the submitted form and store the product; an accepted image is required."""
    if not image_name:
        raise ValidationError(NOT_AN_IMAGE, old_input=data)
    form = parse_form(ProductForm, data)
    product = Product(
        id=uuid.uuid4(),
        title=form.title,
        price=form.price,
        description=form.description,
        image_url=image_name,
        user_id=owner.id,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("Created product %s", product.id)
    return product


def update_product(
    db: Session,
    owner: User,
    product_id,
    data: dict,
    new_image: Optional[str] = None,
) -> Product:
    product = get_owned_product(db, owner, product_id)
    form = parse_form(ProductForm, data)
    product.title = form.title
    product.price = form.price
    product.description = form.description
    old_image = None
    if new_image:
        old_image = product.image_url
        product.image_url = new_image
    db.commit()
    db.refresh(product)
    delete_image(get_settings().images_dir, old_image)
    logger.info("Updated product %s", product.id)
    return product


def delete_product(db: Session, owner: User, product_id) -> None:
    """Delete the record (scoped to its owner), then its image."""
    product = get_owned_product(db, owner, product_id)
    pid, image_name = product.id, product.image_url
    db.query(Product).filter(Product.id == pid, Product.user_id == owner.id).delete(
        synchronize_session="fetch"
    )
    db.commit()
    delete_image(get_settings().images_dir, image_name)
    logger.info("Deleted product %s", pid)
