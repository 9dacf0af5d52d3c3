"""Product form and response schemas."""

import re
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, field_validator

from storefront.services.storage_service import image_url

# Fits Numeric(10, 2)
_PRICE = re.compile(r"^\d{1,8}(\.\d{1,2})?$")


class ProductForm(BaseModel):
    title: str
    price: Decimal
    description: str

    @field_validator("title")
    @classmethod
    def title_is_valid(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Please enter a title that is at least 3 characters long")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def price_is_valid(cls, v) -> Decimal:
        text = str(v).strip().lstrip("$")
        if not _PRICE.match(text):
            raise ValueError("Please enter a valid price with 2 decimal places")
        return Decimal(text)

    @field_validator("description")
    @classmethod
    def description_is_valid(cls, v: str) -> str:
        v = v.strip()
        if not 5 <= len(v) <= 400:
            raise ValueError("Please enter a description that is at least 5 characters long")
        return v


class ProductResponse(BaseModel):
    id: UUID
    title: str
    price: Decimal
    description: str
    imageUrl: str
    userId: UUID


def product_to_response(product) -> dict:
    return ProductResponse(
        id=product.id,
        title=product.title,
        price=product.price,
        description=product.description,
        imageUrl=image_url(product.image_url),
        userId=product.user_id,
    ).model_dump()
