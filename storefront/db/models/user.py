"""User model with embedded cart and password reset token."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.db.base import Base, JSONType


def empty_cart() -> Dict[str, List[Dict[str, Any]]]:
    return {"items": []}


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column("passwordHash", String(255), nullable=False)
    # Both set or both NULL
    reset_token: Mapped[Optional[str]] = mapped_column(
        "resetToken", String(128), nullable=True, index=True
    )
    reset_token_expiration: Mapped[Optional[datetime]] = mapped_column(
        "resetTokenExpiration",
        DateTime(timezone=True),
        nullable=True,
    )
    # {"items": [{"productId": "<uuid>", "quantity": 1}]}
    cart: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=empty_cart, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt",
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt",
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def cart_items(self) -> List[Dict[str, Any]]:
        return list((self.cart or {}).get("items", []))
