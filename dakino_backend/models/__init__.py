"""SQLAlchemy models for the Dakino product catalog."""

from __future__ import annotations

import os
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Numeric,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class that configures UUID primary keys by default."""

    type_annotation_map = {
        uuid.UUID: UUID(as_uuid=True),
    }


class TimestampMixin:
    """Mixin that provides automatic creation and update timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UnitType(str, Enum):
    """How a product is counted when bought."""

    UNIT = "unit"
    WEIGHT = "weight"


class Product(TimestampMixin, Base):
    """A household catalog entry that ticket lines are matched against."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            "unit_type in ('unit','weight')",
            name="ck_products_unit_type",
        ),
        Index("ix_products_household_name", "household_id", "name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    household_id: Mapped[Optional[uuid.UUID]] = mapped_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(120))
    unit_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=UnitType.UNIT.value
    )
    default_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    default_unit: Mapped[Optional[str]] = mapped_column(String(32))


class Store(TimestampMixin, Base):
    """A shop the household buys from."""

    __tablename__ = "stores"
    __table_args__ = (
        Index("ix_stores_household_name", "household_id", "name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    household_id: Mapped[Optional[uuid.UUID]] = mapped_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)


def get_database_url() -> str:
    """Return the configured DATABASE_URL."""

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL environment variable is not set")

    # Normalize common Postgres URL forms to the installed psycopg v3 driver.
    if database_url.startswith("postgres://"):
        return "postgresql+psycopg://" + database_url[len("postgres://") :]
    if database_url.startswith("postgresql://"):
        return "postgresql+psycopg://" + database_url[len("postgresql://") :]
    if database_url.startswith("postgresql+psycopg2://"):
        return (
            "postgresql+psycopg://"
            + database_url[len("postgresql+psycopg2://") :]
        )

    return database_url
