"""Read helpers for the household product catalog."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from dakino_backend.models import Product, Store


def fetch_catalog_products(
    session_factory: sessionmaker, *, household_id: Optional[uuid.UUID] = None
) -> list[Product]:
    """Return every catalog product, optionally scoped to one household.

    Products come back ordered by name then id so that matching, which keeps
    the first of equally good candidates, is stable between requests.
    """

    session: Session = session_factory()
    try:
        statement = select(Product).order_by(Product.name, Product.id)
        if household_id is not None:
            statement = statement.where(Product.household_id == household_id)
        return list(session.execute(statement).scalars().all())
    finally:
        session.close()


def fetch_catalog_stores(
    session_factory: sessionmaker, *, household_id: Optional[uuid.UUID] = None
) -> list[Store]:
    """Return every known store, optionally scoped to one household."""

    session: Session = session_factory()
    try:
        statement = select(Store).order_by(Store.name, Store.id)
        if household_id is not None:
            statement = statement.where(Store.household_id == household_id)
        return list(session.execute(statement).scalars().all())
    finally:
        session.close()
