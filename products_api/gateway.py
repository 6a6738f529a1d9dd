"""Persistence gateway for products.

Each write commits on its own: an operation is atomic at the granularity of
one record, and nothing spans requests. Any SQLAlchemy failure is rolled back
and re-raised as DatabaseError so the error handlers can answer 503.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import get_session
from .errors import DatabaseError
from .models import Product

logger = logging.getLogger(__name__)


class ProductGateway:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Product {operation} failed: {e}", extra={"error_code": "DATABASE_ERROR"})
            raise DatabaseError(operation) from e

    def find_all(self) -> List[Product]:
        with self._guard("find_all"):
            return list(self.session.execute(select(Product).order_by(Product.id)).scalars().all())

    def find_by_pk(self, product_id: int) -> Optional[Product]:
        with self._guard("find_by_pk"):
            return self.session.get(Product, product_id)

    def create(self, attrs: dict) -> Product:
        with self._guard("create"):
            p = Product(**attrs)
            self.session.add(p)
            self.session.commit()
            self.session.refresh(p)
            return p

    def update(self, product: Product, attrs: dict) -> Product:
        with self._guard("update"):
            for key, value in attrs.items():
                setattr(product, key, value)
            self.session.add(product)
            self.session.commit()
            self.session.refresh(product)
            return product

    def destroy(self, product: Product) -> None:
        with self._guard("destroy"):
            self.session.delete(product)
            self.session.commit()


def get_products(session: Session = Depends(get_session)) -> ProductGateway:
    return ProductGateway(session)
