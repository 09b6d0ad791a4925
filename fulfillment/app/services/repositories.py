# fulfillment/app/services/repositories.py
"""
Repository contracts consumed by the fulfillment core, plus the reference
SQLAlchemy implementations.

The core only depends on the Protocol classes; anything that satisfies them
(an HTTP client, a cache, a test double) can be plugged in.
"""
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.app.core.constants import LIFECYCLE_TIMESTAMP_FIELDS, OrderStatus
from fulfillment.app.core.exceptions import RepositoryError
from fulfillment.app.core.logging import get_logger
from fulfillment.app.models.order import Order
from fulfillment.app.models.product import Product
from fulfillment.app.models.user import User
from fulfillment.app.schemas import OrderFilter, OrderSnapshot

logger = get_logger(__name__)


class OrderRepository(Protocol):
    async def list_orders(self, order_filter: Optional[OrderFilter] = None) -> List[OrderSnapshot]:
        ...

    async def get_order(self, order_id: str) -> Optional[OrderSnapshot]:
        ...

    async def apply_transition(
        self,
        order_id: str,
        new_status: OrderStatus,
        timestamp_field: str,
        expected_status: Optional[OrderStatus] = None,
    ) -> bool:
        """Persist a transition. Returns False when nothing was updated."""
        ...


class ProductRepository(Protocol):
    async def get_category(self, product_id: str) -> Optional[str]:
        ...

    async def get_name(self, product_id: str) -> Optional[str]:
        ...


class UserRepository(Protocol):
    async def get_display_name(self, user_id: str) -> Optional[str]:
        ...


# ============================================
# SQLAlchemy implementations
# ============================================

class SqlOrderRepository:
    """Order repository over an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_orders(self, order_filter: Optional[OrderFilter] = None) -> List[OrderSnapshot]:
        query = select(Order)
        f = order_filter or OrderFilter()
        if f.seller_id is not None:
            query = query.where(Order.seller_id == f.seller_id)
        if f.customer_id is not None:
            query = query.where(Order.customer_id == f.customer_id)
        if f.statuses:
            query = query.where(Order.status.in_([s.value for s in f.statuses]))
        if f.created_from is not None:
            query = query.where(Order.created_at >= f.created_from)
        if f.created_to is not None:
            query = query.where(Order.created_at <= f.created_to)
        query = query.order_by(Order.created_at.asc(), Order.id.asc()).execution_options(populate_existing=True)

        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise RepositoryError(str(e)) from e
        return [OrderSnapshot.model_validate(o) for o in result.scalars().all()]

    async def get_order(self, order_id: str) -> Optional[OrderSnapshot]:
        try:
            order = await self.session.get(Order, order_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise RepositoryError(str(e)) from e
        if order is None:
            return None
        return OrderSnapshot.model_validate(order)

    async def apply_transition(
        self,
        order_id: str,
        new_status: OrderStatus,
        timestamp_field: str,
        expected_status: Optional[OrderStatus] = None,
        at: Optional[datetime] = None,
    ) -> bool:
        """
        Write the new status and stamp `timestamp_field`.

        Compare-and-set on `expected_status` when given. The lifecycle
        timestamp is only written while it is still NULL.
        """
        if timestamp_field not in LIFECYCLE_TIMESTAMP_FIELDS:
            raise RepositoryError(f"Unknown lifecycle timestamp field '{timestamp_field}'")
        now = at or datetime.now()
        column = getattr(Order, timestamp_field)

        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(
                {
                    Order.status: OrderStatus(new_status).value,
                    Order.updated_at: now,
                    column: func.coalesce(column, now),
                }
            )
            .execution_options(synchronize_session=False)
        )
        if expected_status is not None:
            stmt = stmt.where(Order.status == OrderStatus(expected_status).value)

        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Order transition write failed", order_id=order_id, error=str(e))
            raise RepositoryError(str(e)) from e
        except BaseException:
            # Cancelled (e.g. by a dispatcher timeout) mid-write: drop the pending UPDATE
            await self.session.rollback()
            raise
        return result.rowcount == 1


class SqlProductRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get(self, product_id: str) -> Optional[Product]:
        try:
            return await self.session.get(Product, product_id)
        except SQLAlchemyError as e:
            raise RepositoryError(str(e)) from e

    async def get_category(self, product_id: str) -> Optional[str]:
        product = await self._get(product_id)
        return product.category if product else None

    async def get_name(self, product_id: str) -> Optional[str]:
        product = await self._get(product_id)
        return product.name if product else None


class SqlUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_display_name(self, user_id: str) -> Optional[str]:
        try:
            user = await self.session.get(User, user_id)
        except SQLAlchemyError as e:
            raise RepositoryError(str(e)) from e
        if not user:
            return None
        return (user.full_name or "").strip() or user.username or None
