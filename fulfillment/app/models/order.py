import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DECIMAL, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fulfillment.app.core.constants import OrderStatus
from fulfillment.app.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Order(Base):
    __tablename__ = 'orders'
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey('users.id'))
    seller_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey('users.id'), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value)
    total_amount: Mapped[float] = mapped_column(DECIMAL(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # Lifecycle timestamps: written once by the matching transition
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    packed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    shipped_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index('ix_orders_customer_id', 'customer_id'),
        Index('ix_orders_seller_id', 'seller_id'),
        Index('ix_orders_status', 'status'),
        Index('ix_orders_created_at', 'created_at'),
        Index('ix_orders_seller_status', 'seller_id', 'status'),  # Seller orders by status
        Index('ix_orders_seller_created', 'seller_id', 'created_at'),  # Seller reports by date
    )


class OrderItem(Base):
    __tablename__ = 'order_items'
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(36), ForeignKey('orders.id', ondelete='CASCADE'))
    # Checkout order of the item inside its order
    position: Mapped[int] = mapped_column(Integer, default=0)
    # No FK: products may be deleted after purchase
    product_id: Mapped[str] = mapped_column(String(36))
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[float] = mapped_column(DECIMAL(12, 2))
    category_hint: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    name_hint: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    order: Mapped[Order] = relationship(back_populates="items")

    __table_args__ = (
        Index('ix_order_items_order_id', 'order_id'),
        Index('ix_order_items_product_id', 'product_id'),
    )
