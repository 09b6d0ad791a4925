from typing import Optional

from sqlalchemy import DECIMAL, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fulfillment.app.core.database import Base


class Product(Base):
    __tablename__ = 'products'
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    seller_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    name: Mapped[str] = mapped_column(String(255))
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    price: Mapped[Optional[float]] = mapped_column(DECIMAL(12, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        Index('ix_products_seller_id', 'seller_id'),
        Index('ix_products_category', 'category'),
    )
