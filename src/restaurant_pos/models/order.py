import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_pos.core.db import Base
from restaurant_pos.utils.enums import OrderStatus, OrderType

if TYPE_CHECKING:
    from restaurant_pos.models import Table


class Order(Base):
    """Таблица заказов. Заказ в зале привязан к столу."""

    branch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('branch.id', ondelete='CASCADE'),
        index=True,
        nullable=False,
    )
    table_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey('table.id', ondelete='SET NULL'),
        index=True,
        nullable=True,
    )
    public_code: Mapped[str] = mapped_column(
        String(16),
        unique=True,
        nullable=False,
    )
    type: Mapped[OrderType] = mapped_column(
        Enum(OrderType, name='order_type'),
        nullable=False,
        default=OrderType.DINE_IN,
    )
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name='order_status'),
        nullable=False,
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
    )
    party_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    table: Mapped['Table | None'] = relationship(lazy='selectin')

    __table_args__ = (
        CheckConstraint(
            'party_size > 0',
            name='ck_order_party_size_positive',
        ),
    )
