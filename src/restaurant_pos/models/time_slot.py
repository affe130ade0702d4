import uuid
from datetime import time
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_pos.core.db import Base

if TYPE_CHECKING:
    from restaurant_pos.models import Branch, TimeSlotTable


class TimeSlot(Base):
    """Таблица повторяющихся временных слотов для бронирования."""

    branch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('branch.id', ondelete='CASCADE'),
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    # Названия дней недели в нижнем регистре: ['monday', 'friday'].
    days_of_week: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )
    price_per_person: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )
    customer_limit: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    more_info_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    branch: Mapped['Branch'] = relationship(
        back_populates='time_slots',
        lazy='noload',
    )
    table_links: Mapped[List['TimeSlotTable']] = relationship(
        back_populates='time_slot',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    __table_args__ = (
        CheckConstraint(
            'start_time < end_time',
            name='ck_time_slot_interval',
        ),
        CheckConstraint(
            'customer_limit IS NULL OR customer_limit > 0',
            name='ck_time_slot_customer_limit',
        ),
    )

    @property
    def exclusive_table_ids(self) -> list[uuid.UUID]:
        """Столы, закреплённые за слотом эксклюзивно."""
        return [
            link.table_id for link in self.table_links if link.is_exclusive
        ]
