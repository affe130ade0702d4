from typing import TYPE_CHECKING, List

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_pos.core.db import Base

if TYPE_CHECKING:
    from restaurant_pos.models import Table, TimeSlot


class Branch(Base):
    """Таблица филиалов ресторана."""

    name: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        index=True,
    )
    address: Mapped[str] = mapped_column(String(300), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default='UTC',
        server_default='UTC',
    )

    tables: Mapped[List['Table']] = relationship(
        back_populates='branch',
        lazy='noload',
    )
    time_slots: Mapped[List['TimeSlot']] = relationship(
        back_populates='branch',
        lazy='noload',
    )
