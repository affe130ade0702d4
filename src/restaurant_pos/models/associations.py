import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_pos.core.db import Base

if TYPE_CHECKING:
    from restaurant_pos.models import Reservation, Table, TimeSlot


class TimeSlotTable(Base):
    """Промежуточная таблица для связи временных слотов и столов."""

    id = None
    time_slot_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('timeslot.id', ondelete='CASCADE'),
        primary_key=True,
    )
    table_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('table.id', ondelete='CASCADE'),
        primary_key=True,
        index=True,
    )
    is_exclusive: Mapped[bool] = mapped_column(
        nullable=False,
        default=True,
        server_default=true(),
    )

    time_slot: Mapped['TimeSlot'] = relationship(
        back_populates='table_links',
        lazy='noload',
    )
    table: Mapped['Table'] = relationship(lazy='selectin')


class ReservationTable(Base):
    """Промежуточная таблица для связи бронирований и столов."""

    id = None
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('reservation.id', ondelete='CASCADE'),
        primary_key=True,
    )
    table_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('table.id', ondelete='RESTRICT'),
        primary_key=True,
        index=True,
    )

    reservation: Mapped['Reservation'] = relationship(
        back_populates='table_links',
        lazy='noload',
    )
    table: Mapped['Table'] = relationship(lazy='selectin')
