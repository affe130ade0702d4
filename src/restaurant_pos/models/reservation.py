import datetime
import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_pos.core.db import Base
from restaurant_pos.utils.enums import ReservationStatus

if TYPE_CHECKING:
    from restaurant_pos.models import ReservationTable, Table, TimeSlot


class Reservation(Base):
    """Таблица бронирований столов."""

    branch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('branch.id', ondelete='CASCADE'),
        nullable=False,
    )
    customer_name: Mapped[str] = mapped_column(String(128), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(320), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    # Слот может быть удалён, бронирование при этом сохраняется.
    time_slot_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey('timeslot.id', ondelete='SET NULL'),
        nullable=True,
    )
    exact_time: Mapped[datetime.time | None] = mapped_column(
        Time,
        nullable=True,
    )
    people: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, name='reservation_status'),
        nullable=False,
        default=ReservationStatus.PENDING,
        server_default=ReservationStatus.PENDING.value,
    )
    dietary_restrictions: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    accessibility_needs: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        default='WEB',
        server_default='WEB',
    )

    time_slot: Mapped['TimeSlot | None'] = relationship(lazy='selectin')
    table_links: Mapped[List['ReservationTable']] = relationship(
        back_populates='reservation',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    __table_args__ = (
        CheckConstraint('people > 0', name='ck_reservation_people_positive'),
        Index(
            'ix_reservation_branch_date_status',
            'branch_id',
            'date',
            'status',
        ),
        Index('ix_reservation_date_time_slot', 'date', 'time_slot_id'),
    )

    @property
    def table_ids(self) -> list[uuid.UUID]:
        """Идентификаторы назначенных столов."""
        return [link.table_id for link in self.table_links]

    @property
    def tables(self) -> list['Table']:
        """Назначенные столы."""
        return [link.table for link in self.table_links]
