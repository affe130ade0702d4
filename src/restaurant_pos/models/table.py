import uuid
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_pos.core.db import Base
from restaurant_pos.utils.enums import TableStatus

if TYPE_CHECKING:
    from restaurant_pos.models import Branch


class Table(Base):
    """Таблица столов филиала."""

    branch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey('branch.id', ondelete='CASCADE'),
        index=True,
        nullable=False,
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    is_shared: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        server_default=false(),
    )
    # None равнозначен EMPTY: ручной статус не выставлялся.
    status: Mapped[TableStatus | None] = mapped_column(
        Enum(TableStatus, name='table_status'),
        nullable=True,
    )

    branch: Mapped['Branch'] = relationship(
        back_populates='tables',
        lazy='noload',
    )

    __table_args__ = (
        UniqueConstraint(
            'branch_id',
            'number',
            name='uq_table_number_per_branch',
        ),
        CheckConstraint('capacity > 0', name='ck_table_capacity_positive'),
    )

    @property
    def is_free(self) -> bool:
        """Стол активен и не занят ручным статусом."""
        return self.is_active and self.status in (None, TableStatus.EMPTY)
