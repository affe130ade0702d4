from datetime import datetime, time
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.types import StringConstraints

from restaurant_pos.schemas.table import TableShortInfo
from restaurant_pos.utils.enums import DayOfWeek

NameConstraint = StringConstraints(
    strip_whitespace=True,
    min_length=1,
    max_length=128,
)


def _unique_days(
    value: Optional[list[DayOfWeek]],
) -> Optional[list[DayOfWeek]]:
    """Убирает повторы, сохраняя порядок дней."""
    if value is None:
        return None
    return list(dict.fromkeys(value))


class TimeSlotBase(BaseModel):
    """Базовая схема временного слота."""

    name: Annotated[str, NameConstraint]
    start_time: time
    end_time: time
    days_of_week: list[DayOfWeek] = Field(min_length=1)
    price_per_person: Optional[Decimal] = Field(default=None, ge=0)
    customer_limit: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None
    more_info_url: Optional[str] = Field(default=None, max_length=500)

    _unique_days = field_validator('days_of_week')(_unique_days)

    @model_validator(mode='after')
    def check_time_interval(self) -> 'TimeSlotBase':
        """Проверяет, что время начала меньше времени окончания."""
        if self.start_time >= self.end_time:
            raise ValueError(
                'Время начала должно быть меньше времени окончания',
            )
        return self


class TimeSlotCreate(TimeSlotBase):
    """Схема для создания слота. Выбранные столы закрепляются эксклюзивно."""

    table_ids: list[UUID] = Field(default_factory=list)

    @field_validator('table_ids')
    @classmethod
    def validate_table_ids(cls, value: list[UUID]) -> list[UUID]:
        """Проверяет отсутствие дубликатов среди столов."""
        if len(value) != len(set(value)):
            raise ValueError('Список столов не должен содержать дубликаты')
        return value


class TimeSlotUpdate(BaseModel):
    """Схема для обновления слота. table_ids заменяет набор столов."""

    name: Optional[Annotated[str, NameConstraint]] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    days_of_week: Optional[list[DayOfWeek]] = Field(
        default=None,
        min_length=1,
    )
    price_per_person: Optional[Decimal] = Field(default=None, ge=0)
    customer_limit: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None
    more_info_url: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None
    table_ids: Optional[list[UUID]] = None

    _unique_days = field_validator('days_of_week')(_unique_days)

    @model_validator(mode='after')
    def validate_time_range(self) -> 'TimeSlotUpdate':
        """Проверяет корректность временного интервала при обновлении."""
        if self.start_time is not None and self.end_time is not None:
            if self.start_time >= self.end_time:
                raise ValueError(
                    'Время начала должно быть меньше времени окончания',
                )
        if self.table_ids and len(self.table_ids) != len(set(self.table_ids)):
            raise ValueError('Список столов не должен содержать дубликаты')
        return self


class TimeSlotTableInfo(BaseModel):
    """Связь слота со столом."""

    table_id: UUID
    is_exclusive: bool
    table: TableShortInfo

    model_config = ConfigDict(from_attributes=True)


class TimeSlotShortInfo(BaseModel):
    """Сокращенная схема временного слота для вложенных объектов."""

    id: UUID
    name: str
    start_time: time
    end_time: time

    model_config = ConfigDict(from_attributes=True)


class TimeSlotInfo(TimeSlotShortInfo):
    """Полная схема временного слота со столами."""

    branch_id: UUID
    days_of_week: list[str]
    price_per_person: Optional[Decimal] = None
    customer_limit: Optional[int] = None
    notes: Optional[str] = None
    more_info_url: Optional[str] = None
    table_links: list[TimeSlotTableInfo]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeSlotAvailability(TimeSlotShortInfo):
    """Слот на конкретную дату с признаком наличия мест."""

    price_per_person: Optional[Decimal] = None
    capacity: Optional[int] = None
    booked_people: int
    available_capacity: Optional[int] = None
    has_availability: bool


class TableSlotConflict(BaseModel):
    """Стол, эксклюзивно занятый пересекающимся слотом."""

    table_id: UUID
    time_slot_id: UUID
    time_slot_name: str

