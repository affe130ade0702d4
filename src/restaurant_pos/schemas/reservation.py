import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
)
from pydantic.types import StringConstraints

from restaurant_pos.core.constants import PHONE_PATTERN
from restaurant_pos.schemas.assignment import PartySize, TableAssignment
from restaurant_pos.schemas.table import TableShortInfo
from restaurant_pos.schemas.time_slot import TimeSlotShortInfo
from restaurant_pos.utils.enums import ReservationStatus
from restaurant_pos.utils.validators import validate_email, validate_phone

NameConstraint = StringConstraints(
    strip_whitespace=True,
    min_length=1,
    max_length=128,
)
PhoneConstraint = StringConstraints(pattern=PHONE_PATTERN)


def _normalize_text(value: Optional[str]) -> Optional[str]:
    """Очищает текстовое поле от лишних пробелов."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError('Комментарий должен быть строкой')
    cleaned = value.strip()
    return cleaned or None


class ReservationCreate(BaseModel):
    """Схема для создания бронирования."""

    branch_id: UUID
    customer_name: Annotated[str, NameConstraint]
    customer_email: EmailStr
    customer_phone: Annotated[str, PhoneConstraint]
    date: datetime.date
    time_slot_id: UUID
    exact_time: Optional[datetime.time] = None
    people: PartySize
    dietary_restrictions: Optional[str] = None
    accessibility_needs: Optional[str] = None
    notes: Optional[str] = None
    auto_assign_tables: bool = True

    _validate_email = field_validator('customer_email', mode='before')(
        validate_email,
    )
    _validate_phone = field_validator('customer_phone', mode='before')(
        validate_phone,
    )
    _normalize_text = field_validator(
        'dietary_restrictions',
        'accessibility_needs',
        'notes',
        mode='before',
    )(_normalize_text)


class ReservationUpdate(BaseModel):
    """Схема для обновления бронирования.

    Смена даты, слота или числа гостей перепроверяет вместимость уже
    назначенных столов.
    """

    customer_name: Optional[Annotated[str, NameConstraint]] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[Annotated[str, PhoneConstraint]] = None
    date: Optional[datetime.date] = None
    time_slot_id: Optional[UUID] = None
    exact_time: Optional[datetime.time] = None
    people: Optional[PartySize] = None
    dietary_restrictions: Optional[str] = None
    accessibility_needs: Optional[str] = None
    notes: Optional[str] = None

    _normalize_text = field_validator(
        'dietary_restrictions',
        'accessibility_needs',
        'notes',
        mode='before',
    )(_normalize_text)


class ReservationStatusUpdate(BaseModel):
    """Смена статуса бронирования."""

    status: ReservationStatus


class ReservationTablesUpdate(BaseModel):
    """Ручное назначение столов. Заменяет текущие столы бронирования."""

    table_ids: list[UUID] = Field(min_length=1)

    @field_validator('table_ids')
    @classmethod
    def validate_table_ids(cls, value: list[UUID]) -> list[UUID]:
        """Проверяет отсутствие дубликатов среди столов."""
        if len(value) != len(set(value)):
            raise ValueError('Список столов не должен содержать дубликаты')
        return value


class ReservationInfo(BaseModel):
    """Полная схема бронирования со столами."""

    id: UUID
    branch_id: UUID
    customer_name: str
    customer_email: str
    customer_phone: str
    date: datetime.date
    time_slot_id: Optional[UUID] = None
    time_slot: Optional[TimeSlotShortInfo] = None
    exact_time: Optional[datetime.time] = None
    people: int
    status: ReservationStatus
    dietary_restrictions: Optional[str] = None
    accessibility_needs: Optional[str] = None
    notes: Optional[str] = None
    created_by: str
    tables: list[TableShortInfo]
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationCreated(BaseModel):
    """Ответ на создание бронирования."""

    reservation: ReservationInfo
    auto_assigned: bool
    assignment: Optional[TableAssignment] = None
    message: str
