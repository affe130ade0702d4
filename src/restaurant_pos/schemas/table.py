from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.types import StringConstraints

from restaurant_pos.utils.enums import TableStatus

NameConstraint = StringConstraints(strip_whitespace=True, max_length=64)
PositiveInt = Field(ge=1)


def _normalize_name(value: Optional[str]) -> Optional[str]:
    """Удаляет лишние пробелы и приводит пустые строки к None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError('Название стола должно быть строкой')
    cleaned = value.strip()
    return cleaned or None


class TableCreate(BaseModel):
    """Схема для создания стола. Название по умолчанию равно номеру."""

    number: Annotated[int, PositiveInt]
    name: Optional[Annotated[str, NameConstraint]] = None
    capacity: Annotated[int, PositiveInt]
    is_shared: bool = False

    _normalize_name = field_validator('name', mode='before')(_normalize_name)


class TableUpdate(BaseModel):
    """Схема для обновления стола."""

    number: Optional[Annotated[int, PositiveInt]] = None
    name: Optional[Annotated[str, NameConstraint]] = None
    capacity: Optional[Annotated[int, PositiveInt]] = None
    is_shared: Optional[bool] = None
    is_active: Optional[bool] = None

    _normalize_name = field_validator('name', mode='before')(_normalize_name)


class TableStatusUpdate(BaseModel):
    """Ручная установка статуса стола. None снимает статус."""

    status: Optional[TableStatus] = None


class TableShortInfo(BaseModel):
    """Сокращенная схема стола для вложенных объектов."""

    id: UUID
    number: int
    name: str
    capacity: int
    is_shared: bool

    model_config = ConfigDict(from_attributes=True)


class TableInfo(TableShortInfo):
    """Полная схема стола."""

    branch_id: UUID
    status: Optional[TableStatus] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TableAvailability(TableShortInfo):
    """Стол с остатком мест на дату и слот."""

    status: Optional[TableStatus] = None
    remaining_capacity: int
    is_exclusive: bool
    in_shared_pool: bool
    is_available: bool
