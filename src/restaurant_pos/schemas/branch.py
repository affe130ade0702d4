from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.types import StringConstraints

from restaurant_pos.core.constants import PHONE_PATTERN
from restaurant_pos.services.schedule import branch_zone
from restaurant_pos.utils.validators import validate_phone

NameConstraint = StringConstraints(
    strip_whitespace=True,
    min_length=1,
    max_length=128,
)
AddressConstraint = StringConstraints(
    strip_whitespace=True,
    min_length=1,
    max_length=300,
)
PhoneConstraint = StringConstraints(pattern=PHONE_PATTERN)


def _validate_timezone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    branch_zone(value)
    return value


class BranchBase(BaseModel):
    """Базовая схема филиала."""

    name: Annotated[str, NameConstraint]
    address: Annotated[str, AddressConstraint]
    phone: Optional[Annotated[str, PhoneConstraint]] = None
    description: Optional[str] = None
    timezone: str = 'UTC'

    _validate_phone = field_validator('phone', mode='before')(validate_phone)
    _validate_timezone = field_validator('timezone')(_validate_timezone)


class BranchCreate(BranchBase):
    """Схема для создания филиала."""


class BranchUpdate(BaseModel):
    """Схема для обновления филиала."""

    name: Optional[Annotated[str, NameConstraint]] = None
    address: Optional[Annotated[str, AddressConstraint]] = None
    phone: Optional[Annotated[str, PhoneConstraint]] = None
    description: Optional[str] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None

    _validate_phone = field_validator('phone', mode='before')(validate_phone)
    _validate_timezone = field_validator('timezone')(_validate_timezone)


class BranchInfo(BranchBase):
    """Полная схема филиала."""

    id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
