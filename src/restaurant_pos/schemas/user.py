from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    field_validator,
    model_validator,
)
from pydantic.types import StringConstraints

from restaurant_pos.core.constants import PHONE_PATTERN
from restaurant_pos.utils.enums import UserRole
from restaurant_pos.utils.validators import (
    validate_email,
    validate_password_strength,
    validate_phone,
)

NameConstraint = StringConstraints(
    strip_whitespace=True,
    min_length=3,
    max_length=128,
)
PhoneConstraint = StringConstraints(pattern=PHONE_PATTERN)

# Роли в API передаются числами.
ROLE_CODES = {
    UserRole.EMPLOYEE: 0,
    UserRole.MANAGER: 1,
    UserRole.ADMIN: 2,
}
ROLES_BY_CODE = {code: role for role, code in ROLE_CODES.items()}


def _normalize_username(value: Optional[str]) -> Optional[str]:
    """Удаляет лишние пробелы и проверяет непустое имя пользователя."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError('Имя пользователя должно быть строкой')
    cleaned = value.strip()
    if not cleaned:
        raise ValueError('Имя пользователя не может быть пустым')
    return cleaned


def _validate_role(value: Optional[int]) -> Optional[int]:
    if value is not None and value not in ROLES_BY_CODE:
        raise ValueError('Роль должна быть числом от 0 до 2')
    return value


class UserBase(BaseModel):
    """Базовая схема для сотрудника с основными полями."""

    username: Annotated[str, NameConstraint]
    email: Optional[EmailStr] = None
    phone: Optional[Annotated[str, PhoneConstraint]] = None

    _validate_email = field_validator('email', mode='before')(validate_email)
    _validate_phone = field_validator('phone', mode='before')(validate_phone)
    _normalize_username = field_validator('username', mode='before')(
        _normalize_username,
    )


class UserCreate(UserBase):
    """Схема для создания нового сотрудника."""

    password: str
    role: int = ROLE_CODES[UserRole.EMPLOYEE]

    _validate_role = field_validator('role', mode='before')(_validate_role)

    @model_validator(mode='after')
    def validate_phone_or_email(self) -> 'UserCreate':
        """Проверяет, что указан email или телефон."""
        if not self.phone and not self.email:
            raise ValueError('Необходимо указать email или телефон')
        return self

    @field_validator('password', mode='before')
    @classmethod
    def validate_password(cls, value: str) -> str:
        """Проверяет, что пароль соответствует требованиям."""
        return validate_password_strength(value)


class UserUpdate(BaseModel):
    """Схема для обновления сотрудника администратором."""

    username: Optional[Annotated[str, NameConstraint]] = None
    email: Optional[EmailStr] = None
    phone: Optional[Annotated[str, PhoneConstraint]] = None
    role: Optional[int] = None
    is_active: Optional[bool] = None
    password: Optional[str] = None

    _validate_role = field_validator('role', mode='before')(_validate_role)
    _normalize_username = field_validator('username', mode='before')(
        _normalize_username,
    )

    @field_validator('password', mode='before')
    @classmethod
    def validate_password(cls, value: Optional[str]) -> Optional[str]:
        """Проверяет, что пароль соответствует требованиям, если передан."""
        if value is None:
            return None
        return validate_password_strength(value)


class UserInfo(UserBase):
    """Полная схема сотрудника."""

    id: UUID
    role: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('role', mode='before')
    @classmethod
    def convert_role_to_int(cls, value: UserRole | int) -> int:
        """Конвертирует роль в число для API."""
        if isinstance(value, int):
            return value
        return ROLE_CODES[UserRole(value)]
