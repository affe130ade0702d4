from fastapi_users.db import SQLAlchemyBaseUserTableUUID
from sqlalchemy import CheckConstraint, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from restaurant_pos.core.db import Base
from restaurant_pos.utils.enums import UserRole


class User(SQLAlchemyBaseUserTableUUID, Base):
    """Сотрудники ресторана на базе таблицы FastAPI Users."""

    email: Mapped[str | None] = mapped_column(
        String(length=320),
        unique=True,
        index=True,
        nullable=True,
    )
    username: Mapped[str] = mapped_column(
        String(128),
        index=True,
        unique=True,
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(32),
        unique=True,
        nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name='user_role'),
        nullable=False,
        default=UserRole.EMPLOYEE,
        server_default=UserRole.EMPLOYEE.value,
    )

    __table_args__ = (
        CheckConstraint('phone IS NOT NULL OR email IS NOT NULL'),
    )
