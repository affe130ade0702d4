from datetime import datetime, timedelta, timezone
from typing import Annotated, Awaitable, Callable, List, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select

from restaurant_pos.core.config import settings
from restaurant_pos.core.db import DbSession
from restaurant_pos.core.logging import logger
from restaurant_pos.models.user import User
from restaurant_pos.utils.enums import UserRole

# Заголовок необязателен: публичные ручки работают и без токена
security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=['bcrypt'], deprecated='auto')

STAFF_ROLES = [UserRole.EMPLOYEE, UserRole.MANAGER, UserRole.ADMIN]
MANAGEMENT_ROLES = [UserRole.MANAGER, UserRole.ADMIN]


def get_token_expires() -> timedelta:
    """Возвращает время жизни токена."""
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверка пароля."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Хеширование пароля."""
    return pwd_context.hash(password)


def create_access_token(user_id: UUID, username: str) -> str:
    """Создает JWT токен."""
    expire = datetime.now(timezone.utc) + get_token_expires()
    to_encode = {
        'sub': str(user_id),
        'username': username,
        'exp': expire,
    }
    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


async def _user_from_token(
    token: str,
    session: DbSession,
) -> Optional[User]:
    """Активный сотрудник из JWT токена или None."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f'JWTError при обработке токена: {e}')
        return None
    user_id = payload.get('sub')
    if user_id is None:
        return None
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning('В токене некорректный идентификатор пользователя')
        return None
    result = await session.execute(
        select(User).where(User.id == user_uuid, User.is_active.is_(True)),
    )
    return result.scalar_one_or_none()


async def get_current_user_optional(
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials],
        Depends(security),
    ],
    session: DbSession,
) -> Optional[User]:
    """Текущий сотрудник, если передан валидный токен, иначе None."""
    if credentials is None:
        return None
    return await _user_from_token(credentials.credentials, session)


async def get_current_user(
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials],
        Depends(security),
    ],
    session: DbSession,
) -> User:
    """Получение текущего сотрудника из JWT токена."""
    if credentials is None:
        logger.info('Отсутствует заголовок Authorization в headers')
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Не авторизован',
        )
    user = await _user_from_token(credentials.credentials, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Неверные учетные данные',
        )
    return user


def public_or_role_checker(
    allowed_roles: List[UserRole],
) -> Callable[..., Awaitable[Optional[User]]]:
    """Проверка роли или ее отсутствия для публичных эндпоинтов."""

    async def checker(
        current_user: Annotated[
            Optional[User],
            Depends(get_current_user_optional),
        ],
    ) -> Optional[User]:
        if current_user is None:
            return None
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Недостаточно прав для выполнения операции',
            )
        return current_user

    return checker


def role_checker(
    allowed_roles: List[UserRole],
) -> Callable[..., Awaitable[User]]:
    """Универсальная функция для проверки ролей сотрудника."""

    async def checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Недостаточно прав для выполнения операции',
            )
        return current_user

    return checker
