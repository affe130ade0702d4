from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from restaurant_pos.core.auth import (
    MANAGEMENT_ROLES,
    STAFF_ROLES,
    role_checker,
)
from restaurant_pos.core.db import DbSession
from restaurant_pos.models.user import User
from restaurant_pos.repositories.user import user_repository
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.schemas.user import UserCreate, UserInfo, UserUpdate
from restaurant_pos.utils.enums import UserRole
from restaurant_pos.utils.http import http_error, internal_error
from restaurant_pos.utils.logging_decorator import event_logger

router = APIRouter(prefix='/users', tags=['Сотрудники'])


@router.get(
    '/',
    response_model=List[UserInfo],
    responses={
        status.HTTP_401_UNAUTHORIZED: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
    },
)
async def get_all_users(
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
    show_all: bool = Query(
        False,
        description='Показывать отключённых сотрудников?',
    ),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> List[UserInfo]:
    """Получение списка сотрудников."""
    return await user_repository.get_multi_filtered(
        session,
        show_all=show_all,
        skip=skip,
        limit=limit,
    )


@router.post(
    '/',
    response_model=UserInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'User')
async def create_user(
    user_data: UserCreate,
    session: DbSession,
    current_user: Annotated[
        User,
        Depends(role_checker([UserRole.ADMIN])),
    ],
) -> UserInfo:
    """Создание сотрудника. Доступно только администратору."""
    try:
        return await user_repository.create_user(session, user_data)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при создании сотрудника: {str(e)}')
        raise internal_error(
            'Внутренняя ошибка сервера при создании пользователя',
        ) from e


@router.get(
    '/me',
    response_model=UserInfo,
    responses={
        status.HTTP_401_UNAUTHORIZED: {'model': ErrorResponse},
    },
)
async def get_me(
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> UserInfo:
    """Эндпоинт для получения информации о собственном аккаунте."""
    return current_user


@router.get(
    '/{user_id}',
    response_model=UserInfo,
    responses={
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_user_by_id(
    user_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> UserInfo:
    """Получение информации о сотруднике по ID."""
    try:
        return await user_repository.get_or_404(session, user_id)
    except ValueError as e:
        raise http_error(e)


@router.patch(
    '/{user_id}',
    response_model=UserInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_403_FORBIDDEN: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'User')
async def update_user(
    user_id: UUID,
    update_data: UserUpdate,
    session: DbSession,
    current_user: Annotated[
        User,
        Depends(role_checker([UserRole.ADMIN])),
    ],
) -> UserInfo:
    """Обновление сотрудника администратором."""
    try:
        user = await user_repository.get_or_404(session, user_id)
        return await user_repository.update_user(session, user, update_data)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при обновлении сотрудника {user_id}: {str(e)}')
        raise internal_error(
            'Внутренняя ошибка сервера при обновлении пользователя',
        ) from e
