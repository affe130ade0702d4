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
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.schemas.branch import (
    BranchCreate,
    BranchInfo,
    BranchUpdate,
)
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.utils.enums import UserRole
from restaurant_pos.utils.http import http_error, internal_error
from restaurant_pos.utils.logging_decorator import event_logger

router = APIRouter(prefix='/branches', tags=['Филиалы'])


@router.get('/', response_model=List[BranchInfo])
async def get_all_branches(
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
    show_all: bool = Query(False, description='Показывать все филиалы?'),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> List[BranchInfo]:
    """Получение списка филиалов."""
    return await branch_repository.get_multi_filtered(
        session,
        skip=skip,
        limit=limit,
        show_all=show_all,
    )


@router.post(
    '/',
    response_model=BranchInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Branch')
async def create_branch(
    branch_data: BranchCreate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker([UserRole.ADMIN]))],
) -> BranchInfo:
    """Создает филиал.

    Args:
        branch_data: Данные филиала
        session: Асинхронная сессия базы данных
        current_user: Администратор

    Returns:
        BranchInfo: Созданный филиал
    Raises:
        HTTPException: 400 если филиал с таким названием уже есть

    """
    try:
        return await branch_repository.create_branch(session, branch_data)
    except ValueError as e:
        logger.error(f'Ошибка валидации при создании филиала: {str(e)}')
        raise http_error(e)
    except Exception as e:
        logger.error(f'Неожиданная ошибка при создании филиала: {str(e)}')
        raise internal_error() from e


@router.get(
    '/{branch_id}',
    response_model=BranchInfo,
    responses={status.HTTP_404_NOT_FOUND: {'model': ErrorResponse}},
)
async def get_branch(
    branch_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> BranchInfo:
    """Получает филиал по идентификатору."""
    return await branch_repository.get_or_404(session, branch_id)


@router.patch(
    '/{branch_id}',
    response_model=BranchInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Branch')
async def update_branch(
    branch_id: UUID,
    branch_data: BranchUpdate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> BranchInfo:
    """Обновляет филиал. Часовой пояс влияет на «сегодня» филиала."""
    try:
        branch = await branch_repository.get_or_404(session, branch_id)
        return await branch_repository.update_branch(
            session,
            branch,
            branch_data,
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при обновлении филиала {branch_id}: {str(e)}')
        raise internal_error() from e
