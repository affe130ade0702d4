from datetime import date, time
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from loguru import logger

from restaurant_pos.core.auth import (
    MANAGEMENT_ROLES,
    STAFF_ROLES,
    role_checker,
)
from restaurant_pos.core.constants import MAX_PARTY_SIZE
from restaurant_pos.core.db import DbSession
from restaurant_pos.core.dependencies import CacheDep
from restaurant_pos.models.user import User
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.repositories.time_slot import time_slot_repository
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.schemas.time_slot import (
    TableSlotConflict,
    TimeSlotAvailability,
    TimeSlotCreate,
    TimeSlotInfo,
    TimeSlotUpdate,
)
from restaurant_pos.utils.enums import DayOfWeek
from restaurant_pos.utils.http import http_error, internal_error
from restaurant_pos.utils.logging_decorator import event_logger

router = APIRouter(
    prefix='/branches/{branch_id}/time_slots',
    tags=['Временные слоты'],
)


@router.get(
    '/',
    response_model=List[TimeSlotInfo],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_time_slots(
    branch_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
    show_all: bool = Query(False, description='Показывать отключённые?'),
) -> List[TimeSlotInfo]:
    """Получение временных слотов филиала со столами."""
    try:
        await branch_repository.get_or_404(session, branch_id)
        return await time_slot_repository.get_multi_by_branch(
            session,
            branch_id,
            show_all=show_all,
        )
    except ValueError as e:
        raise http_error(e)


@router.post(
    '/',
    response_model=TimeSlotInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'TimeSlot')
async def create_time_slot(
    branch_id: UUID,
    slot_data: TimeSlotCreate,
    session: DbSession,
    cache: CacheDep,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> TimeSlotInfo:
    """Создание временного слота.

    Args:
        branch_id: UUID идентификатор филиала
        slot_data: Данные слота, table_ids закрепляются эксклюзивно
        session: Асинхронная сессия базы данных
        cache: Сервис кеширования
        current_user: Информация о текущем пользователе
    Returns:
        TimeSlotInfo: Созданный слот
    Raises:
        HTTPException: 404 если филиал не найден
        HTTPException: 400 если столы не относятся к филиалу

    """
    try:
        return await time_slot_repository.create_for_branch(
            session,
            branch_id,
            slot_data,
            cache,
        )
    except ValueError as e:
        logger.error(f'Ошибка валидации при создании слота: {str(e)}')
        raise http_error(e)
    except Exception as e:
        logger.error(f'Неожиданная ошибка при создании слота: {str(e)}')
        raise internal_error() from e


@router.get(
    '/available',
    response_model=List[TimeSlotAvailability],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_available_time_slots(
    branch_id: UUID,
    session: DbSession,
    cache: CacheDep,
    reservation_date: date = Query(..., alias='date'),
    party_size: int = Query(1, ge=1, le=MAX_PARTY_SIZE),
) -> List[TimeSlotAvailability]:
    """Слоты на дату с признаком наличия мест для компании.

    Публичный эндпоинт для формы бронирования.
    """
    try:
        return await time_slot_repository.available_for_date(
            session,
            branch_id,
            reservation_date,
            party_size,
            cache,
        )
    except ValueError as e:
        raise http_error(e)


@router.get(
    '/table_conflicts',
    response_model=List[TableSlotConflict],
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
    },
)
async def get_table_conflicts(
    branch_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
    start_time: time = Query(...),
    end_time: time = Query(...),
    days: List[DayOfWeek] = Query(default=list(DayOfWeek)),
    exclude_id: Optional[UUID] = Query(None),
) -> List[TableSlotConflict]:
    """Столы, эксклюзивно занятые пересекающимися слотами."""
    try:
        return await time_slot_repository.table_conflicts(
            session,
            branch_id,
            start_time,
            end_time,
            days,
            exclude_id,
        )
    except ValueError as e:
        raise http_error(e)


@router.get(
    '/{time_slot_id}',
    response_model=TimeSlotInfo,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_time_slot(
    branch_id: UUID,
    time_slot_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> TimeSlotInfo:
    """Получение временного слота по ID."""
    try:
        return await time_slot_repository.get_in_branch(
            session,
            branch_id,
            time_slot_id,
        )
    except ValueError as e:
        raise http_error(e)


@router.patch(
    '/{time_slot_id}',
    response_model=TimeSlotInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'TimeSlot')
async def update_time_slot(
    branch_id: UUID,
    time_slot_id: UUID,
    slot_data: TimeSlotUpdate,
    session: DbSession,
    cache: CacheDep,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> TimeSlotInfo:
    """Обновление временного слота. table_ids заменяет набор столов."""
    try:
        time_slot = await time_slot_repository.get_in_branch(
            session,
            branch_id,
            time_slot_id,
        )
        return await time_slot_repository.update_in_branch(
            session,
            time_slot,
            slot_data,
            cache,
        )
    except ValueError as e:
        logger.error(f'Ошибка валидации при обновлении слота: {str(e)}')
        raise http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f'Ошибка при обновлении слота {time_slot_id}: {str(e)}')
        raise internal_error() from e


@router.patch(
    '/{time_slot_id}/toggle',
    response_model=TimeSlotInfo,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'TimeSlot')
async def toggle_time_slot(
    branch_id: UUID,
    time_slot_id: UUID,
    session: DbSession,
    cache: CacheDep,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> TimeSlotInfo:
    """Включение или отключение временного слота."""
    try:
        time_slot = await time_slot_repository.get_in_branch(
            session,
            branch_id,
            time_slot_id,
        )
        return await time_slot_repository.toggle(session, time_slot, cache)
    except ValueError as e:
        raise http_error(e)


@router.delete(
    '/{time_slot_id}',
    response_model=Optional[TimeSlotInfo],
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Удалена', 'TimeSlot')
async def delete_time_slot(
    branch_id: UUID,
    time_slot_id: UUID,
    session: DbSession,
    cache: CacheDep,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
    hard: bool = Query(False, description='Удалить слот безвозвратно?'),
) -> Optional[TimeSlotInfo] | Response:
    """Отключение слота, а при hard=true удаление.

    Слот с бронированиями удалить нельзя, его можно только отключить.
    """
    try:
        time_slot = await time_slot_repository.get_in_branch(
            session,
            branch_id,
            time_slot_id,
        )
        removed = await time_slot_repository.remove(
            session,
            time_slot,
            cache,
            hard=hard,
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при удалении слота {time_slot_id}: {str(e)}')
        raise internal_error() from e
    if removed is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return removed
