from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from restaurant_pos.core.auth import (
    MANAGEMENT_ROLES,
    STAFF_ROLES,
    role_checker,
)
from restaurant_pos.core.db import DbSession
from restaurant_pos.core.dependencies import CacheDep
from restaurant_pos.models.user import User
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.repositories.table import table_repository
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.schemas.table import (
    TableAvailability,
    TableCreate,
    TableInfo,
    TableStatusUpdate,
    TableUpdate,
)
from restaurant_pos.utils.http import http_error, internal_error
from restaurant_pos.utils.logging_decorator import event_logger

router = APIRouter(prefix='/branches/{branch_id}/tables', tags=['Столы'])


@router.get(
    '/',
    response_model=list[TableInfo],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_all_tables(
    branch_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
    show_all: bool = Query(False, description='Показывать все столы?'),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> list[TableInfo]:
    """Получает список столов филиала.

    Args:
        branch_id: UUID идентификатор филиала
        session: Асинхронная сессия базы данных
        current_user: Информация о текущем пользователе
        show_all: Флаг показа всех столов (включая неактивные)
        skip: Количество пропускаемых записей
        limit: Максимальное количество записей

    Returns:
        list[TableInfo]: Столы филиала по возрастанию номера
    Raises:
        HTTPException: 404 если филиал не найден

    """
    try:
        await branch_repository.get_or_404(session, branch_id)
        return await table_repository.get_multi_by_branch(
            session,
            branch_id,
            skip=skip,
            limit=limit,
            show_all=show_all,
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(
            f'Ошибка при получении столов филиала {branch_id}: {str(e)}',
        )
        raise internal_error() from e


@router.post(
    '/',
    response_model=TableInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Table')
async def create_table(
    branch_id: UUID,
    table_data: TableCreate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> TableInfo:
    """Создает новый стол в филиале.

    Args:
        branch_id: UUID идентификатор филиала
        table_data: Данные для создания стола
        session: Асинхронная сессия базы данных
        current_user: Информация о текущем пользователе
    Returns:
        TableInfo: Созданный стол
    Raises:
        HTTPException: 404 если филиал не найден
        HTTPException: 400 если стол с таким номером уже существует

    """
    try:
        return await table_repository.create_for_branch(
            session,
            branch_id,
            table_data,
        )
    except ValueError as e:
        logger.error(f'Ошибка валидации при создании стола: {str(e)}')
        raise http_error(e)
    except Exception as e:
        logger.error(f'Неожиданная ошибка при создании стола: {str(e)}')
        raise internal_error(
            'Внутренняя ошибка сервера при создании стола',
        ) from e


@router.get(
    '/availability',
    response_model=list[TableAvailability],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
async def get_tables_availability(
    branch_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
    reservation_date: date = Query(..., alias='date'),
    time_slot_id: UUID = Query(...),
) -> list[TableAvailability]:
    """Остаток мест за каждым столом на дату и временной слот.

    Показывает, в какой пул попал стол и можно ли его сейчас выбрать.
    """
    try:
        return await table_repository.availability(
            session,
            branch_id,
            reservation_date,
            time_slot_id,
        )
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при расчёте доступности столов: {str(e)}')
        raise internal_error() from e


@router.get(
    '/{table_id}',
    response_model=TableInfo,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_table_by_id(
    branch_id: UUID,
    table_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> TableInfo:
    """Получает стол филиала по идентификатору."""
    try:
        return await table_repository.get_in_branch(
            session,
            branch_id,
            table_id,
        )
    except ValueError as e:
        logger.warning(f'Стол {table_id} не найден в филиале {branch_id}')
        raise http_error(e)


@router.patch(
    '/{table_id}',
    response_model=TableInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Table')
async def update_table(
    branch_id: UUID,
    table_id: UUID,
    update_data: TableUpdate,
    session: DbSession,
    cache: CacheDep,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> TableInfo:
    """Обновляет стол.

    Вместимость столов входит в лимит слотов, поэтому кеш расписания
    филиала сбрасывается.

    Args:
        branch_id: UUID идентификатор филиала
        table_id: UUID идентификатор стола
        update_data: Данные для обновления
        session: Асинхронная сессия базы данных
        cache: Сервис кеширования
        current_user: Информация о текущем пользователе
    Returns:
        TableInfo: Обновленный стол
    Raises:
        HTTPException: 404 если стол не найден
        HTTPException: 400 если стол с таким номером уже существует

    """
    try:
        table = await table_repository.get_in_branch(
            session,
            branch_id,
            table_id,
        )
        table = await table_repository.update_in_branch(
            session,
            table,
            update_data,
        )
        await cache.clear_time_slots_cache(branch_id)
        return table
    except ValueError as e:
        logger.error(f'Ошибка валидации при обновлении стола: {str(e)}')
        raise http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f'Неожиданная ошибка при обновлении стола: {str(e)}')
        raise internal_error(
            'Внутренняя ошибка сервера при обновлении стола',
        ) from e


@router.patch(
    '/{table_id}/status',
    response_model=TableInfo,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Table')
async def set_table_status(
    branch_id: UUID,
    table_id: UUID,
    status_data: TableStatusUpdate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> TableInfo:
    """Ручная смена статуса стола официантом или менеджером."""
    try:
        table = await table_repository.get_in_branch(
            session,
            branch_id,
            table_id,
        )
        return await table_repository.set_status(
            session,
            table,
            status_data.status,
        )
    except ValueError as e:
        raise http_error(e)


@router.delete(
    '/{table_id}',
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Удалена', 'Table')
async def delete_table(
    branch_id: UUID,
    table_id: UUID,
    session: DbSession,
    cache: CacheDep,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> None:
    """Удаляет стол, который ни разу не бронировали.

    Столы с историей бронирований можно только отключить.
    """
    try:
        table = await table_repository.get_in_branch(
            session,
            branch_id,
            table_id,
        )
        await table_repository.delete_table(session, table)
        await cache.clear_time_slots_cache(branch_id)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при удалении стола {table_id}: {str(e)}')
        raise internal_error() from e
