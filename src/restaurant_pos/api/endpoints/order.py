from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from restaurant_pos.core.auth import STAFF_ROLES, role_checker
from restaurant_pos.core.db import DbSession
from restaurant_pos.models.user import User
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.repositories.order import order_repository
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.schemas.order import (
    OrderClose,
    OrderInfo,
    OrderMove,
    TableOrderCreate,
    WalkInOrderCreate,
    WalkInOrderInfo,
)
from restaurant_pos.schemas.table import TableShortInfo
from restaurant_pos.utils.http import http_error, internal_error
from restaurant_pos.utils.logging_decorator import event_logger

router = APIRouter(prefix='/branches/{branch_id}/orders', tags=['Заказы'])

StaffUser = Annotated[User, Depends(role_checker(STAFF_ROLES))]


@router.get(
    '/',
    response_model=List[OrderInfo],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_orders(
    branch_id: UUID,
    session: DbSession,
    current_user: StaffUser,
    active_only: bool = Query(True, description='Только открытые заказы?'),
) -> List[OrderInfo]:
    """Заказы филиала."""
    try:
        await branch_repository.get_or_404(session, branch_id)
        return await order_repository.get_multi_by_branch(
            session,
            branch_id,
            active_only=active_only,
        )
    except ValueError as e:
        raise http_error(e)


@router.post(
    '/table',
    response_model=OrderInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Order')
async def create_table_order(
    branch_id: UUID,
    order_data: TableOrderCreate,
    session: DbSession,
    current_user: StaffUser,
) -> OrderInfo:
    """Открывает заказ за столом, выбранным официантом."""
    try:
        return await order_repository.create_table_order(
            session,
            branch_id,
            order_data,
        )
    except ValueError as e:
        logger.error(f'Ошибка при открытии заказа: {str(e)}')
        raise http_error(e)


@router.post(
    '/walk_in',
    response_model=WalkInOrderInfo,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_409_CONFLICT: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Order')
async def create_walk_in_order(
    branch_id: UUID,
    order_data: WalkInOrderCreate,
    session: DbSession,
    current_user: StaffUser,
) -> WalkInOrderInfo:
    """Сажает гостей без брони за автоматически подобранный стол.

    Args:
        branch_id: UUID идентификатор филиала
        order_data: Количество гостей
        session: Асинхронная сессия базы данных
        current_user: Информация о текущем пользователе
    Returns:
        WalkInOrderInfo: Открытый заказ и подобранный стол
    Raises:
        HTTPException: 400 если сейчас нет работающего слота
        HTTPException: 409 если свободного стола нет

    """
    try:
        order, assignment = await order_repository.create_walk_in(
            session,
            branch_id,
            order_data,
        )
    except ValueError as e:
        logger.warning(f'Гостей без брони не посадить: {str(e)}')
        raise http_error(e)
    except Exception as e:
        logger.error(f'Ошибка при посадке гостей без брони: {str(e)}')
        raise internal_error() from e
    return WalkInOrderInfo(
        order=OrderInfo.model_validate(order),
        assignment=assignment,
    )


@router.get(
    '/tables_for_move',
    response_model=List[TableShortInfo],
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_tables_for_move(
    branch_id: UUID,
    session: DbSession,
    current_user: StaffUser,
) -> List[TableShortInfo]:
    """Столы, за которые можно перенести заказ прямо сейчас."""
    try:
        return await order_repository.tables_for_move(session, branch_id)
    except ValueError as e:
        raise http_error(e)


@router.post(
    '/{order_id}/move',
    response_model=OrderInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Order')
async def move_order(
    branch_id: UUID,
    order_id: UUID,
    move_data: OrderMove,
    session: DbSession,
    current_user: StaffUser,
) -> OrderInfo:
    """Переносит заказ за другой стол."""
    try:
        order = await order_repository.get_in_branch(
            session,
            branch_id,
            order_id,
        )
        return await order_repository.move(
            session,
            branch_id,
            order,
            move_data.target_table_id,
        )
    except ValueError as e:
        raise http_error(e)


@router.post(
    '/{order_id}/close',
    response_model=OrderInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Order')
async def close_order(
    branch_id: UUID,
    order_id: UUID,
    close_data: OrderClose,
    session: DbSession,
    current_user: StaffUser,
) -> OrderInfo:
    """Закрывает заказ и освобождает стол."""
    try:
        order = await order_repository.get_in_branch(
            session,
            branch_id,
            order_id,
        )
        return await order_repository.close(
            session,
            order,
            close_data.status,
        )
    except ValueError as e:
        raise http_error(e)
