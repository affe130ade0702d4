from datetime import date
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from restaurant_pos.core.auth import (
    MANAGEMENT_ROLES,
    STAFF_ROLES,
    public_or_role_checker,
    role_checker,
)
from restaurant_pos.core.db import DbSession
from restaurant_pos.models import Branch
from restaurant_pos.models.user import User
from restaurant_pos.repositories.reservation import reservation_repository
from restaurant_pos.schemas.assignment import (
    AssignmentPreviewRequest,
    AssignmentResult,
)
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.schemas.reservation import (
    ReservationCreate,
    ReservationCreated,
    ReservationInfo,
    ReservationStatusUpdate,
    ReservationTablesUpdate,
    ReservationUpdate,
)
from restaurant_pos.services.send_email_service import NotificationService
from restaurant_pos.utils.enums import ReservationStatus
from restaurant_pos.utils.http import http_error, internal_error
from restaurant_pos.utils.logging_decorator import event_logger

router = APIRouter(prefix='/reservations', tags=['Бронирования'])

WEB_SOURCE = 'WEB'
ASSIGNED_MESSAGE = 'Бронирование подтверждено, столы назначены'
PENDING_MESSAGE = 'Бронирование создано и ожидает назначения столов'


@router.post(
    '/',
    response_model=ReservationCreated,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Создана', 'Reservation')
async def create_reservation(
    reservation_data: ReservationCreate,
    session: DbSession,
    current_user: Annotated[
        Optional[User],
        Depends(public_or_role_checker(STAFF_ROLES)),
    ],
) -> ReservationCreated:
    """Создает бронирование и пытается сразу подобрать столы.

    Гость бронирует без авторизации через сайт, сотрудник из зала. Если
    мест не нашлось, бронирование остаётся в статусе pending, а столы
    назначаются вручную.

    Args:
        reservation_data: Данные бронирования
        session: Асинхронная сессия базы данных
        current_user: Сотрудник или None для бронирования с сайта

    Returns:
        ReservationCreated: Бронирование, подобранные столы и сообщение
    Raises:
        HTTPException: 404 если филиал или слот не найдены
        HTTPException: 400 если дата в прошлом или слот не работает

    """
    created_by = current_user.username if current_user else WEB_SOURCE
    try:
        reservation, assignment = (
            await reservation_repository.create_with_assignment(
                session,
                reservation_data,
                created_by,
            )
        )
    except ValueError as e:
        logger.error(f'Ошибка валидации при создании бронирования: {str(e)}')
        raise http_error(e)
    except Exception as e:
        logger.error(f'Неожиданная ошибка при создании бронирования: {e}')
        raise internal_error(
            'Внутренняя ошибка сервера при создании бронирования',
        ) from e
    branch = await session.get(Branch, reservation.branch_id)
    NotificationService.reservation_created(reservation, branch)
    return ReservationCreated(
        reservation=ReservationInfo.model_validate(reservation),
        auto_assigned=assignment is not None,
        assignment=assignment,
        message=ASSIGNED_MESSAGE if assignment else PENDING_MESSAGE,
    )


@router.get(
    '/',
    response_model=List[ReservationInfo],
    responses={
        status.HTTP_401_UNAUTHORIZED: {'model': ErrorResponse},
    },
)
async def get_reservations(
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
    branch_id: Optional[UUID] = Query(None, description='ID филиала'),
    reservation_status: Optional[ReservationStatus] = Query(
        None,
        alias='status',
    ),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> List[ReservationInfo]:
    """Список бронирований с фильтрами по филиалу, статусу и датам."""
    return await reservation_repository.get_multi_filtered(
        session,
        branch_id=branch_id,
        status=reservation_status,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=limit,
    )


@router.post(
    '/assignment/preview',
    response_model=AssignmentResult,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
    },
)
async def preview_assignment(
    preview_data: AssignmentPreviewRequest,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> AssignmentResult:
    """Показывает, какие столы были бы подобраны, ничего не сохраняя."""
    try:
        return await reservation_repository.preview_assignment(
            session,
            preview_data,
        )
    except ValueError as e:
        raise http_error(e)


@router.get(
    '/{reservation_id}',
    response_model=ReservationInfo,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
async def get_reservation(
    reservation_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> ReservationInfo:
    """Получение бронирования по ID."""
    try:
        return await reservation_repository.get_or_404(
            session,
            reservation_id,
        )
    except ValueError as e:
        raise http_error(e)


@router.patch(
    '/{reservation_id}',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_409_CONFLICT: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Reservation')
async def update_reservation(
    reservation_id: UUID,
    update_data: ReservationUpdate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> ReservationInfo:
    """Обновление бронирования.

    При переносе на другую дату или слот назначенные столы
    перепроверяются: если они заняты, возвращается 409.

    Args:
        reservation_id: UUID бронирования
        update_data: Изменяемые поля
        session: Асинхронная сессия базы данных
        current_user: Информация о текущем пользователе
    Returns:
        ReservationInfo: Обновленное бронирование
    Raises:
        HTTPException: 404 если бронирование не найдено
        HTTPException: 409 если столы не вмещают гостей

    """
    try:
        reservation = await reservation_repository.get_or_404(
            session,
            reservation_id,
        )
        reservation = await reservation_repository.update_with_validation(
            session,
            reservation,
            update_data,
        )
    except ValueError as e:
        logger.error(f'Ошибка при обновлении бронирования: {str(e)}')
        raise http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            f'Неожиданная ошибка при обновлении бронирования '
            f'{reservation_id}: {str(e)}',
        )
        raise internal_error(
            'Внутренняя ошибка сервера при обновлении бронирования',
        ) from e
    branch = await session.get(Branch, reservation.branch_id)
    NotificationService.reservation_updated(reservation, branch)
    return reservation


@router.patch(
    '/{reservation_id}/status',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Reservation')
async def change_reservation_status(
    reservation_id: UUID,
    status_data: ReservationStatusUpdate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> ReservationInfo:
    """Смена статуса бронирования со сменой статуса столов на сегодня."""
    try:
        reservation = await reservation_repository.get_or_404(
            session,
            reservation_id,
        )
        previous_status = reservation.status
        reservation = await reservation_repository.change_status(
            session,
            reservation,
            status_data.status,
        )
    except ValueError as e:
        raise http_error(e)
    if previous_status != reservation.status:
        branch = await session.get(Branch, reservation.branch_id)
        NotificationService.reservation_updated(
            reservation,
            branch,
            previous_status,
        )
    return reservation


@router.post(
    '/{reservation_id}/cancel',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Reservation')
async def cancel_reservation(
    reservation_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> ReservationInfo:
    """Отмена бронирования. Столы освобождаются."""
    try:
        reservation = await reservation_repository.get_or_404(
            session,
            reservation_id,
        )
        previous_status = reservation.status
        reservation = await reservation_repository.cancel(session, reservation)
    except ValueError as e:
        raise http_error(e)
    branch = await session.get(Branch, reservation.branch_id)
    NotificationService.reservation_updated(
        reservation,
        branch,
        previous_status,
    )
    return reservation


@router.put(
    '/{reservation_id}/tables',
    response_model=ReservationInfo,
    responses={
        status.HTTP_400_BAD_REQUEST: {'model': ErrorResponse},
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_409_CONFLICT: {'model': ErrorResponse},
    },
)
@event_logger('Обновлена', 'Reservation')
async def assign_reservation_tables(
    reservation_id: UUID,
    tables_data: ReservationTablesUpdate,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(STAFF_ROLES))],
) -> ReservationInfo:
    """Ручное назначение столов бронированию.

    Заменяет текущие столы и подтверждает бронирование. Если столы
    заняты или не вмещают гостей, возвращается 409.
    """
    try:
        reservation = await reservation_repository.get_or_404(
            session,
            reservation_id,
        )
        previous_status = reservation.status
        reservation = await reservation_repository.assign_tables(
            session,
            reservation,
            tables_data.table_ids,
        )
    except ValueError as e:
        logger.warning(
            f'Столы не назначены бронированию {reservation_id}: {e}',
        )
        raise http_error(e)
    branch = await session.get(Branch, reservation.branch_id)
    NotificationService.reservation_updated(
        reservation,
        branch,
        previous_status,
    )
    return reservation


@router.delete(
    '/{reservation_id}',
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        status.HTTP_404_NOT_FOUND: {'model': ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {'model': ErrorResponse},
    },
)
@event_logger('Удалена', 'Reservation')
async def delete_reservation(
    reservation_id: UUID,
    session: DbSession,
    current_user: Annotated[User, Depends(role_checker(MANAGEMENT_ROLES))],
) -> None:
    """Удаление бронирования менеджером."""
    try:
        reservation = await reservation_repository.get_or_404(
            session,
            reservation_id,
        )
        await reservation_repository.remove(session, reservation)
    except ValueError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(
            f'Ошибка при удалении бронирования {reservation_id}: {str(e)}',
        )
        raise internal_error() from e
