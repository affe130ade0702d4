from datetime import date
from typing import Iterable, Optional, assert_never
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.models import Branch, Order, Table
from restaurant_pos.services.schedule import branch_today
from restaurant_pos.utils.enums import (
    ACTIVE_ORDER_STATUSES,
    ReservationStatus,
    TableStatus,
)


def table_status_for(status: ReservationStatus) -> TableStatus:
    """Статус стола, который соответствует статусу бронирования."""
    match status:
        case ReservationStatus.PENDING | ReservationStatus.CONFIRMED:
            return TableStatus.RESERVED
        case ReservationStatus.SEATED:
            return TableStatus.OCCUPIED
        case (
            ReservationStatus.COMPLETED
            | ReservationStatus.CANCELED
            | ReservationStatus.NO_SHOW
        ):
            return TableStatus.EMPTY
        case _:
            assert_never(status)


class TableStatusService:
    """Синхронизация ручного статуса столов с бронированиями и заказами.

    Методы не фиксируют транзакцию: изменения коммитятся вместе со
    связями бронирования или заказа.
    """

    @staticmethod
    async def set_status(
        session: AsyncSession,
        table_ids: Iterable[UUID],
        status: Optional[TableStatus],
    ) -> None:
        """Выставляет статус столам."""
        table_ids = list(table_ids)
        if not table_ids:
            return
        await session.execute(
            update(Table)
            .where(Table.id.in_(table_ids))
            .values(status=status),
        )

    @staticmethod
    async def tables_with_active_orders(
        session: AsyncSession,
        table_ids: Iterable[UUID],
        exclude_order_id: Optional[UUID] = None,
    ) -> set[UUID]:
        """Столы, за которыми есть незакрытые заказы."""
        table_ids = list(table_ids)
        if not table_ids:
            return set()
        stmt = select(Order.table_id).where(
            Order.table_id.in_(table_ids),
            Order.status.in_(ACTIVE_ORDER_STATUSES),
        )
        if exclude_order_id is not None:
            stmt = stmt.where(Order.id != exclude_order_id)
        result = await session.execute(stmt.distinct())
        return set(result.scalars().all())

    @staticmethod
    async def sync_for_reservation(
        session: AsyncSession,
        branch: Branch,
        reservation_date: date,
        table_ids: Iterable[UUID],
        status: ReservationStatus,
    ) -> Optional[TableStatus]:
        """Обновляет статус столов после смены статуса бронирования.

        Статус меняется только для бронирований на сегодняшнюю дату
        филиала. Статус общих столов не меняется: их занятость
        определяется остатком мест. Столы с открытыми заказами не
        освобождаются.

        Returns:
            Optional[TableStatus]: Применённый статус или None, если
                обновление не требовалось.

        """
        table_ids = list(table_ids)
        if not table_ids:
            return None
        if reservation_date != branch_today(branch.timezone):
            return None
        target = table_status_for(status)
        result = await session.execute(
            select(Table.id).where(
                Table.id.in_(table_ids),
                Table.is_shared.is_(False),
            ),
        )
        ids = list(result.scalars().all())
        if target == TableStatus.EMPTY:
            busy = await TableStatusService.tables_with_active_orders(
                session,
                ids,
            )
            ids = [table_id for table_id in ids if table_id not in busy]
        await TableStatusService.set_status(session, ids, target)
        logger.info(
            f'Статус столов {ids} изменён на {target.value} '
            f'(бронирование {status.value})',
        )
        return target
