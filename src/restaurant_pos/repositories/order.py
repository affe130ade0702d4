import secrets
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.constants import ORDER_PUBLIC_CODE_LENGTH
from restaurant_pos.core.exceptions import CapacityError, NotFoundError
from restaurant_pos.models import (
    Order,
    Reservation,
    ReservationTable,
    Table,
    TimeSlot,
)
from restaurant_pos.repositories.base import CRUDBase
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.repositories.table import table_repository
from restaurant_pos.repositories.time_slot import time_slot_repository
from restaurant_pos.schemas.assignment import TableAssignment
from restaurant_pos.schemas.order import (
    OrderClose,
    TableOrderCreate,
    WalkInOrderCreate,
)
from restaurant_pos.services.assignment import AssignmentService
from restaurant_pos.services.locks import assignment_locks
from restaurant_pos.services.schedule import (
    branch_now,
    day_of_week,
    runs_on,
    window_contains,
)
from restaurant_pos.services.table_pools import TablePoolService
from restaurant_pos.services.table_status import TableStatusService
from restaurant_pos.utils.enums import (
    ACTIVE_ORDER_STATUSES,
    FailureReason,
    OrderStatus,
    OrderType,
    ReservationStatus,
    TableStatus,
)

# Бронирования, которые делают стол недоступным для переноса заказа.
BLOCKING_RESERVATION_STATUSES = (
    ReservationStatus.CONFIRMED,
    ReservationStatus.SEATED,
)


class OrderRepository(CRUDBase[Order, TableOrderCreate, OrderClose]):
    """Репозиторий заказов в зале."""

    not_found_message = 'Заказ не найден'

    def __init__(self) -> None:
        """Инициализация репозитория заказов."""
        super().__init__(Order)

    async def get_multi_by_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        *,
        active_only: bool = True,
    ) -> List[Order]:
        """Заказы филиала, по умолчанию только открытые."""
        conditions = [Order.branch_id == branch_id]
        if active_only:
            conditions.append(Order.status.in_(ACTIVE_ORDER_STATUSES))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Order.created_at,),
        )

    async def create_table_order(
        self,
        session: AsyncSession,
        branch_id: UUID,
        obj_in: TableOrderCreate,
    ) -> Order:
        """Открывает заказ за выбранным столом и занимает стол."""
        table = await table_repository.get_in_branch(
            session,
            branch_id,
            obj_in.table_id,
        )
        await self._ensure_table_accepts_order(session, table)
        order = await self._open_order(
            session,
            branch_id,
            table.id,
            obj_in.party_size,
        )
        await session.commit()
        await session.refresh(order)
        return order

    async def create_walk_in(
        self,
        session: AsyncSession,
        branch_id: UUID,
        obj_in: WalkInOrderCreate,
    ) -> tuple[Order, TableAssignment]:
        """Сажает гостей без брони за подобранный стол.

        Стол подбирается движком по текущему временному слоту филиала.
        Заказ ведётся за одним столом, поэтому комбинации столов не
        рассматриваются.

        Raises:
            NotFoundError: Филиал не найден.
            ValueError: Сейчас нет работающего слота.
            CapacityError: Свободного стола нет.

        """
        branch = await branch_repository.get_or_404(
            session,
            branch_id,
            only_active=True,
        )
        now = branch_now(branch.timezone)
        time_slot = await self.current_time_slot(session, branch_id, now)
        if time_slot is None:
            raise ValueError('Сейчас нет работающего временного слота')
        async with assignment_locks.hold(branch_id, now.date()):
            result = await AssignmentService.find_available_tables(
                session,
                branch_id,
                now.date(),
                time_slot.id,
                obj_in.party_size,
                for_update=True,
                max_tables=1,
            )
            if result.reason == FailureReason.NOT_FOUND:
                raise NotFoundError(result.error)
            if not result.success:
                raise CapacityError(
                    f'Нет свободного стола для {obj_in.party_size} гостей',
                )
            order = await self._open_order(
                session,
                branch_id,
                result.data.table_ids[0],
                obj_in.party_size,
            )
            await session.commit()
        await session.refresh(order)
        return order, result.data

    async def current_time_slot(
        self,
        session: AsyncSession,
        branch_id: UUID,
        now: datetime,
    ) -> Optional[TimeSlot]:
        """Активный слот филиала, в окно которого попадает now."""
        day = day_of_week(now.date())
        moment = now.time().replace(tzinfo=None)
        for time_slot in await time_slot_repository.get_multi_by_branch(
            session,
            branch_id,
        ):
            if not runs_on(time_slot.days_of_week, day):
                continue
            if window_contains(time_slot, moment):
                return time_slot
        return None

    async def tables_for_move(
        self,
        session: AsyncSession,
        branch_id: UUID,
    ) -> list[Table]:
        """Столы, за которые можно перенести заказ прямо сейчас.

        Подходят свободные активные столы и занятые общие столы. Обычный
        стол с открытым заказом не подходит. Не подходит и стол, чьё
        подтверждённое бронирование идёт в эту минуту.
        """
        branch = await branch_repository.get_or_404(session, branch_id)
        now = branch_now(branch.timezone)
        moment = now.time().replace(tzinfo=None)
        tables = await TablePoolService.get_active_tables(session, branch_id)
        tables = [
            table
            for table in tables
            if table.is_free
            or (table.is_shared and table.status == TableStatus.OCCUPIED)
        ]
        busy = await TableStatusService.tables_with_active_orders(
            session,
            [table.id for table in tables if not table.is_shared],
        )
        result = await session.execute(
            select(ReservationTable.table_id)
            .join(
                Reservation,
                Reservation.id == ReservationTable.reservation_id,
            )
            .join(TimeSlot, TimeSlot.id == Reservation.time_slot_id)
            .where(
                ReservationTable.table_id.in_(
                    [table.id for table in tables],
                ),
                Reservation.date == now.date(),
                Reservation.status.in_(BLOCKING_RESERVATION_STATUSES),
                TimeSlot.start_time <= moment,
                TimeSlot.end_time > moment,
            ),
        )
        reserved = set(result.scalars().all())
        return [
            table
            for table in tables
            if table.id not in busy and table.id not in reserved
        ]

    async def move(
        self,
        session: AsyncSession,
        branch_id: UUID,
        order: Order,
        target_table_id: UUID,
    ) -> Order:
        """Переносит открытый заказ за другой стол.

        Целевой стол становится OCCUPIED. Исходный стол освобождается,
        если за ним не осталось открытых заказов.
        """
        if order.status not in ACTIVE_ORDER_STATUSES:
            raise ValueError('Нельзя перенести закрытый или отменённый заказ')
        if order.table_id is None:
            raise ValueError('Заказ не привязан к столу')
        if order.table_id == target_table_id:
            raise ValueError('Заказ уже за этим столом')
        target = await table_repository.get_in_branch(
            session,
            branch_id,
            target_table_id,
        )
        await self._ensure_table_accepts_order(session, target)
        source_table_id = order.table_id
        order.table_id = target.id
        session.add(order)
        await session.flush()
        await TableStatusService.set_status(
            session,
            [target.id],
            TableStatus.OCCUPIED,
        )
        await self._release_table(session, source_table_id)
        await session.commit()
        await session.refresh(order)
        logger.info(
            f'Заказ {order.public_code} перенесён со стола '
            f'{source_table_id} за стол {target.id}',
        )
        return order

    async def close(
        self,
        session: AsyncSession,
        order: Order,
        status: OrderStatus,
    ) -> Order:
        """Закрывает заказ и освобождает стол без других заказов."""
        if status in ACTIVE_ORDER_STATUSES:
            raise ValueError(
                'Заказ закрывается статусом COMPLETED или CANCELED',
            )
        if order.status not in ACTIVE_ORDER_STATUSES:
            raise ValueError('Заказ уже закрыт')
        previous_table_id = order.table_id
        order.status = status
        order.table_id = None
        session.add(order)
        await session.flush()
        if previous_table_id is not None:
            await self._release_table(session, previous_table_id)
        await session.commit()
        await session.refresh(order)
        return order

    async def _ensure_table_accepts_order(
        self,
        session: AsyncSession,
        table: Table,
    ) -> None:
        """Стол активен, а обычный стол ещё и без открытого заказа."""
        if not table.is_active:
            raise ValueError(f'Стол №{table.number} не активен')
        if table.is_shared:
            return
        busy = await TableStatusService.tables_with_active_orders(
            session,
            [table.id],
        )
        if busy:
            raise ValueError(
                f'За столом №{table.number} уже есть открытый заказ',
            )

    async def _open_order(
        self,
        session: AsyncSession,
        branch_id: UUID,
        table_id: UUID,
        party_size: int,
    ) -> Order:
        order = Order(
            branch_id=branch_id,
            table_id=table_id,
            party_size=party_size,
            type=OrderType.DINE_IN,
            status=OrderStatus.PENDING,
            public_code=await self._new_public_code(session),
        )
        session.add(order)
        await session.flush()
        await TableStatusService.set_status(
            session,
            [table_id],
            TableStatus.OCCUPIED,
        )
        logger.info(f'Заказ {order.public_code} открыт за столом {table_id}')
        return order

    async def _release_table(
        self,
        session: AsyncSession,
        table_id: UUID,
    ) -> None:
        """Освобождает стол, если за ним нет открытых заказов."""
        busy = await TableStatusService.tables_with_active_orders(
            session,
            [table_id],
        )
        if not busy:
            await TableStatusService.set_status(
                session,
                [table_id],
                TableStatus.EMPTY,
            )

    async def _new_public_code(self, session: AsyncSession) -> str:
        """Короткий код заказа для чека, уникальный среди заказов."""
        while True:
            code = 'KS' + secrets.token_hex(ORDER_PUBLIC_CODE_LENGTH // 2)
            code = code.upper()
            exists = await self.get(session, public_code=code)
            if exists is None:
                return code


order_repository = OrderRepository()
