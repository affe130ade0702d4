from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.exceptions import NotFoundError
from restaurant_pos.models import Branch, Table, TimeSlot
from restaurant_pos.services.schedule import day_of_week, runs_on
from restaurant_pos.utils.enums import DayOfWeek


@dataclass
class TablePools:
    """Разбиение столов филиала для конкретного слота и даты."""

    branch: Branch
    time_slot: TimeSlot
    day: DayOfWeek
    exclusive: list[Table] = field(default_factory=list)
    shared_pool: list[Table] = field(default_factory=list)


def partition_tables(
    tables: Sequence[Table],
    own_exclusive_ids: Iterable[UUID],
    blocked_ids: Iterable[UUID],
) -> tuple[list[Table], list[Table]]:
    """Делит активные столы на эксклюзивные и общий пул.

    Args:
        tables: Активные столы филиала
        own_exclusive_ids: Столы, закреплённые за запрошенным слотом
        blocked_ids: Столы, эксклюзивно закреплённые за другими слотами,
            пересекающимися с запрошенным

    Returns:
        Пара (эксклюзивные столы, общий пул) в порядке исходного списка.

    """
    own_exclusive_ids = set(own_exclusive_ids)
    blocked_ids = set(blocked_ids)
    exclusive = [table for table in tables if table.id in own_exclusive_ids]
    shared_pool = [table for table in tables if table.id not in blocked_ids]
    return exclusive, shared_pool


class TablePoolService:
    """Сервис определения пулов столов для временного слота."""

    @staticmethod
    async def get_branch_and_slot(
        session: AsyncSession,
        branch_id: UUID,
        time_slot_id: UUID,
    ) -> tuple[Branch, TimeSlot]:
        """Возвращает филиал и его слот или выбрасывает NotFoundError."""
        branch = await session.get(Branch, branch_id)
        if branch is None:
            raise NotFoundError('Филиал не найден')
        time_slot = await session.get(TimeSlot, time_slot_id)
        if time_slot is None or time_slot.branch_id != branch_id:
            raise NotFoundError('Временной слот не найден')
        return branch, time_slot

    @staticmethod
    async def get_active_tables(
        session: AsyncSession,
        branch_id: UUID,
        *,
        for_update: bool = False,
    ) -> list[Table]:
        """Активные столы филиала по возрастанию номера.

        При for_update строки столов блокируются до конца транзакции.
        """
        stmt = (
            select(Table)
            .where(Table.branch_id == branch_id, Table.is_active.is_(True))
            .order_by(Table.number)
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(
                populate_existing=True,
            )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def exclusive_tables_of_overlapping_slots(
        session: AsyncSession,
        branch_id: UUID,
        start_time: time,
        end_time: time,
        day: Optional[DayOfWeek],
        exclude_time_slot_id: Optional[UUID] = None,
    ) -> dict[UUID, TimeSlot]:
        """Столы, эксклюзивно занятые пересекающимися слотами.

        Учитываются только активные слоты, работающие в day. Если day не
        задан, конфликтом считается совпадение хотя бы по одному дню.

        Returns:
            dict[UUID, TimeSlot]: Слот, который закрепил стол, по
                идентификатору стола.

        """
        stmt = select(TimeSlot).where(
            TimeSlot.branch_id == branch_id,
            TimeSlot.is_active.is_(True),
            TimeSlot.start_time < end_time,
            TimeSlot.end_time > start_time,
        )
        if exclude_time_slot_id is not None:
            stmt = stmt.where(TimeSlot.id != exclude_time_slot_id)
        result = await session.execute(stmt)
        blocked = {}
        for other in result.scalars().all():
            if day is not None and not runs_on(other.days_of_week, day):
                continue
            for table_id in other.exclusive_table_ids:
                blocked.setdefault(table_id, other)
        return blocked

    @staticmethod
    async def resolve_pools(
        session: AsyncSession,
        branch_id: UUID,
        reservation_date: date,
        time_slot_id: UUID,
        *,
        for_update: bool = False,
    ) -> TablePools:
        """Определяет эксклюзивный и общий пулы столов.

        Эксклюзивный пул: активные столы, закреплённые за слотом с
        is_exclusive. Общий пул: все активные столы филиала, кроме
        закреплённых эксклюзивно за другими активными слотами, которые
        пересекаются с запрошенным по времени и работают в день недели
        даты бронирования. Если за слотом не закреплено ни одного стола,
        эксклюзивный пул пуст, а общий состоит из всех активных столов.

        Raises:
            NotFoundError: Филиал или слот не найдены.

        """
        branch, time_slot = await TablePoolService.get_branch_and_slot(
            session,
            branch_id,
            time_slot_id,
        )
        day = day_of_week(reservation_date)
        tables = await TablePoolService.get_active_tables(
            session,
            branch_id,
            for_update=for_update,
        )
        blocked_by = TablePoolService.exclusive_tables_of_overlapping_slots
        blocked = await blocked_by(
            session,
            branch_id,
            time_slot.start_time,
            time_slot.end_time,
            day,
            exclude_time_slot_id=time_slot.id,
        )
        exclusive, shared_pool = partition_tables(
            tables,
            time_slot.exclusive_table_ids,
            blocked,
        )
        return TablePools(
            branch=branch,
            time_slot=time_slot,
            day=day,
            exclusive=exclusive,
            shared_pool=shared_pool,
        )
