from datetime import date
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.models import Reservation, ReservationTable, Table
from restaurant_pos.repositories.base import CRUDBase
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.schemas.table import (
    TableAvailability,
    TableCreate,
    TableUpdate,
)
from restaurant_pos.services.assignment import AssignmentService
from restaurant_pos.services.table_pools import TablePoolService
from restaurant_pos.utils.enums import (
    ACTIVE_RESERVATION_STATUSES,
    TableStatus,
)


class TableRepository(CRUDBase[Table, TableCreate, TableUpdate]):
    """Репозиторий для операций со столами."""

    not_found_message = 'Стол не найден'

    def __init__(self) -> None:
        """Инициализация репозитория столов."""
        super().__init__(Table)

    async def get_multi_by_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        *,
        skip: int = 0,
        limit: int = 100,
        show_all: bool = False,
    ) -> List[Table]:
        """Получает список столов филиала по возрастанию номера."""
        conditions = [Table.branch_id == branch_id]
        if not show_all:
            conditions.append(Table.is_active.is_(True))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Table.number,),
            offset=skip,
            limit=limit,
        )

    async def create_for_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        obj_in: TableCreate,
    ) -> Table:
        """Создает стол. Без названия стол называется по номеру."""
        await branch_repository.get_or_404(session, branch_id)
        await self._ensure_unique_number(session, branch_id, obj_in.number)
        create_data = obj_in.model_dump()
        if not create_data.get('name'):
            create_data['name'] = str(obj_in.number)
        db_obj = self.model(**create_data, branch_id=branch_id)
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        return db_obj

    async def update_in_branch(
        self,
        session: AsyncSession,
        db_obj: Table,
        obj_in: TableUpdate,
    ) -> Table:
        """Обновляет стол с проверкой уникальности номера."""
        if obj_in.number is not None and obj_in.number != db_obj.number:
            await self._ensure_unique_number(
                session,
                db_obj.branch_id,
                obj_in.number,
                exclude_id=db_obj.id,
            )
        return await self.update_obj(db_obj, obj_in, session)

    async def set_status(
        self,
        session: AsyncSession,
        db_obj: Table,
        status: Optional[TableStatus],
    ) -> Table:
        """Ручная установка статуса стола."""
        db_obj.status = status
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        logger.info(
            f'Стол №{db_obj.number} филиала {db_obj.branch_id}: статус '
            f'{status.value if status else "не задан"}',
        )
        return db_obj

    async def delete_table(
        self,
        session: AsyncSession,
        db_obj: Table,
    ) -> Table:
        """Удаляет стол, если он не назначен ни одному бронированию."""
        result = await session.execute(
            select(ReservationTable.reservation_id)
            .join(
                Reservation,
                Reservation.id == ReservationTable.reservation_id,
            )
            .where(
                ReservationTable.table_id == db_obj.id,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
            )
            .limit(1),
        )
        if result.scalars().first():
            raise ValueError(
                'Нельзя удалить стол с активными бронированиями, '
                'сначала отключите его',
            )
        history = await session.execute(
            select(ReservationTable.reservation_id)
            .where(ReservationTable.table_id == db_obj.id)
            .limit(1),
        )
        if history.scalars().first():
            raise ValueError(
                'Стол участвовал в бронированиях, его можно только отключить',
            )
        return await self.delete(db_obj, session)

    async def availability(
        self,
        session: AsyncSession,
        branch_id: UUID,
        reservation_date: date,
        time_slot_id: UUID,
    ) -> list[TableAvailability]:
        """Остаток мест каждого активного стола на дату и слот."""
        pools = await TablePoolService.resolve_pools(
            session,
            branch_id,
            reservation_date,
            time_slot_id,
        )
        exclusive, shared_pool = await AssignmentService.build_candidates(
            session,
            pools,
            reservation_date,
        )
        exclusive_by_id = {item.id: item for item in exclusive}
        pool_by_id = {item.id: item for item in shared_pool}
        tables = await TablePoolService.get_active_tables(session, branch_id)
        rows = []
        for table in tables:
            candidate = exclusive_by_id.get(table.id) or pool_by_id.get(
                table.id,
            )
            rows.append(
                TableAvailability(
                    id=table.id,
                    number=table.number,
                    name=table.name,
                    capacity=table.capacity,
                    is_shared=table.is_shared,
                    status=table.status,
                    remaining_capacity=(
                        candidate.remaining if candidate else 0
                    ),
                    is_exclusive=table.id in exclusive_by_id,
                    in_shared_pool=table.id in pool_by_id,
                    is_available=bool(candidate and candidate.is_selectable),
                ),
            )
        return rows

    async def _ensure_unique_number(
        self,
        session: AsyncSession,
        branch_id: UUID,
        number: int,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """Проверяет уникальность номера стола в филиале."""
        stmt = select(Table.id).where(
            Table.branch_id == branch_id,
            Table.number == number,
        )
        if exclude_id is not None:
            stmt = stmt.where(Table.id != exclude_id)
        result = await session.execute(stmt)
        if result.scalars().first():
            raise ValueError(f'Стол №{number} уже есть в филиале')


table_repository = TableRepository()
