from datetime import date
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.exceptions import NotFoundError
from restaurant_pos.models import (
    Reservation,
    ReservationTable,
    Table,
    TimeSlot,
)
from restaurant_pos.utils.enums import ACTIVE_RESERVATION_STATUSES


def remaining_capacity_for(
    capacity: int,
    is_shared: bool,
    occupied: int,
) -> int:
    """Остаток мест за столом при известной занятости.

    Обычный стол занимается целиком: любая активная бронь обнуляет его
    вместимость. Общий стол делится между компаниями до заполнения.
    """
    if not is_shared:
        return 0 if occupied > 0 else capacity
    return max(0, capacity - occupied)


def overlapping_slots_query(time_slot: TimeSlot) -> Select:
    """Слоты филиала, окно которых пересекается с окном time_slot.

    Сам слот тоже попадает в выборку. Активность и дни недели соседних
    слотов не проверяются: день задаёт дата бронирования, а места,
    занятые бронированиями отключённого слота, остаются занятыми.
    """
    return select(TimeSlot.id).where(
        TimeSlot.branch_id == time_slot.branch_id,
        TimeSlot.start_time < time_slot.end_time,
        TimeSlot.end_time > time_slot.start_time,
    )


class CapacityService:
    """Сервис расчёта оставшейся вместимости столов."""

    @staticmethod
    async def occupied_seats(
        session: AsyncSession,
        table_ids: Iterable[UUID],
        reservation_date: date,
        slot_condition: Any,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> dict[UUID, int]:
        """Суммирует гостей активных бронирований по каждому столу.

        Выполняется одним агрегирующим запросом с GROUP BY по столу.
        Бронирования без временного слота в выборку не попадают.

        Args:
            session: Асинхронная сессия базы данных
            table_ids: Столы, для которых считается занятость
            reservation_date: Дата бронирования
            slot_condition: SQLAlchemy-условие на Reservation.time_slot_id
            exclude_reservation_id: Бронирование, которое не учитывается
                (при переназначении столов)

        Returns:
            dict[UUID, int]: Число занятых мест по идентификатору стола.
                Столы без бронирований в словарь не попадают.

        """
        table_ids = list(table_ids)
        if not table_ids:
            return {}
        stmt = (
            select(
                ReservationTable.table_id,
                func.coalesce(func.sum(Reservation.people), 0),
            )
            .join(
                Reservation,
                Reservation.id == ReservationTable.reservation_id,
            )
            .where(
                ReservationTable.table_id.in_(table_ids),
                Reservation.date == reservation_date,
                Reservation.time_slot_id.is_not(None),
                slot_condition,
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
                Reservation.is_active.is_(True),
            )
            .group_by(ReservationTable.table_id)
        )
        if exclude_reservation_id is not None:
            stmt = stmt.where(Reservation.id != exclude_reservation_id)
        result = await session.execute(stmt)
        return {table_id: int(seats) for table_id, seats in result.all()}

    @staticmethod
    def _remaining(
        tables: Sequence[Table],
        occupied: dict[UUID, int],
    ) -> dict[UUID, int]:
        return {
            table.id: remaining_capacity_for(
                table.capacity,
                table.is_shared,
                occupied.get(table.id, 0),
            )
            for table in tables
        }

    @staticmethod
    async def remaining_capacity_batch(
        session: AsyncSession,
        tables: Sequence[Table],
        reservation_date: date,
        time_slot_id: UUID,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> dict[UUID, int]:
        """Остаток мест за столами ровно в этом слоте на эту дату."""
        occupied = await CapacityService.occupied_seats(
            session,
            [table.id for table in tables],
            reservation_date,
            Reservation.time_slot_id == time_slot_id,
            exclude_reservation_id,
        )
        return CapacityService._remaining(tables, occupied)

    @staticmethod
    async def remaining_capacity(
        session: AsyncSession,
        table: Table,
        reservation_date: date,
        time_slot_id: UUID,
    ) -> int:
        """Остаток мест за одним столом ровно в этом слоте."""
        capacities = await CapacityService.remaining_capacity_batch(
            session,
            [table],
            reservation_date,
            time_slot_id,
        )
        return capacities[table.id]

    @staticmethod
    async def remaining_capacity_fcfs_batch(
        session: AsyncSession,
        tables: Sequence[Table],
        reservation_date: date,
        time_slot: TimeSlot,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> dict[UUID, int]:
        """Остаток мест с учётом всех пересекающихся по времени слотов.

        Кто раньше забронировал стол в любом пересекающемся слоте, тот и
        занял его места. Слоты подбираются подзапросом внутри того же
        агрегирующего запроса.
        """
        occupied = await CapacityService.occupied_seats(
            session,
            [table.id for table in tables],
            reservation_date,
            Reservation.time_slot_id.in_(overlapping_slots_query(time_slot)),
            exclude_reservation_id,
        )
        return CapacityService._remaining(tables, occupied)

    @staticmethod
    async def remaining_capacity_fcfs(
        session: AsyncSession,
        table: Table,
        reservation_date: date,
        time_slot_id: UUID,
    ) -> int:
        """Остаток мест за одним столом с учётом пересекающихся слотов."""
        time_slot = await session.get(TimeSlot, time_slot_id)
        if time_slot is None:
            raise NotFoundError('Временной слот не найден')
        capacities = await CapacityService.remaining_capacity_fcfs_batch(
            session,
            [table],
            reservation_date,
            time_slot,
        )
        return capacities[table.id]
