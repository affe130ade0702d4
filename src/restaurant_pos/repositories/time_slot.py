from datetime import date, time
from decimal import Decimal
from typing import Any, Iterable, List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.models import Reservation, Table, TimeSlot, TimeSlotTable
from restaurant_pos.repositories.base import CRUDBase
from restaurant_pos.repositories.branch import branch_repository
from restaurant_pos.schemas.time_slot import (
    TableSlotConflict,
    TimeSlotAvailability,
    TimeSlotCreate,
    TimeSlotUpdate,
)
from restaurant_pos.services.cache_service import CacheService
from restaurant_pos.services.schedule import day_of_week, runs_on
from restaurant_pos.services.table_pools import TablePoolService
from restaurant_pos.utils.enums import ACTIVE_RESERVATION_STATUSES, DayOfWeek


def _slot_capacity(time_slot: TimeSlot) -> Optional[int]:
    """Лимит гостей слота. None означает, что лимита нет.

    Ручной customer_limit важнее суммы мест эксклюзивных столов. Слот без
    эксклюзивных столов работает по общему пулу и не ограничен.
    """
    if time_slot.customer_limit:
        return time_slot.customer_limit
    capacity = sum(
        link.table.capacity
        for link in time_slot.table_links
        if link.is_exclusive and link.table.is_active
    )
    return capacity or None


def _schedule_entry(time_slot: TimeSlot) -> dict[str, Any]:
    return {
        'id': str(time_slot.id),
        'name': time_slot.name,
        'start_time': time_slot.start_time.isoformat(),
        'end_time': time_slot.end_time.isoformat(),
        'price_per_person': (
            str(time_slot.price_per_person)
            if time_slot.price_per_person is not None
            else None
        ),
        'capacity': _slot_capacity(time_slot),
    }


class TimeSlotRepository(CRUDBase[TimeSlot, TimeSlotCreate, TimeSlotUpdate]):
    """Репозиторий для операций с временными слотами."""

    not_found_message = 'Временной слот не найден'

    def __init__(self) -> None:
        """Инициализация репозитория слотов."""
        super().__init__(TimeSlot)

    async def get_multi_by_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        *,
        show_all: bool = False,
    ) -> List[TimeSlot]:
        """Получает слоты филиала по времени начала."""
        conditions = [TimeSlot.branch_id == branch_id]
        if not show_all:
            conditions.append(TimeSlot.is_active.is_(True))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(TimeSlot.start_time, TimeSlot.name),
        )

    async def create_for_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        obj_in: TimeSlotCreate,
        cache: CacheService,
    ) -> TimeSlot:
        """Создает слот и закрепляет за ним выбранные столы эксклюзивно."""
        await branch_repository.get_or_404(session, branch_id)
        await self._ensure_tables_in_branch(
            session,
            branch_id,
            obj_in.table_ids,
        )
        await self._ensure_no_exclusive_conflicts(
            session,
            branch_id,
            obj_in.start_time,
            obj_in.end_time,
            obj_in.days_of_week,
            obj_in.table_ids,
        )
        create_data = obj_in.model_dump(exclude={'table_ids'})
        create_data['days_of_week'] = [
            day.value for day in obj_in.days_of_week
        ]
        db_obj = self.model(**create_data, branch_id=branch_id)
        db_obj.table_links = [
            TimeSlotTable(table_id=table_id, is_exclusive=True)
            for table_id in obj_in.table_ids
        ]
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        await cache.clear_time_slots_cache(branch_id)
        return db_obj

    async def update_in_branch(
        self,
        session: AsyncSession,
        db_obj: TimeSlot,
        obj_in: TimeSlotUpdate,
        cache: CacheService,
    ) -> TimeSlot:
        """Обновляет слот. Переданный table_ids заменяет набор столов."""
        update_data = obj_in.model_dump(
            exclude_unset=True,
            exclude={'table_ids'},
        )
        start_time = update_data.get('start_time', db_obj.start_time)
        end_time = update_data.get('end_time', db_obj.end_time)
        self._ensure_valid_interval(start_time, end_time)
        if obj_in.table_ids is not None:
            await self._ensure_tables_in_branch(
                session,
                db_obj.branch_id,
                obj_in.table_ids,
            )
        if update_data.get('is_active', db_obj.is_active):
            await self._ensure_no_exclusive_conflicts(
                session,
                db_obj.branch_id,
                start_time,
                end_time,
                obj_in.days_of_week or db_obj.days_of_week,
                (
                    obj_in.table_ids
                    if obj_in.table_ids is not None
                    else db_obj.exclusive_table_ids
                ),
                exclude_id=db_obj.id,
            )
        if obj_in.days_of_week is not None:
            update_data['days_of_week'] = [
                day.value for day in obj_in.days_of_week
            ]
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        if obj_in.table_ids is not None:
            db_obj.table_links.clear()
            await session.flush()
            db_obj.table_links.extend(
                TimeSlotTable(table_id=table_id, is_exclusive=True)
                for table_id in obj_in.table_ids
            )
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        await cache.clear_time_slots_cache(db_obj.branch_id)
        return db_obj

    async def toggle(
        self,
        session: AsyncSession,
        db_obj: TimeSlot,
        cache: CacheService,
    ) -> TimeSlot:
        """Включает или отключает слот.

        Включить слот нельзя, пока его эксклюзивные столы закреплены за
        другим активным слотом, пересекающимся с ним по времени.
        """
        if not db_obj.is_active:
            await self._ensure_no_exclusive_conflicts(
                session,
                db_obj.branch_id,
                db_obj.start_time,
                db_obj.end_time,
                db_obj.days_of_week,
                db_obj.exclusive_table_ids,
                exclude_id=db_obj.id,
            )
        db_obj.is_active = not db_obj.is_active
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        await cache.clear_time_slots_cache(db_obj.branch_id)
        return db_obj

    async def remove(
        self,
        session: AsyncSession,
        db_obj: TimeSlot,
        cache: CacheService,
        *,
        hard: bool = False,
    ) -> Optional[TimeSlot]:
        """Отключает слот, а при hard удаляет его.

        Удалить можно только слот, на который нет ни одного бронирования.
        """
        branch_id = db_obj.branch_id
        if not hard:
            db_obj.is_active = False
            session.add(db_obj)
            await session.commit()
            await session.refresh(db_obj)
            await cache.clear_time_slots_cache(branch_id)
            return db_obj
        result = await session.execute(
            select(func.count(Reservation.id)).where(
                Reservation.time_slot_id == db_obj.id,
            ),
        )
        if result.scalar_one():
            raise ValueError(
                'Нельзя удалить слот с бронированиями, отключите его',
            )
        await self.delete(db_obj, session)
        await cache.clear_time_slots_cache(branch_id)
        return None

    async def get_schedule(
        self,
        session: AsyncSession,
        branch_id: UUID,
        day: DayOfWeek,
        cache: CacheService,
    ) -> list[dict[str, Any]]:
        """Активные слоты филиала на день недели, с кешем в Redis."""
        cached = await cache.get_schedule(branch_id, day)
        if cached is not None:
            return cached
        time_slots = await self.get_multi_by_branch(session, branch_id)
        schedule = [
            _schedule_entry(time_slot)
            for time_slot in time_slots
            if runs_on(time_slot.days_of_week, day)
        ]
        await cache.set_schedule(branch_id, day, schedule)
        return schedule

    async def available_for_date(
        self,
        session: AsyncSession,
        branch_id: UUID,
        reservation_date: date,
        party_size: int,
        cache: CacheService,
    ) -> list[TimeSlotAvailability]:
        """Слоты, работающие в день даты, с признаком наличия мест.

        Забронированные места считаются по бронированиям PENDING и
        CONFIRMED именно этого слота на эту дату.
        """
        await branch_repository.get_or_404(session, branch_id)
        schedule = await self.get_schedule(
            session,
            branch_id,
            day_of_week(reservation_date),
            cache,
        )
        booked = await self._booked_people(
            session,
            branch_id,
            reservation_date,
            [UUID(entry['id']) for entry in schedule],
        )
        slots = []
        for entry in schedule:
            capacity = entry['capacity']
            booked_people = booked.get(UUID(entry['id']), 0)
            available = (
                None if capacity is None else max(0, capacity - booked_people)
            )
            slots.append(
                TimeSlotAvailability(
                    id=entry['id'],
                    name=entry['name'],
                    start_time=time.fromisoformat(entry['start_time']),
                    end_time=time.fromisoformat(entry['end_time']),
                    price_per_person=(
                        Decimal(entry['price_per_person'])
                        if entry['price_per_person'] is not None
                        else None
                    ),
                    capacity=capacity,
                    booked_people=booked_people,
                    available_capacity=available,
                    has_availability=(
                        available is None or available >= party_size
                    ),
                ),
            )
        return slots

    async def table_conflicts(
        self,
        session: AsyncSession,
        branch_id: UUID,
        start_time: time,
        end_time: time,
        days: Iterable[DayOfWeek],
        exclude_id: Optional[UUID] = None,
    ) -> list[TableSlotConflict]:
        """Столы, которые уже эксклюзивно заняты пересекающимися слотами.

        Нужен при настройке слота: такие столы нельзя закрепить за новым
        слотом без конфликта пулов.
        """
        self._ensure_valid_interval(start_time, end_time)
        blocked_by = TablePoolService.exclusive_tables_of_overlapping_slots
        conflicts: dict[UUID, TimeSlot] = {}
        for day in days:
            blocked = await blocked_by(
                session,
                branch_id,
                start_time,
                end_time,
                day,
                exclude_time_slot_id=exclude_id,
            )
            for table_id, time_slot in blocked.items():
                conflicts.setdefault(table_id, time_slot)
        return [
            TableSlotConflict(
                table_id=table_id,
                time_slot_id=time_slot.id,
                time_slot_name=time_slot.name,
            )
            for table_id, time_slot in conflicts.items()
        ]

    async def _booked_people(
        self,
        session: AsyncSession,
        branch_id: UUID,
        reservation_date: date,
        time_slot_ids: list[UUID],
    ) -> dict[UUID, int]:
        """Сумма гостей активных бронирований по каждому слоту."""
        if not time_slot_ids:
            return {}
        result = await session.execute(
            select(Reservation.time_slot_id, func.sum(Reservation.people))
            .where(
                Reservation.branch_id == branch_id,
                Reservation.date == reservation_date,
                Reservation.time_slot_id.in_(time_slot_ids),
                Reservation.status.in_(ACTIVE_RESERVATION_STATUSES),
                Reservation.is_active.is_(True),
            )
            .group_by(Reservation.time_slot_id),
        )
        return {slot_id: int(people) for slot_id, people in result.all()}

    async def _ensure_tables_in_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        table_ids: list[UUID],
    ) -> None:
        """Проверяет, что все столы существуют и относятся к филиалу."""
        if not table_ids:
            return
        result = await session.execute(
            select(Table.id).where(
                Table.id.in_(table_ids),
                Table.branch_id == branch_id,
            ),
        )
        found = set(result.scalars().all())
        missing = [table_id for table_id in table_ids if table_id not in found]
        if missing:
            logger.warning(
                f'Столы {missing} не найдены в филиале {branch_id}',
            )
            raise ValueError('Некоторые столы не относятся к филиалу')

    async def _ensure_no_exclusive_conflicts(
        self,
        session: AsyncSession,
        branch_id: UUID,
        start_time: time,
        end_time: time,
        days: Iterable[DayOfWeek | str],
        table_ids: Iterable[UUID],
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """Стол нельзя закрепить за двумя пересекающимися слотами.

        Иначе стол попадает в эксклюзивные пулы обоих слотов, а остаток
        мест каждого пула считается только по своему слоту.
        """
        table_ids = set(table_ids)
        if not table_ids:
            return
        conflicts = await self.table_conflicts(
            session,
            branch_id,
            start_time,
            end_time,
            [DayOfWeek(day) for day in days],
            exclude_id=exclude_id,
        )
        taken = [item for item in conflicts if item.table_id in table_ids]
        if not taken:
            return
        result = await session.execute(
            select(Table.id, Table.number).where(
                Table.id.in_([item.table_id for item in taken]),
            ),
        )
        numbers = dict(result.all())
        raise ValueError(
            '; '.join(
                f'Стол №{numbers[item.table_id]} уже закреплён за слотом '
                f'"{item.time_slot_name}"'
                for item in sorted(
                    taken,
                    key=lambda item: numbers[item.table_id],
                )
            ),
        )

    def _ensure_valid_interval(self, start_time: time, end_time: time) -> None:
        """Проверяет корректность временного интервала."""
        if start_time >= end_time:
            raise ValueError(
                'Время начала должно быть меньше времени окончания',
            )


time_slot_repository = TimeSlotRepository()
