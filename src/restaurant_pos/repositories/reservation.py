from datetime import date
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.exceptions import CapacityError
from restaurant_pos.models import (
    Branch,
    Reservation,
    ReservationTable,
    TimeSlot,
)
from restaurant_pos.repositories.base import CRUDBase
from restaurant_pos.schemas.assignment import (
    AssignmentPreviewRequest,
    AssignmentResult,
    TableAssignment,
)
from restaurant_pos.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
)
from restaurant_pos.services.assignment import AssignmentService
from restaurant_pos.services.locks import assignment_locks
from restaurant_pos.services.schedule import (
    branch_today,
    day_of_week,
    runs_on,
)
from restaurant_pos.services.table_pools import TablePoolService
from restaurant_pos.services.table_status import TableStatusService
from restaurant_pos.utils.enums import (
    ACTIVE_RESERVATION_STATUSES,
    ReservationStatus,
)

FINAL_STATUSES = (
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELED,
    ReservationStatus.NO_SHOW,
)


class ReservationRepository(
    CRUDBase[Reservation, ReservationCreate, ReservationUpdate],
):
    """Репозиторий для операций с бронированиями.

    Всё, что меняет занятость столов, выполняется под блокировкой
    (филиал, дата): остаток мест пересчитывается после её получения и
    фиксируется в той же транзакции, что и связи со столами.
    """

    not_found_message = 'Бронирование не найдено'

    def __init__(self) -> None:
        """Инициализация репозитория бронирований."""
        super().__init__(Reservation)

    async def get_multi_filtered(
        self,
        session: AsyncSession,
        *,
        branch_id: Optional[UUID] = None,
        status: Optional[ReservationStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Reservation]:
        """Получает список бронирований по фильтрам."""
        conditions = [Reservation.is_active.is_(True)]
        if branch_id:
            conditions.append(Reservation.branch_id == branch_id)
        if status:
            conditions.append(Reservation.status == status)
        if date_from:
            conditions.append(Reservation.date >= date_from)
        if date_to:
            conditions.append(Reservation.date <= date_to)
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Reservation.date, Reservation.created_at),
            offset=skip,
            limit=limit,
        )

    async def create_with_assignment(
        self,
        session: AsyncSession,
        obj_in: ReservationCreate,
        created_by: str,
    ) -> tuple[Reservation, Optional[TableAssignment]]:
        """Создает бронирование и пытается подобрать ему столы.

        Бронирование создаётся в статусе PENDING. Если подбор включён и
        успешен, столы привязываются, а статус становится CONFIRMED.
        Отсутствие мест не ошибка: бронирование остаётся PENDING для
        ручного назначения.

        Args:
            session: Асинхронная сессия базы данных
            obj_in: Данные бронирования
            created_by: Кто создал бронирование (WEB или имя сотрудника)

        Returns:
            Бронирование и подобранные столы (None, если не подобраны).

        Raises:
            NotFoundError: Филиал или слот не найдены.
            ValueError: Дата в прошлом, слот отключён или не работает
                в этот день недели.

        """
        async with assignment_locks.hold(obj_in.branch_id, obj_in.date):
            branch, time_slot = await TablePoolService.get_branch_and_slot(
                session,
                obj_in.branch_id,
                obj_in.time_slot_id,
            )
            self._ensure_bookable(branch, time_slot, obj_in.date)
            assignment = None
            if obj_in.auto_assign_tables:
                result = await AssignmentService.find_available_tables(
                    session,
                    branch.id,
                    obj_in.date,
                    time_slot.id,
                    obj_in.people,
                    for_update=True,
                )
                assignment = result.data if result.success else None
            reservation = self.model(
                **obj_in.model_dump(exclude={'auto_assign_tables'}),
                status=ReservationStatus.PENDING,
                created_by=created_by,
            )
            if assignment is not None:
                reservation.table_links = [
                    ReservationTable(table_id=table_id)
                    for table_id in assignment.table_ids
                ]
                reservation.status = ReservationStatus.CONFIRMED
            session.add(reservation)
            await session.flush()
            if assignment is not None:
                await TableStatusService.sync_for_reservation(
                    session,
                    branch,
                    reservation.date,
                    assignment.table_ids,
                    reservation.status,
                )
            await session.commit()
        await session.refresh(reservation)
        logger.info(
            f'Бронирование {reservation.id} на {reservation.date} для '
            f'{reservation.people} гостей: статус {reservation.status.value}',
        )
        return reservation, assignment

    async def update_with_validation(
        self,
        session: AsyncSession,
        db_obj: Reservation,
        obj_in: ReservationUpdate,
    ) -> Reservation:
        """Обновляет бронирование.

        Смена даты, слота или числа гостей у активного бронирования со
        столами перепроверяет остаток мест на этих столах.
        """
        if db_obj.status in FINAL_STATUSES:
            raise ValueError('Нельзя изменять завершённое бронирование')
        update_data = obj_in.model_dump(exclude_unset=True)
        new_date = update_data.get('date', db_obj.date)
        new_slot_id = update_data.get('time_slot_id', db_obj.time_slot_id)
        new_people = update_data.get('people', db_obj.people)
        reschedule = (
            new_date != db_obj.date
            or new_slot_id != db_obj.time_slot_id
            or new_people != db_obj.people
        )
        if not reschedule:
            return await self.update_obj(db_obj, obj_in, session)

        old_date = db_obj.date
        async with assignment_locks.hold(db_obj.branch_id, new_date):
            branch, time_slot = await TablePoolService.get_branch_and_slot(
                session,
                db_obj.branch_id,
                new_slot_id,
            )
            self._ensure_bookable(branch, time_slot, new_date)
            table_ids = db_obj.table_ids
            if table_ids:
                await self._ensure_tables_fit(
                    session,
                    db_obj,
                    new_date,
                    time_slot.id,
                    new_people,
                    table_ids,
                )
            for field, value in update_data.items():
                setattr(db_obj, field, value)
            if table_ids and new_date != old_date:
                await TableStatusService.sync_for_reservation(
                    session,
                    branch,
                    old_date,
                    table_ids,
                    ReservationStatus.CANCELED,
                )
                await TableStatusService.sync_for_reservation(
                    session,
                    branch,
                    new_date,
                    table_ids,
                    db_obj.status,
                )
            session.add(db_obj)
            await session.commit()
        await session.refresh(db_obj)
        return db_obj

    async def assign_tables(
        self,
        session: AsyncSession,
        db_obj: Reservation,
        table_ids: list[UUID],
    ) -> Reservation:
        """Ручное назначение столов. Заменяет текущие столы.

        Raises:
            ValueError: Бронирование не активно или не привязано к слоту.
            CapacityError: Столы не вмещают гостей на это время.

        """
        if db_obj.status not in ACTIVE_RESERVATION_STATUSES:
            raise ValueError(
                'Столы можно назначить только ожидающему или '
                'подтверждённому бронированию',
            )
        if db_obj.time_slot_id is None:
            raise ValueError('У бронирования не указан временной слот')
        async with assignment_locks.hold(db_obj.branch_id, db_obj.date):
            branch = await session.get(Branch, db_obj.branch_id)
            await self._ensure_tables_fit(
                session,
                db_obj,
                db_obj.date,
                db_obj.time_slot_id,
                db_obj.people,
                table_ids,
            )
            released = [
                table_id
                for table_id in db_obj.table_ids
                if table_id not in table_ids
            ]
            await self._replace_tables(session, db_obj, table_ids)
            db_obj.status = ReservationStatus.CONFIRMED
            await TableStatusService.sync_for_reservation(
                session,
                branch,
                db_obj.date,
                released,
                ReservationStatus.CANCELED,
            )
            await TableStatusService.sync_for_reservation(
                session,
                branch,
                db_obj.date,
                table_ids,
                db_obj.status,
            )
            session.add(db_obj)
            await session.commit()
        await session.refresh(db_obj)
        logger.info(
            f'Бронированию {db_obj.id} вручную назначены столы {table_ids}',
        )
        return db_obj

    async def change_status(
        self,
        session: AsyncSession,
        db_obj: Reservation,
        status: ReservationStatus,
    ) -> Reservation:
        """Меняет статус бронирования и синхронизирует статус столов."""
        if db_obj.status == status:
            return db_obj
        if db_obj.status in FINAL_STATUSES:
            raise ValueError(
                'Нельзя изменить статус завершённого бронирования',
            )
        branch = await session.get(Branch, db_obj.branch_id)
        previous = db_obj.status
        db_obj.status = status
        await TableStatusService.sync_for_reservation(
            session,
            branch,
            db_obj.date,
            db_obj.table_ids,
            status,
        )
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        logger.info(
            f'Бронирование {db_obj.id}: статус {previous.value} → '
            f'{status.value}',
        )
        return db_obj

    async def cancel(
        self,
        session: AsyncSession,
        db_obj: Reservation,
    ) -> Reservation:
        """Отменяет бронирование, освобождая столы."""
        return await self.change_status(
            session,
            db_obj,
            ReservationStatus.CANCELED,
        )

    async def remove(
        self,
        session: AsyncSession,
        db_obj: Reservation,
    ) -> Reservation:
        """Удаляет бронирование вместе со связями со столами."""
        if db_obj.status in ACTIVE_RESERVATION_STATUSES:
            branch = await session.get(Branch, db_obj.branch_id)
            await TableStatusService.sync_for_reservation(
                session,
                branch,
                db_obj.date,
                db_obj.table_ids,
                ReservationStatus.CANCELED,
            )
        return await self.delete(db_obj, session)

    async def preview_assignment(
        self,
        session: AsyncSession,
        obj_in: AssignmentPreviewRequest,
    ) -> AssignmentResult:
        """Подбор столов без сохранения."""
        return await AssignmentService.find_available_tables(
            session,
            obj_in.branch_id,
            obj_in.date,
            obj_in.time_slot_id,
            obj_in.party_size,
        )

    def _ensure_bookable(
        self,
        branch: Branch,
        time_slot: TimeSlot,
        reservation_date: date,
    ) -> None:
        """Проверяет, что на слот можно бронировать в эту дату."""
        if not branch.is_active:
            raise ValueError('Филиал не принимает бронирования')
        if not time_slot.is_active:
            raise ValueError('Временной слот отключён')
        if reservation_date < branch_today(branch.timezone):
            raise ValueError('Нельзя бронировать на прошедшие даты')
        if not runs_on(time_slot.days_of_week, day_of_week(reservation_date)):
            raise ValueError('Временной слот не работает в этот день недели')

    async def _ensure_tables_fit(
        self,
        session: AsyncSession,
        reservation: Reservation,
        reservation_date: date,
        time_slot_id: UUID,
        people: int,
        table_ids: list[UUID],
    ) -> None:
        """Проверяет, что столы свободны и вмещают гостей.

        Места самого бронирования не учитываются. Стол, закреплённый за
        пересекающимся слотом, выбрать нельзя. Ручной статус стола не
        мешает, если стол уже назначен этому бронированию.
        """
        pools = await TablePoolService.resolve_pools(
            session,
            reservation.branch_id,
            reservation_date,
            time_slot_id,
            for_update=True,
        )
        exclusive, shared_pool = await AssignmentService.build_candidates(
            session,
            pools,
            reservation_date,
            exclude_reservation_id=reservation.id,
        )
        candidates = {item.id: item for item in shared_pool}
        candidates.update({item.id: item for item in exclusive})
        own_tables = set(reservation.table_ids)
        remaining = 0
        for table_id in table_ids:
            candidate = candidates.get(table_id)
            if candidate is None:
                raise ValueError(
                    'Стол неактивен, не относится к филиалу или '
                    'закреплён за другим слотом',
                )
            if not candidate.is_selectable and table_id not in own_tables:
                raise CapacityError(f'Стол №{candidate.number} занят')
            if candidate.remaining <= 0:
                raise CapacityError(f'Стол №{candidate.number} занят')
            remaining += candidate.remaining
        if remaining < people:
            raise CapacityError(
                f'Недостаточно мест: требуется {people}, '
                f'доступно {remaining}',
            )

    async def _replace_tables(
        self,
        session: AsyncSession,
        reservation: Reservation,
        table_ids: list[UUID],
    ) -> None:
        """Заменяет связи бронирования со столами."""
        reservation.table_links.clear()
        await session.flush()
        reservation.table_links.extend(
            ReservationTable(table_id=table_id) for table_id in table_ids
        )
        await session.flush()


reservation_repository = ReservationRepository()
