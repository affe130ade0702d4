from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.config import settings
from restaurant_pos.core.constants import ASSIGNMENT_LOG_CHANNEL
from restaurant_pos.core.exceptions import NotFoundError
from restaurant_pos.models import Table
from restaurant_pos.schemas.assignment import AssignmentResult, TableAssignment
from restaurant_pos.services.capacity import CapacityService
from restaurant_pos.services.combination import (
    TableSeats,
    find_table_combination,
)
from restaurant_pos.services.table_pools import TablePools, TablePoolService
from restaurant_pos.utils.enums import (
    AssignmentType,
    FailureReason,
    TableStatus,
)


@dataclass(frozen=True)
class TableCandidate:
    """Стол с вычисленным остатком мест."""

    id: UUID
    number: int
    capacity: int
    is_shared: bool
    remaining: int
    status: Optional[TableStatus] = None

    @property
    def is_selectable(self) -> bool:
        """Есть свободные места и стол не занят ручным статусом."""
        return self.remaining > 0 and self.status in (None, TableStatus.EMPTY)

    @classmethod
    def from_table(cls, table: Table, remaining: int) -> 'TableCandidate':
        """Создаёт кандидата из ORM-модели стола."""
        return cls(
            id=table.id,
            number=table.number,
            capacity=table.capacity,
            is_shared=table.is_shared,
            remaining=remaining,
            status=table.status,
        )


def _smallest_first(
    candidates: Iterable[TableCandidate],
) -> list[TableCandidate]:
    return sorted(candidates, key=lambda item: (item.capacity, item.number))


def _single(
    candidate: TableCandidate,
    assignment_type: AssignmentType,
) -> TableAssignment:
    return TableAssignment(
        table_ids=[candidate.id],
        total_capacity=candidate.capacity,
        assignment_type=assignment_type,
        is_shared_table_only=candidate.is_shared,
    )


def _combine(
    candidates: Sequence[TableCandidate],
    party_size: int,
    max_tables: int,
) -> Optional[TableAssignment]:
    """Комбинация обычных столов по остатку мест.

    Кандидаты упорядочиваются по возрастанию остатка, затем по номеру
    стола: от этого порядка зависит, какая комбинация будет найдена.
    """
    regular = sorted(
        (item for item in candidates if not item.is_shared),
        key=lambda item: (item.remaining, item.number),
    )
    by_id = {item.id: item for item in regular}
    combination = find_table_combination(
        [TableSeats(item.id, item.remaining) for item in regular],
        party_size,
        max_tables,
    )
    if combination is None:
        return None
    return TableAssignment(
        table_ids=[seats.id for seats in combination],
        total_capacity=sum(by_id[seats.id].capacity for seats in combination),
        assignment_type=AssignmentType.COMBINED,
        is_shared_table_only=False,
    )


def select_assignment(
    exclusive: Sequence[TableCandidate],
    shared_pool: Sequence[TableCandidate],
    party_size: int,
    max_tables: int = 3,
) -> Optional[TableAssignment]:
    """Последовательно применяет стратегии подбора столов.

    Порядок стратегий фиксирован, срабатывает первая успешная:

    1. Точное совпадение остатка мест с числом гостей среди всех
       доступных столов (сначала эксклюзивные).
    2. Один обычный эксклюзивный стол, вмещающий гостей.
    3. Комбинация обычных эксклюзивных столов.
    4. Один общий стол из общего пула (is_shared_table_only=True).
    5. Один обычный стол из общего пула.
    6. Комбинация обычных столов общего пула.

    Args:
        exclusive: Кандидаты эксклюзивного пула слота
        shared_pool: Кандидаты общего пула
        party_size: Количество гостей
        max_tables: Максимальное число столов в комбинации

    Returns:
        TableAssignment или None, если разместить гостей нельзя.

    """
    exclusive = [item for item in exclusive if item.is_selectable]
    shared_pool = [item for item in shared_pool if item.is_selectable]
    exclusive_ids = {item.id for item in exclusive}

    seen = set()
    for candidate in _smallest_first(exclusive) + _smallest_first(shared_pool):
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        if candidate.remaining == party_size:
            return _single(
                candidate,
                AssignmentType.EXCLUSIVE
                if candidate.id in exclusive_ids
                else AssignmentType.SIZE_MATCH,
            )

    for candidate in _smallest_first(exclusive):
        if not candidate.is_shared and candidate.remaining >= party_size:
            return _single(candidate, AssignmentType.EXCLUSIVE)

    combined = _combine(exclusive, party_size, max_tables)
    if combined is not None:
        return combined

    for candidate in _smallest_first(shared_pool):
        if candidate.is_shared and candidate.remaining >= party_size:
            return _single(candidate, AssignmentType.SHARED_TABLE)

    for candidate in _smallest_first(shared_pool):
        if not candidate.is_shared and candidate.remaining >= party_size:
            return _single(candidate, AssignmentType.SHARED_POOL)

    return _combine(shared_pool, party_size, max_tables)


class AssignmentService:
    """Сервис автоматического подбора столов."""

    @staticmethod
    async def build_candidates(
        session: AsyncSession,
        pools: TablePools,
        reservation_date: date,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> tuple[list[TableCandidate], list[TableCandidate]]:
        """Считает остаток мест для обоих пулов.

        Эксклюзивные столы считаются только по своему слоту, столы общего
        пула по всем пересекающимся слотам.
        """
        exclusive_capacity = await CapacityService.remaining_capacity_batch(
            session,
            pools.exclusive,
            reservation_date,
            pools.time_slot.id,
            exclude_reservation_id,
        )
        pool_capacity = await CapacityService.remaining_capacity_fcfs_batch(
            session,
            pools.shared_pool,
            reservation_date,
            pools.time_slot,
            exclude_reservation_id,
        )
        exclusive = [
            TableCandidate.from_table(table, exclusive_capacity[table.id])
            for table in pools.exclusive
        ]
        shared_pool = [
            TableCandidate.from_table(table, pool_capacity[table.id])
            for table in pools.shared_pool
        ]
        return exclusive, shared_pool

    @staticmethod
    async def find_available_tables(
        session: AsyncSession,
        branch_id: UUID,
        reservation_date: date,
        time_slot_id: UUID,
        party_size: int,
        *,
        exclude_reservation_id: Optional[UUID] = None,
        for_update: bool = False,
        max_tables: Optional[int] = None,
    ) -> AssignmentResult:
        """Подбирает столы для компании на дату и временной слот.

        Отсутствие мест не считается ошибкой: возвращается success=False
        с reason=no_capacity и без текста ошибки. Ошибки базы данных
        пробрасываются вызывающему коду.

        Args:
            session: Асинхронная сессия базы данных
            branch_id: UUID филиала
            reservation_date: Дата бронирования
            time_slot_id: UUID временного слота
            party_size: Количество гостей
            exclude_reservation_id: Бронирование, чьи места не учитываются
            for_update: Заблокировать строки столов до конца транзакции
            max_tables: Максимальное число столов в комбинации

        Returns:
            AssignmentResult: Подобранные столы или причина отказа.

        """
        if party_size < 1:
            raise ValueError('Количество гостей должно быть больше нуля')
        log = logger.bind(
            channel=ASSIGNMENT_LOG_CHANNEL,
            branch_id=str(branch_id),
        )
        try:
            pools = await TablePoolService.resolve_pools(
                session,
                branch_id,
                reservation_date,
                time_slot_id,
                for_update=for_update,
            )
        except NotFoundError as e:
            log.warning(
                f'Подбор столов невозможен: {e} '
                f'(слот {time_slot_id}, дата {reservation_date})',
            )
            return AssignmentResult(
                success=False,
                error=str(e),
                reason=FailureReason.NOT_FOUND,
            )

        exclusive, shared_pool = await AssignmentService.build_candidates(
            session,
            pools,
            reservation_date,
            exclude_reservation_id,
        )
        assignment = select_assignment(
            exclusive,
            shared_pool,
            party_size,
            max_tables or settings.MAX_COMBINED_TABLES,
        )
        if assignment is None:
            log.info(
                f'Нет мест для {party_size} гостей: слот '
                f'{pools.time_slot.name}, дата {reservation_date}, '
                f'эксклюзивных столов {len(exclusive)}, '
                f'в общем пуле {len(shared_pool)}',
            )
            return AssignmentResult(
                success=False,
                reason=FailureReason.NO_CAPACITY,
            )
        log.info(
            f'Столы {assignment.table_ids} для {party_size} гостей: '
            f'стратегия {assignment.assignment_type.value}, слот '
            f'{pools.time_slot.name}, дата {reservation_date}',
        )
        return AssignmentResult(success=True, data=assignment)
