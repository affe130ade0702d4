import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator
from uuid import UUID
from weakref import WeakValueDictionary

from loguru import logger


class AssignmentLocks:
    """Блокировки подбора столов по паре (филиал, дата).

    Внутри процесса два подбора на одну дату филиала не выполняются
    одновременно: остаток мест считается и фиксируется под блокировкой.
    Между процессами порядок обеспечивает SELECT ... FOR UPDATE по
    столам филиала.
    """

    def __init__(self) -> None:
        """Инициализация пустого реестра блокировок."""
        self._locks: WeakValueDictionary[tuple[UUID, date], asyncio.Lock] = (
            WeakValueDictionary()
        )

    def get(self, branch_id: UUID, reservation_date: date) -> asyncio.Lock:
        """Возвращает блокировку для филиала и даты."""
        key = (branch_id, reservation_date)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(
        self,
        branch_id: UUID,
        reservation_date: date,
    ) -> AsyncIterator[None]:
        """Удерживает блокировку на время подбора и фиксации столов."""
        lock = self.get(branch_id, reservation_date)
        if lock.locked():
            logger.debug(
                f'Ожидание блокировки подбора: филиал {branch_id}, '
                f'дата {reservation_date}',
            )
        async with lock:
            yield


assignment_locks = AssignmentLocks()
