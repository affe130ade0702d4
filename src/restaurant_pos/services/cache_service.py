import json
import time
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from restaurant_pos.core.config import settings
from restaurant_pos.core.constants import (
    MS_IN_SECOND,
    TIME_SLOTS_CACHE_KEY,
    TIME_SLOTS_CACHE_PATTERN,
)
from restaurant_pos.utils.enums import DayOfWeek


class CacheService:
    """Кеш расписания временных слотов в Redis.

    Кеш необязателен: без подключения к Redis чтение всегда даёт промах,
    а запись и очистка ничего не делают. Ошибки Redis журналируются и не
    прерывают запрос, расписание тогда читается из базы.
    """

    def __init__(self) -> None:
        """Сервис создаётся без подключения, см. connect()."""
        self.redis: Optional[Redis] = None
        self.ttl = settings.REDIS_CACHE_TTL

    async def connect(self) -> None:
        """Подключение к Redis при старте приложения."""
        try:
            self.redis = Redis.from_url(
                settings.redis_url,
                encoding='utf-8',
                decode_responses=True,
            )
            await self.redis.ping()
            logger.info('Успешное подключение к Redis')
        except (RedisError, OSError) as e:
            logger.error(f'Ошибка подключения к Redis: {e}')
            self.redis = None

    async def disconnect(self) -> None:
        """Закрытие подключения к Redis."""
        if self.redis:
            await self.redis.aclose()
            logger.info('Отключение от Redis')

    @staticmethod
    def schedule_key(branch_id: UUID, day: DayOfWeek) -> str:
        """Ключ расписания филиала на день недели."""
        return TIME_SLOTS_CACHE_KEY.format(branch_id=branch_id, day=day.value)

    async def get_schedule(
        self,
        branch_id: UUID,
        day: DayOfWeek,
    ) -> Optional[list[dict[str, Any]]]:
        """Расписание из кеша или None при промахе."""
        if not self.redis:
            return None
        key = self.schedule_key(branch_id, day)
        start = time.perf_counter()
        try:
            data = await self.redis.get(key)
        except RedisError as e:
            logger.error(f'Ошибка получения из кеша {key}: {e}')
            return None
        elapsed = (time.perf_counter() - start) * MS_IN_SECOND
        if not data:
            logger.debug(f'Кеш промах: {key} | время: {elapsed:.2f}мс')
            return None
        logger.debug(
            f'Кеш попадание: {key} | размер: {len(data)} байт | '
            f'время: {elapsed:.2f}мс',
        )
        return json.loads(data)

    async def set_schedule(
        self,
        branch_id: UUID,
        day: DayOfWeek,
        schedule: list[dict[str, Any]],
    ) -> bool:
        """Сохраняет расписание на REDIS_CACHE_TTL секунд."""
        if not self.redis:
            return False
        key = self.schedule_key(branch_id, day)
        try:
            await self.redis.setex(
                key,
                self.ttl,
                json.dumps(schedule, default=str),
            )
        except RedisError as e:
            logger.error(f'Ошибка сохранения в кеш {key}: {e}')
            return False
        logger.debug(f'Расписание сохранено в кеш: {key} | TTL: {self.ttl}')
        return True

    async def clear_time_slots_cache(self, branch_id: UUID) -> None:
        """Сбрасывает расписание филиала на все дни недели.

        Вызывается после любого изменения слотов или столов филиала.
        """
        if not self.redis:
            return
        pattern = TIME_SLOTS_CACHE_PATTERN.format(branch_id=branch_id)
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                await self.redis.delete(*keys)
        except RedisError as e:
            logger.error(f'Ошибка очистки кеша по шаблону {pattern}: {e}')
            return
        logger.info(f'Кеш расписания филиала {branch_id} очищен: {len(keys)}')


cache_service = CacheService()
