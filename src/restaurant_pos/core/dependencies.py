from typing import Annotated

from fastapi import Depends

from restaurant_pos.services.cache_service import CacheService, cache_service


async def get_cache_service() -> CacheService:
    """Зависимость для получения сервиса кеширования."""
    return cache_service


CacheDep = Annotated[CacheService, Depends(get_cache_service)]
