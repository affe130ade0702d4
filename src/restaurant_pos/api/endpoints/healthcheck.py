from typing import Dict

from fastapi import APIRouter
from loguru import logger
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from restaurant_pos.core.db import DbSession
from restaurant_pos.core.dependencies import CacheDep

router = APIRouter(prefix='/healthcheck', tags=['Healthcheck'])


@router.get('/db')
async def db_health(session: DbSession) -> Dict[str, str]:
    """Проверка состояния БД."""
    try:
        await session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        logger.error(f'Ошибка проверки БД: {str(e)}')
        return {'status': 'error', 'details': str(e)}
    logger.debug('Проверка БД: успешно')
    return {'status': 'ok'}


@router.get('/redis')
async def redis_health(cache: CacheDep) -> Dict[str, str]:
    """Проверка состояния Redis, через который кешируются слоты."""
    if not cache.redis:
        logger.error('Redis не подключен')
        return {'status': 'error', 'details': 'Redis не подключен'}
    try:
        await cache.redis.ping()
    except RedisError as e:
        logger.error(f'Ошибка проверки Redis: {str(e)}')
        return {'status': 'error', 'details': str(e)}
    logger.debug('Проверка Redis: успешно')
    return {'status': 'ok'}
