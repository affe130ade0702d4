from uuid import uuid4

import pytest
from loguru import logger

from restaurant_pos.schemas.user import UserCreate
from restaurant_pos.services.cache_service import CacheService
from restaurant_pos.utils.enums import DayOfWeek
from restaurant_pos.utils.logging_decorator import event_logger


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(messages.append, level='INFO', format='{message}')
    yield messages
    logger.remove(handler_id)


async def test_cache_without_redis_is_a_miss():
    cache = CacheService()
    branch_id = uuid4()

    assert await cache.get_schedule(branch_id, DayOfWeek.MONDAY) is None
    assert await cache.set_schedule(branch_id, DayOfWeek.MONDAY, []) is False
    await cache.clear_time_slots_cache(branch_id)


def test_schedule_key_is_per_branch_and_day():
    branch_id = uuid4()

    assert CacheService.schedule_key(branch_id, DayOfWeek.FRIDAY) == (
        f'time_slots:{branch_id}:friday'
    )


async def test_validation_error_names_the_field(
    client,
    branch,
    manager_headers,
):
    response = await client.post(
        f'/branches/{branch.id}/tables/',
        json={'number': 1, 'capacity': 0},
        headers=manager_headers,
    )

    assert response.status_code == 422
    body = response.json()
    assert body['code'] == 422
    assert body['detail'].startswith('capacity:')


async def test_missing_token_has_error_response_shape(client):
    response = await client.get('/branches/')

    assert response.status_code == 401
    assert response.json() == {'code': 401, 'detail': 'Не авторизован'}


async def test_event_logger_writes_ids_without_password(log_messages):
    user_id = uuid4()

    @event_logger('Создана', 'User')
    async def create(user_id, user_data):
        return None

    await create(
        user_id=user_id,
        user_data=UserCreate(
            username='hostess',
            phone='+79990001122',
            password='Strong_pass1',
            role=0,
        ),
    )

    message = log_messages[-1]
    assert 'Создана запись "User"' in message
    assert str(user_id) in message
    assert 'hostess' in message
    assert 'Strong_pass1' not in message


async def test_event_logger_reraises(log_messages):
    @event_logger('Удалена', 'Table')
    async def broken():
        raise ValueError('Стол занят')

    with pytest.raises(ValueError, match='Стол занят'):
        await broken()
    assert 'Ошибка при изменении записи "Table"' in log_messages[-1]
