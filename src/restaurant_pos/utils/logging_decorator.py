import json
from functools import wraps
from typing import Any, Callable, Optional
from uuid import UUID

from loguru import logger
from pydantic import BaseModel


def _payload(kwargs: dict[str, Any], only_set: bool) -> Optional[dict]:
    """Тело запроса эндпоинта: первая pydantic-схема среди аргументов."""
    for value in kwargs.values():
        if isinstance(value, BaseModel):
            return value.model_dump(
                mode='json',
                exclude={'password'},
                exclude_none=True,
                exclude_unset=only_set,
            )
    return None


def _identifiers(kwargs: dict[str, Any], result: Any) -> dict[str, str]:
    """UUID из параметров пути и идентификатор результата."""
    identifiers = {
        name: str(value)
        for name, value in kwargs.items()
        if isinstance(value, UUID)
    }
    result_id = getattr(result, 'id', None)
    if result_id is not None:
        identifiers.setdefault('id', str(result_id))
    return identifiers


def event_logger(
    event_type: str,
    entity: str,
    only_set: bool = True,
) -> Callable:
    """Декоратор для журналирования изменяющих эндпоинтов.

    После успешного выполнения пишет событие с идентификаторами
    затронутых записей и телом запроса. При ошибке пишет, над какой
    сущностью она произошла, и пробрасывает исключение дальше.

    Args:
        event_type: Событие ('Создана', 'Обновлена', 'Удалена').
        entity: Имя сущности, например 'Reservation'.
        only_set: Логировать только явно переданные поля тела.

    Returns:
        Callable: Декоратор для асинхронного эндпоинта.

    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                result = await func(*args, **kwargs)
            except Exception:
                logger.error(
                    f'Ошибка при изменении записи "{entity}" '
                    f'в {func.__name__}',
                )
                raise
            message = (
                f'{event_type} запись "{entity}" '
                f'{_identifiers(kwargs, result)}'
            )
            payload = _payload(kwargs, only_set)
            if payload:
                message += '\n' + json.dumps(
                    payload,
                    ensure_ascii=False,
                    indent=4,
                )
            logger.info(message)
            return result

        return wrapper

    return decorator
