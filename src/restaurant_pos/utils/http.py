from typing import Any

from fastapi import HTTPException, status

from restaurant_pos.core.exceptions import CapacityError, NotFoundError


def build_error(detail: Any, code: int) -> dict[str, Any]:
    """Формирует унифицированный ответ об ошибке для API."""
    return {'code': code, 'detail': str(detail) if detail is not None else ''}


def http_error(error: ValueError) -> HTTPException:
    """HTTP-исключение для ошибки сервисного слоя.

    NotFoundError отдаётся как 404, CapacityError как 409, остальные
    ошибки валидации как 400.
    """
    if isinstance(error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, CapacityError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=status_code,
        detail=build_error(str(error), status_code),
    )


def internal_error(
    message: str = 'Внутренняя ошибка сервера',
) -> HTTPException:
    """HTTP-исключение 500 с сообщением без деталей."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=build_error(message, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )
