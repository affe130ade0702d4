from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from restaurant_pos.utils.http import build_error, http_error


def _detail_of(detail: Any) -> tuple[Any, Any]:
    """Достаёт код и текст из detail, собранного build_error или FastAPI."""
    if isinstance(detail, dict):
        message = detail.get('detail', detail.get('message', ''))
        return detail.get('code'), message
    if isinstance(detail, list):
        return None, '; '.join(str(item) for item in detail)
    return None, detail


def _field_message(error: dict[str, Any]) -> str:
    """Сообщение pydantic с именем поля, к которому оно относится."""
    message = error['msg'].replace('Value error, ', '')
    location = [
        str(part)
        for part in error.get('loc', ())
        if part not in ('body', 'query', 'path')
    ]
    if not location:
        return message
    return f'{".".join(location)}: {message}'


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Ошибки валидации запроса одной строкой с указанием полей."""
    messages = [_field_message(error) for error in exc.errors()]
    message = '; '.join(messages) or 'Ошибка валидации данных'
    code = status.HTTP_422_UNPROCESSABLE_CONTENT
    return JSONResponse(status_code=code, content=build_error(message, code))


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Приводит HTTP-исключения к формату ErrorResponse."""
    code, message = _detail_of(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error(message, code or exc.status_code),
    )


async def service_exception_handler(
    request: Request,
    exc: ValueError,
) -> JSONResponse:
    """Ошибки сервисного слоя, не перехваченные эндпоинтом.

    Код ответа выбирается так же, как в эндпоинтах: 404 для
    NotFoundError, 409 для CapacityError.
    """
    error = http_error(exc)
    return JSONResponse(status_code=error.status_code, content=error.detail)
