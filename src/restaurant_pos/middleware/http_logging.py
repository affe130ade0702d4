import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from jose import JWTError, jwt
from loguru import logger

from restaurant_pos.core.constants import (
    HTTP_LOG_TEMPLATE,
    MS_IN_SECOND,
    NOISE_PATHS,
)

BRANCH_IN_PATH = re.compile(r'/branches/(?P<branch_id>[0-9a-fA-F-]{36})')


def _request_id(request: Request) -> str:
    return request.headers.get('X-Request-ID') or str(uuid.uuid4())


def _staff_from_token(request: Request) -> tuple[str, str]:
    """Сотрудник из JWT без проверки подписи, только для журнала.

    Гостевые запросы (бронирование с сайта) идут без токена и
    журналируются как WEB.
    """
    auth = request.headers.get('Authorization', '')
    scheme, _, token = auth.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return '-', 'WEB'
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        logger.debug('Не удалось разобрать токен для журнала запросов')
        return '-', 'WEB'
    return str(claims.get('sub', '-')), str(claims.get('username', 'WEB'))


def _branch_id(request: Request) -> str:
    match = BRANCH_IN_PATH.search(request.url.path)
    return match.group('branch_id') if match else '-'


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.client.host if request.client else '-'


def _level_for(status: int) -> str:
    if status >= 500:
        return 'ERROR'
    if status >= 400:
        return 'WARNING'
    return 'INFO'


async def logging_middleware(
    request: Request,
    call_next: Callable,
) -> Response:
    """Журнал HTTP-запросов к POS.

    Каждая запись получает request_id, сотрудника из токена и филиал из
    пути запроса. Уровень зависит от кода ответа: 4xx пишутся как
    WARNING, 5xx как ERROR. Служебные пути из NOISE_PATHS журналируются
    только при ошибке сервера.
    """
    start = time.perf_counter()
    request_id = _request_id(request)
    path = request.url.path
    status = 500
    response = None
    try:
        response = await call_next(request)
        status = response.status_code
    except Exception:
        logger.opt(exception=True).error(
            f'Необработанное исключение: {request.method} {path}',
        )
        raise
    finally:
        level = _level_for(status)
        if level == 'ERROR' or path not in NOISE_PATHS:
            user_id, username = _staff_from_token(request)
            with logger.contextualize(
                request_id=request_id,
                user_id=user_id,
                username=username,
                branch_id=_branch_id(request),
            ):
                logger.log(
                    level,
                    HTTP_LOG_TEMPLATE,
                    method=request.method,
                    path=path,
                    status=status,
                    ms=(time.perf_counter() - start) * MS_IN_SECOND,
                    ip=_client_ip(request),
                    ua=request.headers.get('user-agent', '-'),
                )
        if response is not None:
            response.headers.setdefault('X-Request-ID', request_id)
    return response
