from fastapi import APIRouter, HTTPException, status
from loguru import logger

from restaurant_pos.core.auth import (
    create_access_token,
    get_token_expires,
    verify_password,
)
from restaurant_pos.core.db import DbSession
from restaurant_pos.repositories.user import user_repository
from restaurant_pos.schemas.auth import AuthData, AuthToken
from restaurant_pos.schemas.common import ErrorResponse
from restaurant_pos.utils.http import build_error

router = APIRouter(prefix='/auth', tags=['Аутентификация'])

INVALID_CREDENTIALS = 'Неверный логин или пароль'


@router.post(
    '/login',
    response_model=AuthToken,
    responses={status.HTTP_401_UNAUTHORIZED: {'model': ErrorResponse}},
)
async def login(
    session: DbSession,
    login_data: AuthData,
) -> AuthToken:
    """Вход сотрудника зала и выдача JWT токена.

    Неактивный сотрудник и неверный пароль дают одинаковый ответ 401.
    """
    user = await user_repository.get_by_login(session, login_data.login)
    if (
        user is None
        or not user.is_active
        or not verify_password(login_data.password, user.hashed_password)
    ):
        logger.warning(f'Неудачная попытка входа: {login_data.login}')
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=build_error(
                INVALID_CREDENTIALS,
                status.HTTP_401_UNAUTHORIZED,
            ),
        )
    logger.info(f'Вход сотрудника {user.username} ({user.role.value})')
    return AuthToken(
        access_token=create_access_token(
            user_id=user.id,
            username=user.username,
        ),
        expires_in=int(get_token_expires().total_seconds()),
    )
