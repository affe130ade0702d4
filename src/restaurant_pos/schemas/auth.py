from pydantic import BaseModel, Field


class AuthToken(BaseModel):
    """JWT сотрудника и срок его действия в секундах."""

    access_token: str
    token_type: str = 'bearer'
    expires_in: int


class AuthData(BaseModel):
    """Вход сотрудника по имени, email или телефону."""

    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
