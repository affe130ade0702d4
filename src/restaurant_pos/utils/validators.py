import re
from typing import Callable, Optional

from email_validator import EmailNotValidError
from email_validator import validate_email as ev_validate

from restaurant_pos.core.constants import (
    ALLOWED_SPECIAL_CHARS,
    PASSWORD_FORBIDS_OTHER_SYMBOLS,
    PASSWORD_MIN_LENGTH,
    PASSWORD_REQUIRES_DIGITS,
    PASSWORD_REQUIRES_LOWER_LETTERS,
    PASSWORD_REQUIRES_SPECIAL_CHARS,
    PASSWORD_REQUIRES_UPPER_LETTERS,
    PHONE_PATTERN,
)

# Разделители, которые администратор вводит по телефону гостя
PHONE_SEPARATORS = re.compile(r'[\s()\-]')

_SPECIAL = re.escape(ALLOWED_SPECIAL_CHARS)

PasswordRule = tuple[bool, Callable[[str], bool], str]

PASSWORD_RULES: tuple[PasswordRule, ...] = (
    (
        True,
        lambda value: len(value) >= PASSWORD_MIN_LENGTH,
        f'длина не менее {PASSWORD_MIN_LENGTH} символов',
    ),
    (
        PASSWORD_REQUIRES_UPPER_LETTERS,
        lambda value: re.search(r'[A-Z]', value) is not None,
        'хотя бы одна заглавная буква',
    ),
    (
        PASSWORD_REQUIRES_LOWER_LETTERS,
        lambda value: re.search(r'[a-z]', value) is not None,
        'хотя бы одна строчная буква',
    ),
    (
        PASSWORD_REQUIRES_DIGITS,
        lambda value: re.search(r'\d', value) is not None,
        'хотя бы одна цифра',
    ),
    (
        PASSWORD_REQUIRES_SPECIAL_CHARS,
        lambda value: re.search(f'[{_SPECIAL}]', value) is not None,
        f'хотя бы один спецсимвол из: {ALLOWED_SPECIAL_CHARS}',
    ),
    (
        PASSWORD_FORBIDS_OTHER_SYMBOLS,
        lambda value: re.fullmatch(f'[A-Za-z0-9{_SPECIAL}]+', value)
        is not None,
        'запрещены иные символы кроме латиницы, цифр и символов: '
        f'{ALLOWED_SPECIAL_CHARS}',
    ),
)


def validate_email(value: Optional[str]) -> Optional[str]:
    """Пустой email допустим, иначе адрес должен быть корректным."""
    if not (value and value.strip()):
        return None
    try:
        ev_validate(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError(
            'Укажите адрес электронной почты, например: user@example.com',
        )
    return value


def validate_phone(value: Optional[str]) -> Optional[str]:
    """Приводит номер к виду +XXXXXXXXX без пробелов, скобок и дефисов."""
    if not (value and value.strip()):
        return None
    phone = PHONE_SEPARATORS.sub('', value)
    if not re.fullmatch(PHONE_PATTERN, phone):
        raise ValueError('Введите номер телефона в формате +XXXXXXXXX')
    return phone


def password_violations(value: str) -> list[str]:
    """Список нарушенных требований к паролю сотрудника."""
    return [
        message
        for enabled, check, message in PASSWORD_RULES
        if enabled and not check(value)
    ]


def validate_password_strength(value: Optional[str]) -> Optional[str]:
    """Пароль сотрудника должен выполнять все включённые требования."""
    if value is None:
        return None
    errors = password_violations(value)
    if errors:
        raise ValueError('Пароль нарушает требования: ' + '; '.join(errors))
    return value
