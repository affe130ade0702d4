from datetime import datetime

# Настройки требований к паролям сотрудников
PASSWORD_MIN_LENGTH = 8
PASSWORD_REQUIRES_UPPER_LETTERS = True
PASSWORD_REQUIRES_LOWER_LETTERS = True
PASSWORD_REQUIRES_DIGITS = True
PASSWORD_REQUIRES_SPECIAL_CHARS = True
PASSWORD_FORBIDS_OTHER_SYMBOLS = True
ALLOWED_SPECIAL_CHARS = '!№;%:?*()_+-=:;<>,.~`'

# Настройки логгера
MS_IN_SECOND = 1000
LOG_DEPTH = 7
LOG_ENCODING = 'utf-8'
LOG_COMPRESSION = 'zip'
LOG_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | '
    '<level>{level: <8}</level> | '
    '{extra[username]}({extra[user_id]}) | '
    '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
    '<level>{message}</level>'
)
FILE_LOG_FORMAT = (
    '{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | '
    '{extra[username]}({extra[user_id]}) | '
    '{name}:{function}:{line} | {message}'
)
ASSIGNMENT_LOG_FORMAT = (
    '{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | '
    'branch={extra[branch_id]} | {message}'
)
ASSIGNMENT_LOG_CHANNEL = 'assignment'
INTERCEPTED_LOGGERS = (
    'uvicorn',
    'uvicorn.error',
    'sqlalchemy',
    'celery',
)
NOISE_PATHS = {'/docs', '/openapi.json', '/health', '/livez', '/readyz'}
HTTP_LOG_TEMPLATE = (
    '{method} {path} -> {status} ({ms:.1f} ms)\n    ip={ip}\n    ua={ua}\n'
)

# Подбор столов
MIN_COMBINED_TABLES = 2
MAX_PARTY_SIZE = 100

# Ключи кеша временных слотов
TIME_SLOTS_CACHE_KEY = 'time_slots:{branch_id}:{day}'
TIME_SLOTS_CACHE_PATTERN = 'time_slots:{branch_id}:*'

# Разрешённый формат телефонного номера
PHONE_PATTERN = r'^\+[1-9][0-9]{7,14}$'

# Длина публичного кода заказа
ORDER_PUBLIC_CODE_LENGTH = 6


def get_logger_header() -> str:
    """Формирует заголовок для нового лог-файла."""
    return (
        '\n'
        '================== LOGGER - RESTAURANT_POS ==================\n'
        f'Date: {datetime.now():%Y-%m-%d %H:%M:%S}\n'
        '=============================================================\n\n'
    )
