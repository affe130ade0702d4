from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import EmailStr, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from restaurant_pos.core.constants import MIN_COMBINED_TABLES

BASE_DIR = Path(__file__).resolve().parents[3]
ENV_FILE = BASE_DIR / 'infra' / '.env'


class EmailSettings(BaseSettings):
    """SMTP и адресаты уведомлений о бронированиях (префикс NOTIFY_)."""

    MAIL_FROM: EmailStr
    MAIL_USERNAME: str
    MAIL_PASSWORD: str
    MAIL_PORT: int
    MAIL_SERVER: str
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False
    USE_CREDENTIALS: bool = True
    VALIDATE_CERTS: bool = True

    # Копия каждого уведомления для администратора зала
    RESERVATIONS_TO: Optional[EmailStr] = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix='NOTIFY_',
        extra='ignore',
    )


class Settings(BaseSettings):
    """Настройки POS: хранилища, брокер, журналирование и подбор столов."""

    POSTGRES_DB: str
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_PORT: int
    POSTGRES_HOST: str

    REDIS_HOST: str
    REDIS_PORT: int
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_CACHE_TTL: int = Field(300, gt=0)

    LOG_LEVEL: str = 'INFO'
    LOG_ROTATION: str = '10 MB'
    LOG_RETENTION: str = '14 days'
    LOG_DIR: Path = BASE_DIR / 'logs'

    SECRET_KEY: str
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 12 * 60

    RABBITMQ_DEFAULT_USER: str
    RABBITMQ_DEFAULT_PASS: str
    RABBITMQ_DEFAULT_VHOST: str
    RABBITMQ_DEFAULT_HOST: str
    RABBITMQ_DEFAULT_PORT: int

    ADMIN_USERNAME: str
    ADMIN_EMAIL: str
    ADMIN_PHONE: str
    ADMIN_PASSWORD: str

    MAX_COMBINED_TABLES: int = Field(3, ge=MIN_COMBINED_TABLES)
    DEFAULT_BRANCH_TIMEZONE: str = 'UTC'

    @field_validator('DEFAULT_BRANCH_TIMEZONE')
    @classmethod
    def check_timezone(cls, value: str) -> str:
        """Часовой пояс должен быть известен базе IANA."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'Неизвестный часовой пояс: {value}')
        return value

    @property
    def db_url(self) -> URL:
        """Подключение к Postgres через asyncpg."""
        return URL.create(
            drivername='postgresql+asyncpg',
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        )

    @property
    def rabbit_url(self) -> str:
        """Брокер Celery для очереди уведомлений."""
        return (
            f'amqp://{self.RABBITMQ_DEFAULT_USER}:'
            f'{self.RABBITMQ_DEFAULT_PASS}@{self.RABBITMQ_DEFAULT_HOST}:'
            f'{self.RABBITMQ_DEFAULT_PORT}/{self.RABBITMQ_DEFAULT_VHOST}'
        )

    @property
    def redis_url(self) -> str:
        """Redis для кеша расписания слотов."""
        auth = f':{self.REDIS_PASSWORD}@' if self.REDIS_PASSWORD else ''
        return (
            f'redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}'
            f'/{self.REDIS_DB}'
        )

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        extra='ignore',
    )


settings = Settings()
email_settings = EmailSettings()
