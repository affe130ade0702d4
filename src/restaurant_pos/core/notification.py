from functools import lru_cache

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from restaurant_pos.core.config import email_settings

# Поля EmailSettings, которые не относятся к SMTP-подключению
RECIPIENT_FIELDS = {'RESERVATIONS_TO'}


@lru_cache
def fastmail() -> FastMail:
    """Клиент SMTP, общий для всех задач воркера."""
    return FastMail(
        ConnectionConfig(
            **email_settings.model_dump(exclude=RECIPIENT_FIELDS),
        ),
    )


async def send_notification(
    emails: list[str],
    text: str,
    subject: str,
    html: bool,
) -> None:
    """Отправляет письмо о бронировании по SMTP."""
    await fastmail().send_message(
        MessageSchema(
            subject=subject,
            recipients=emails,
            body=text,
            subtype=MessageType.html if html else MessageType.plain,
        ),
    )
