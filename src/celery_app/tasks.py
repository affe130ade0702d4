import asyncio

from fastapi_mail.errors import ConnectionErrors
from loguru import logger

from celery_app.main import celery_app
from restaurant_pos.core.notification import send_notification


@celery_app.task(
    name='send-notification',
    autoretry_for=(ConnectionErrors,),
    retry_backoff=True,
    max_retries=3,
)
def send_email_task(
    emails: list[str],
    text: str,
    subject: str,
    html: bool,
) -> int:
    """Таска на отправку уведомления о бронировании."""
    asyncio.run(
        send_notification(
            emails=emails,
            text=text,
            subject=subject,
            html=html,
        ),
    )
    logger.info(f'Уведомление "{subject}" отправлено: {len(emails)} адресов')
    return len(emails)
