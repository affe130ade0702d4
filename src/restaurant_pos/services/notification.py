from celery_app.main import NOTIFICATIONS_QUEUE
from celery_app.tasks import send_email_task

DEFAULT_SUBJECT = 'Уведомление о бронировании'


def send_notification_task(
    emails: list[str],
    text: str,
    subject: str = DEFAULT_SUBJECT,
    html: bool = False,
) -> None:
    """Ставит письмо в очередь Celery.

    Args:
        emails (list[str]): адреса гостя и администратора зала.
        text (str): текст уведомления.
        subject (str, optional): тема письма.
        html (bool, optional): отправлять ли в HTML-формате.

    """
    if not emails:
        raise ValueError('Не указаны адреса для уведомления')
    send_email_task.apply_async(
        (emails, text, subject, html),
        queue=NOTIFICATIONS_QUEUE,
    )
