from typing import Optional

from loguru import logger

from restaurant_pos.core.config import email_settings
from restaurant_pos.models import Branch, Reservation
from restaurant_pos.services.notification import send_notification_task
from restaurant_pos.utils.enums import ReservationStatus

STATUS_TITLES = {
    ReservationStatus.PENDING: 'ожидает назначения столов',
    ReservationStatus.CONFIRMED: 'подтверждено',
    ReservationStatus.SEATED: 'гости за столом',
    ReservationStatus.COMPLETED: 'завершено',
    ReservationStatus.CANCELED: 'отменено',
    ReservationStatus.NO_SHOW: 'гости не пришли',
}


def _recipients(reservation: Reservation) -> list[str]:
    emails = [reservation.customer_email, email_settings.RESERVATIONS_TO]
    return [str(email) for email in emails if email]


def _time_info(reservation: Reservation) -> str:
    if reservation.exact_time is not None:
        return reservation.exact_time.strftime('%H:%M')
    if reservation.time_slot is None:
        return 'Не указано'
    return (
        f'{reservation.time_slot.start_time.strftime("%H:%M")}-'
        f'{reservation.time_slot.end_time.strftime("%H:%M")}'
    )


def render_reservation_text(
    reservation: Reservation,
    branch: Branch,
    title: str,
) -> str:
    """Текст письма о бронировании."""
    tables_info = ', '.join(
        f'№{table.number} ({table.capacity} мест)'
        for table in sorted(reservation.tables, key=lambda item: item.number)
    )
    return f"""
{title}

Филиал: {branch.name}
Адрес: {branch.address}
Дата: {reservation.date}
Время: {_time_info(reservation)}
Столы: {tables_info or 'Будут назначены администратором'}
Количество гостей: {reservation.people}
Статус: {STATUS_TITLES[reservation.status]}
Гость: {reservation.customer_name}, {reservation.customer_phone}
Комментарий: {reservation.notes or 'Не указан'}
"""


class NotificationService:
    """Сервис уведомлений о бронированиях.

    Письма уходят в очередь Celery. Ошибка постановки в очередь не
    отменяет уже сохранённое бронирование: она логируется, а вызывающий
    код решает, что с ней делать.
    """

    @staticmethod
    def _send(
        reservation: Reservation,
        subject: str,
        text: str,
    ) -> bool:
        emails = _recipients(reservation)
        if not emails:
            logger.warning(
                f'Нет email для уведомления по бронированию {reservation.id}',
            )
            return False
        try:
            send_notification_task(emails=emails, text=text, subject=subject)
        except Exception as e:
            logger.error(
                f'Ошибка постановки уведомления по бронированию '
                f'{reservation.id} в очередь: {str(e)}',
            )
            return False
        logger.info(
            f'Уведомление "{subject}" по бронированию {reservation.id} '
            'поставлено в очередь',
        )
        return True

    @staticmethod
    def reservation_created(
        reservation: Reservation,
        branch: Branch,
    ) -> bool:
        """Уведомление о новом бронировании."""
        if reservation.status == ReservationStatus.CONFIRMED:
            title = 'Бронирование подтверждено, столы назначены.'
        else:
            title = 'Бронирование принято и ожидает назначения столов.'
        return NotificationService._send(
            reservation,
            'Новое бронирование',
            render_reservation_text(reservation, branch, title),
        )

    @staticmethod
    def reservation_updated(
        reservation: Reservation,
        branch: Branch,
        previous_status: Optional[ReservationStatus] = None,
    ) -> bool:
        """Уведомление об изменении бронирования или его статуса."""
        if previous_status is not None and previous_status != (
            reservation.status
        ):
            title = (
                f'Статус бронирования изменён: '
                f'{STATUS_TITLES[previous_status]} → '
                f'{STATUS_TITLES[reservation.status]}.'
            )
        else:
            title = 'Бронирование изменено.'
        return NotificationService._send(
            reservation,
            'Изменение бронирования',
            render_reservation_text(reservation, branch, title),
        )
