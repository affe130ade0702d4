"""Календарные вычисления для временных слотов.

День недели вычисляется один раз из календарной даты бронирования и
дальше передаётся явно. «Сегодня» и «сейчас» всегда берутся в часовом
поясе филиала, а не сервера.
"""

from datetime import date, datetime, time
from typing import Iterable, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from restaurant_pos.utils.enums import DayOfWeek


class TimeWindow(Protocol):
    """Любой объект с началом и концом интервала времени суток."""

    start_time: time
    end_time: time


def day_of_week(value: date) -> DayOfWeek:
    """Возвращает день недели для даты бронирования."""
    return DayOfWeek.from_date(value)


def windows_overlap(first: TimeWindow, second: TimeWindow) -> bool:
    """Проверяет пересечение двух полуоткрытых интервалов [start, end).

    То же условие, что в SQL-выборках overlapping_slots_query и
    TablePoolService.exclusive_tables_of_overlapping_slots.
    """
    return (
        first.start_time < second.end_time
        and first.end_time > second.start_time
    )



def window_contains(window: TimeWindow, moment: time) -> bool:
    """Попадает ли момент в полуоткрытый интервал [start, end)."""
    return window.start_time <= moment < window.end_time

def runs_on(days_of_week: Iterable[str], day: DayOfWeek) -> bool:
    """Проверяет, работает ли слот в указанный день недели."""
    return day.value in {str(item).lower() for item in days_of_week}


def branch_zone(timezone_name: str) -> ZoneInfo:
    """Возвращает часовой пояс филиала."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(
            f'Неизвестный часовой пояс филиала: {timezone_name}',
        ) from e


def branch_now(timezone_name: str) -> datetime:
    """Текущее время в часовом поясе филиала."""
    return datetime.now(branch_zone(timezone_name))


def branch_today(timezone_name: str) -> date:
    """Текущая дата в часовом поясе филиала."""
    return branch_now(timezone_name).date()
