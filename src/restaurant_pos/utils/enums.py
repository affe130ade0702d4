from datetime import date
from enum import Enum


class UserRole(str, Enum):
    """Enum класс для ролей сотрудников."""

    EMPLOYEE = 'EMPLOYEE'
    MANAGER = 'MANAGER'
    ADMIN = 'ADMIN'


class ReservationStatus(str, Enum):
    """Enum класс для статусов бронирований."""

    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    SEATED = 'SEATED'
    COMPLETED = 'COMPLETED'
    CANCELED = 'CANCELED'
    NO_SHOW = 'NO_SHOW'


# Только эти статусы занимают места за столом.
ACTIVE_RESERVATION_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
)


class TableStatus(str, Enum):
    """Enum класс для ручного статуса стола."""

    EMPTY = 'EMPTY'
    OCCUPIED = 'OCCUPIED'
    RESERVED = 'RESERVED'
    CLEANING = 'CLEANING'


class OrderType(str, Enum):
    """Enum класс для типов заказов."""

    DINE_IN = 'DINE_IN'
    TAKE_AWAY = 'TAKE_AWAY'
    DELIVERY = 'DELIVERY'


class OrderStatus(str, Enum):
    """Enum класс для статусов заказов."""

    PENDING = 'PENDING'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    CANCELED = 'CANCELED'


ACTIVE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.IN_PROGRESS)


class AssignmentType(str, Enum):
    """Стратегия, которая подобрала столы."""

    SIZE_MATCH = 'size_match'
    EXCLUSIVE = 'exclusive'
    SHARED_TABLE = 'shared_table'
    SHARED_POOL = 'shared_pool'
    COMBINED = 'combined'


class FailureReason(str, Enum):
    """Причина неуспешного подбора столов."""

    NOT_FOUND = 'not_found'
    NO_CAPACITY = 'no_capacity'


class DayOfWeek(str, Enum):
    """Дни недели в том виде, в каком они хранятся у временных слотов."""

    MONDAY = 'monday'
    TUESDAY = 'tuesday'
    WEDNESDAY = 'wednesday'
    THURSDAY = 'thursday'
    FRIDAY = 'friday'
    SATURDAY = 'saturday'
    SUNDAY = 'sunday'

    @classmethod
    def from_date(cls, value: date) -> 'DayOfWeek':
        """Возвращает день недели календарной даты."""
        return list(cls)[value.weekday()]
