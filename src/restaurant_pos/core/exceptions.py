class NotFoundError(ValueError):
    """Запрошенный филиал, стол, слот или бронирование не существует."""


class CapacityError(ValueError):
    """Выбранные столы не могут вместить гостей на указанное время."""
