from .associations import ReservationTable, TimeSlotTable
from .branch import Branch
from .order import Order
from .reservation import Reservation
from .table import Table
from .time_slot import TimeSlot
from .user import User

__all__ = [
    'User',
    'Branch',
    'Table',
    'TimeSlot',
    'TimeSlotTable',
    'Reservation',
    'ReservationTable',
    'Order',
]
