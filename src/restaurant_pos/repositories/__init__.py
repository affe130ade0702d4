from .base import CRUDBase
from .branch import BranchRepository, branch_repository
from .order import OrderRepository, order_repository
from .reservation import ReservationRepository, reservation_repository
from .table import TableRepository, table_repository
from .time_slot import TimeSlotRepository, time_slot_repository
from .user import UserRepository, user_repository

__all__ = [
    'CRUDBase',
    'BranchRepository',
    'branch_repository',
    'TableRepository',
    'table_repository',
    'TimeSlotRepository',
    'time_slot_repository',
    'ReservationRepository',
    'reservation_repository',
    'OrderRepository',
    'order_repository',
    'UserRepository',
    'user_repository',
]
