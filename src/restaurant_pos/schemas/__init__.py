"""Модуль схем Pydantic для валидации и сериализации данных.

Содержит схемы для всех сущностей системы:
- Филиалы (Branch)
- Столы (Table)
- Временные слоты (TimeSlot)
- Бронирования (Reservation)
- Заказы (Order)
- Результат подбора столов (Assignment)
- Сотрудники (User)
- Токен аутентификации (Auth)
"""

from .assignment import (
    AssignmentPreviewRequest,
    AssignmentResult,
    TableAssignment,
)
from .auth import AuthData, AuthToken
from .branch import BranchCreate, BranchInfo, BranchUpdate
from .common import ErrorResponse
from .order import (
    OrderClose,
    OrderInfo,
    OrderMove,
    TableOrderCreate,
    WalkInOrderCreate,
    WalkInOrderInfo,
)
from .reservation import (
    ReservationCreate,
    ReservationCreated,
    ReservationInfo,
    ReservationStatusUpdate,
    ReservationTablesUpdate,
    ReservationUpdate,
)
from .table import (
    TableAvailability,
    TableCreate,
    TableInfo,
    TableShortInfo,
    TableStatusUpdate,
    TableUpdate,
)
from .time_slot import (
    TableSlotConflict,
    TimeSlotAvailability,
    TimeSlotCreate,
    TimeSlotInfo,
    TimeSlotShortInfo,
    TimeSlotUpdate,
)
from .user import UserCreate, UserInfo, UserUpdate

__all__ = [
    'AssignmentPreviewRequest',
    'AssignmentResult',
    'TableAssignment',
    'AuthData',
    'AuthToken',
    'BranchCreate',
    'BranchInfo',
    'BranchUpdate',
    'ErrorResponse',
    'OrderClose',
    'OrderInfo',
    'OrderMove',
    'TableOrderCreate',
    'WalkInOrderCreate',
    'WalkInOrderInfo',
    'ReservationCreate',
    'ReservationCreated',
    'ReservationInfo',
    'ReservationStatusUpdate',
    'ReservationTablesUpdate',
    'ReservationUpdate',
    'TableAvailability',
    'TableCreate',
    'TableInfo',
    'TableShortInfo',
    'TableStatusUpdate',
    'TableUpdate',
    'TableSlotConflict',
    'TimeSlotAvailability',
    'TimeSlotCreate',
    'TimeSlotInfo',
    'TimeSlotShortInfo',
    'TimeSlotUpdate',
    'UserCreate',
    'UserInfo',
    'UserUpdate',
]
