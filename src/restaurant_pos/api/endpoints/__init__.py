from .auth import router as auth_router
from .branch import router as branch_router
from .healthcheck import router as healthcheck_router
from .order import router as order_router
from .reservation import router as reservation_router
from .table import router as table_router
from .time_slot import router as time_slot_router
from .user import router as user_router

__all__ = [
    'auth_router',
    'user_router',
    'branch_router',
    'table_router',
    'time_slot_router',
    'reservation_router',
    'order_router',
    'healthcheck_router',
]

routers = [
    auth_router,
    user_router,
    branch_router,
    table_router,
    time_slot_router,
    reservation_router,
    order_router,
    healthcheck_router,
]
