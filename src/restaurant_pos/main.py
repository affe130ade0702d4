from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from restaurant_pos.api.endpoints import routers
from restaurant_pos.core.db import SessionFactory
from restaurant_pos.core.exception_handler import (
    http_exception_handler,
    service_exception_handler,
    validation_exception_handler,
)
from restaurant_pos.core.exceptions import CapacityError, NotFoundError
from restaurant_pos.core.init_admin import upsert_admin_if_not_exist
from restaurant_pos.core.logging import configure_logging
from restaurant_pos.middleware.http_logging import logging_middleware
from restaurant_pos.services.cache_service import cache_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator:
    """Запускает логгер, кеш и учётку администратора."""
    configure_logging()
    await cache_service.connect()
    async with SessionFactory() as session:
        await upsert_admin_if_not_exist(session)
    yield
    await cache_service.disconnect()


app = FastAPI(
    title='Ресторанная POS-система',
    description=(
        'API для управления залом ресторана: столы, временные слоты, '
        'бронирования с автоматическим подбором столов и заказы'
    ),
    version='0.1.0',
    lifespan=lifespan,
    root_path='/api',
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(NotFoundError, service_exception_handler)
app.add_exception_handler(CapacityError, service_exception_handler)

app.middleware('http')(logging_middleware)


for router in routers:
    app.include_router(router)
