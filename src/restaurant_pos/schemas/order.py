from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from restaurant_pos.schemas.assignment import PartySize, TableAssignment
from restaurant_pos.schemas.table import TableShortInfo
from restaurant_pos.utils.enums import OrderStatus, OrderType


class TableOrderCreate(BaseModel):
    """Заказ в зале за выбранным столом."""

    table_id: UUID
    party_size: PartySize = 1


class WalkInOrderCreate(BaseModel):
    """Гости без брони: стол подбирается автоматически."""

    party_size: PartySize


class OrderMove(BaseModel):
    """Перенос заказа за другой стол."""

    target_table_id: UUID


class OrderClose(BaseModel):
    """Закрытие заказа."""

    status: OrderStatus = OrderStatus.COMPLETED


class OrderInfo(BaseModel):
    """Схема заказа."""

    id: UUID
    branch_id: UUID
    public_code: str
    type: OrderType
    status: OrderStatus
    party_size: int
    table_id: Optional[UUID] = None
    table: Optional[TableShortInfo] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WalkInOrderInfo(BaseModel):
    """Ответ на посадку гостей без брони."""

    order: OrderInfo
    assignment: TableAssignment
