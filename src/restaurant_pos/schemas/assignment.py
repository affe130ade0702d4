import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from restaurant_pos.core.constants import MAX_PARTY_SIZE
from restaurant_pos.utils.enums import AssignmentType, FailureReason

PartySize = Annotated[int, Field(ge=1, le=MAX_PARTY_SIZE)]


class TableAssignment(BaseModel):
    """Подобранные столы и стратегия, которая их выбрала."""

    table_ids: list[UUID]
    total_capacity: int
    assignment_type: AssignmentType
    is_shared_table_only: bool = False

    model_config = ConfigDict(frozen=True)


class AssignmentResult(BaseModel):
    """Результат подбора столов.

    success=False без error означает, что мест нет и столы стоит выбрать
    вручную. error заполняется, когда не найдены филиал или слот.
    """

    success: bool
    data: Optional[TableAssignment] = None
    error: Optional[str] = None
    reason: Optional[FailureReason] = None


class AssignmentPreviewRequest(BaseModel):
    """Запрос на предварительный подбор столов без сохранения."""

    branch_id: UUID
    date: datetime.date
    time_slot_id: UUID
    party_size: PartySize
