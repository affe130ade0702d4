from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.models import Branch
from restaurant_pos.repositories.base import CRUDBase
from restaurant_pos.schemas.branch import BranchCreate, BranchUpdate

DUPLICATE_NAME_MESSAGE = 'Филиал с таким названием уже существует'


class BranchRepository(CRUDBase[Branch, BranchCreate, BranchUpdate]):
    """Репозиторий для операций с филиалами."""

    not_found_message = 'Филиал не найден'

    def __init__(self) -> None:
        """Инициализация репозитория филиалов."""
        super().__init__(Branch)

    async def get_multi_filtered(
        self,
        session: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        show_all: bool = False,
    ) -> List[Branch]:
        """Получает список филиалов по названию."""
        conditions = []
        if not show_all:
            conditions.append(Branch.is_active.is_(True))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(Branch.name,),
            offset=skip,
            limit=limit,
        )

    async def create_branch(
        self,
        session: AsyncSession,
        obj_in: BranchCreate,
    ) -> Branch:
        """Создает филиал с уникальным названием."""
        await self._ensure_unique_name(session, obj_in.name)
        try:
            return await self.create(obj_in, session)
        except IntegrityError:
            await session.rollback()
            raise ValueError(DUPLICATE_NAME_MESSAGE)

    async def update_branch(
        self,
        session: AsyncSession,
        db_obj: Branch,
        obj_in: BranchUpdate,
    ) -> Branch:
        """Обновляет филиал."""
        if obj_in.name:
            await self._ensure_unique_name(
                session,
                obj_in.name,
                exclude_id=db_obj.id,
            )
        try:
            return await self.update_obj(db_obj, obj_in, session)
        except IntegrityError:
            await session.rollback()
            raise ValueError(DUPLICATE_NAME_MESSAGE)

    async def _ensure_unique_name(
        self,
        session: AsyncSession,
        name: str,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """Проверяет уникальность названия филиала без учёта регистра."""
        stmt = select(Branch.id).where(
            func.lower(Branch.name) == func.lower(name),
        )
        if exclude_id is not None:
            stmt = stmt.where(Branch.id != exclude_id)
        result = await session.execute(stmt)
        if result.scalars().first():
            raise ValueError(DUPLICATE_NAME_MESSAGE)


branch_repository = BranchRepository()
