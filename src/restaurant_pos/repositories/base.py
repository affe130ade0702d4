from typing import Any, Generic, Iterable, Optional, Sequence, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Load

from restaurant_pos.core.db import Base
from restaurant_pos.core.exceptions import NotFoundError

ModelT = TypeVar('ModelT', bound=Base)
CreateSchemaT = TypeVar('CreateSchemaT', bound=BaseModel)
UpdateSchemaT = TypeVar('UpdateSchemaT', bound=BaseModel)


class CRUDBase(Generic[ModelT, CreateSchemaT, UpdateSchemaT]):
    """Базовый репозиторий сущностей POS."""

    not_found_message = 'Запись не найдена'

    def __init__(self, model: Type[ModelT]) -> None:
        """Инициализация класса."""
        self.model = model

    async def get(
        self,
        session: AsyncSession,
        *predicates: Any,
        many: bool = False,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        options: Iterable[Load] = (),
        **filters: Any,
    ) -> list[ModelT] | ModelT:
        """Выборка по равенствам полей модели и произвольным условиям.

        Args:
            session: Асинхронная сессия базы данных
            *predicates: SQLAlchemy-условия, например
                Table.is_active.is_(True)
            many: Вернуть список вместо первой записи
            order_by: Порядок выдачи
            limit: Ограничение выдачи
            offset: Смещение выдачи
            options: ORM-опции загрузки
            **filters: Равенства по полям модели (field=value)

        Returns:
            Список записей при many=True, иначе первая запись или None.

        Raises:
            ValueError: Фильтр по несуществующему полю модели.

        """
        unknown = [name for name in filters if not hasattr(self.model, name)]
        if unknown:
            raise ValueError(
                f'Некорректные поля фильтра для {self.model.__name__}: '
                f'{unknown}',
            )
        stmt = select(self.model).where(
            *(getattr(self.model, name) == v for name, v in filters.items()),
            *predicates,
        )
        if order_by:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        if options:
            stmt = stmt.options(*options)
        result = await session.execute(stmt)
        if many:
            return list(result.scalars().all())
        return result.scalars().first()

    async def get_or_404(
        self,
        session: AsyncSession,
        obj_id: UUID,
        *,
        only_active: bool = False,
    ) -> ModelT:
        """Запись по идентификатору или NotFoundError."""
        db_obj = await session.get(self.model, obj_id)
        if db_obj is None or (only_active and not db_obj.is_active):
            raise NotFoundError(self.not_found_message)
        return db_obj

    async def get_in_branch(
        self,
        session: AsyncSession,
        branch_id: UUID,
        obj_id: UUID,
    ) -> ModelT:
        """Запись филиала. Запись другого филиала считается не найденной."""
        db_obj = await session.get(self.model, obj_id)
        if db_obj is None or db_obj.branch_id != branch_id:
            raise NotFoundError(self.not_found_message)
        return db_obj

    async def create(
        self,
        obj_in: CreateSchemaT,
        session: AsyncSession,
        **extra: Any,
    ) -> ModelT:
        """Создание записи из схемы и дополнительных полей."""
        db_obj = self.model(**obj_in.model_dump(exclude_unset=True), **extra)
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        return db_obj

    async def update_obj(
        self,
        db_obj: ModelT,
        obj_in: UpdateSchemaT,
        session: AsyncSession,
    ) -> ModelT:
        """Обновление переданных полей записи."""
        for field, value in obj_in.model_dump(exclude_unset=True).items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        return db_obj

    async def delete(self, db_obj: ModelT, session: AsyncSession) -> ModelT:
        """Удаление записи из БД."""
        await session.delete(db_obj)
        await session.commit()
        return db_obj
