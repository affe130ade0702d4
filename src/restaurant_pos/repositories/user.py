from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.auth import get_password_hash
from restaurant_pos.models.user import User
from restaurant_pos.repositories.base import CRUDBase
from restaurant_pos.schemas.user import ROLES_BY_CODE, UserCreate, UserUpdate


class UserRepository(CRUDBase[User, UserCreate, UserUpdate]):
    """Репозиторий для операций с сотрудниками."""

    not_found_message = 'Пользователь не найден'

    def __init__(self) -> None:
        """Инициализация репозитория сотрудников."""
        super().__init__(User)

    async def create_user(
        self,
        session: AsyncSession,
        obj_in: UserCreate,
    ) -> User:
        """Создание сотрудника с хешированием пароля."""
        existing_user = await self.get_by_credentials(session, obj_in)
        if existing_user:
            raise ValueError('Пользователь с такими данными уже существует')
        create_data = obj_in.model_dump(exclude={'password', 'role'})
        create_data['hashed_password'] = get_password_hash(obj_in.password)
        create_data['role'] = ROLES_BY_CODE[obj_in.role]
        try:
            db_obj = self.model(**create_data)
            session.add(db_obj)
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ValueError('Пользователь с такими данными уже существует')
        await session.refresh(db_obj)
        return db_obj

    async def get_by_credentials(
        self,
        session: AsyncSession,
        user_data: Union[UserCreate, UserUpdate],
        exclude_user_id: Optional[UUID] = None,
    ) -> Optional[User]:
        """Сотрудник с тем же именем, email или телефоном."""
        conditions = [
            column == value
            for column, value in (
                (User.username, user_data.username),
                (User.email, user_data.email),
                (User.phone, user_data.phone),
            )
            if value
        ]
        if not conditions:
            return None
        query = select(User).where(or_(*conditions))
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)
        result = await session.execute(query)
        return result.scalars().first()

    async def update_user(
        self,
        session: AsyncSession,
        db_obj: User,
        obj_in: UserUpdate,
    ) -> User:
        """Обновление сотрудника."""
        update_data = obj_in.model_dump(exclude_unset=True)
        conflicting_user = await self.get_by_credentials(
            session,
            user_data=obj_in,
            exclude_user_id=db_obj.id,
        )
        if conflicting_user:
            raise ValueError(
                'Другой пользователь с такими данными уже существует',
            )
        if update_data.get('password'):
            update_data['hashed_password'] = get_password_hash(
                update_data.pop('password'),
            )
        if update_data.get('role') is not None:
            update_data['role'] = ROLES_BY_CODE[update_data['role']]
        # Хотя бы один контакт должен остаться
        new_phone = update_data.get('phone', db_obj.phone)
        new_email = update_data.get('email', db_obj.email)
        if not new_phone and not new_email:
            raise ValueError('Пользователь должен иметь email или телефон')
        for field, value in update_data.items():
            setattr(db_obj, field, value)
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)
        return db_obj

    async def get_multi_filtered(
        self,
        session: AsyncSession,
        show_all: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        """Получение списка сотрудников."""
        conditions = []
        if not show_all:
            conditions.append(User.is_active.is_(True))
        return await self.get(
            session,
            *conditions,
            many=True,
            order_by=(User.username,),
            offset=skip,
            limit=limit,
        )

    async def get_by_login(
        self,
        session: AsyncSession,
        login: str,
    ) -> Optional[User]:
        """Получает сотрудника по имени, email или телефону."""
        result = await session.execute(
            select(User).where(
                or_(
                    User.username == login,
                    User.email == login,
                    User.phone == login,
                ),
            ),
        )
        return result.scalars().first()


user_repository = UserRepository()
