from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.core.auth import get_password_hash
from restaurant_pos.core.config import settings
from restaurant_pos.repositories.user import user_repository
from restaurant_pos.schemas.user import ROLE_CODES, UserCreate
from restaurant_pos.utils.enums import UserRole


async def upsert_admin_if_not_exist(session: AsyncSession) -> None:
    """Гарантирует учётку администратора POS из настроек окружения.

    Существующая учётка с тем же именем, email или телефоном приводится
    к настройкам: пароль, роль ADMIN и активность. Так доступ к системе
    восстанавливается простым перезапуском с новым ADMIN_PASSWORD.
    """
    admin = UserCreate(
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        phone=settings.ADMIN_PHONE,
        password=settings.ADMIN_PASSWORD,
        role=ROLE_CODES[UserRole.ADMIN],
    )
    user = await user_repository.get_by_credentials(session, admin)
    if user is None:
        await user_repository.create_user(session, obj_in=admin)
        logger.info(f'Создан администратор {admin.username}')
        return
    user.username = admin.username
    user.email = admin.email
    user.phone = admin.phone
    user.hashed_password = get_password_hash(admin.password)
    user.role = UserRole.ADMIN
    user.is_active = True
    await session.commit()
    logger.info(f'Учётка администратора {admin.username} обновлена')
