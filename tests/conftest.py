"""Pytest configuration and fixtures."""

import os

os.environ.update(
    {
        'POSTGRES_DB': 'restaurant_pos',
        'POSTGRES_USER': 'postgres',
        'POSTGRES_PASSWORD': 'postgres',
        'POSTGRES_PORT': '5432',
        'POSTGRES_HOST': 'localhost',
        'REDIS_HOST': 'localhost',
        'REDIS_PORT': '6379',
        'REDIS_DB': '0',
        'REDIS_CACHE_TTL': '60',
        'LOG_LEVEL': 'DEBUG',
        'LOG_ROTATION': '10 MB',
        'LOG_RETENTION': '7 days',
        'SECRET_KEY': 'test-secret-key',
        'RABBITMQ_DEFAULT_USER': 'guest',
        'RABBITMQ_DEFAULT_PASS': 'guest',
        'RABBITMQ_DEFAULT_VHOST': 'vhost',
        'RABBITMQ_DEFAULT_HOST': 'localhost',
        'RABBITMQ_DEFAULT_PORT': '5672',
        'ADMIN_USERNAME': 'admin',
        'ADMIN_EMAIL': 'admin@example.com',
        'ADMIN_PHONE': '+79990000000',
        'ADMIN_PASSWORD': 'Admin_pass1',
        'NOTIFY_MAIL_FROM': 'noreply@example.com',
        'NOTIFY_MAIL_USERNAME': 'noreply',
        'NOTIFY_MAIL_PASSWORD': 'secret',
        'NOTIFY_MAIL_PORT': '587',
        'NOTIFY_MAIL_SERVER': 'smtp.example.com',
    },
)

from datetime import date, time, timedelta  # noqa: E402
from typing import AsyncIterator, Optional  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from restaurant_pos.core.auth import (  # noqa: E402
    create_access_token,
    get_password_hash,
)
from restaurant_pos.core.db import Base, get_async_session  # noqa: E402
from restaurant_pos.main import app  # noqa: E402
from restaurant_pos.models import (  # noqa: E402
    Branch,
    Reservation,
    ReservationTable,
    Table,
    TimeSlot,
    TimeSlotTable,
    User,
)
from restaurant_pos.services import send_email_service  # noqa: E402
from restaurant_pos.services.schedule import branch_today  # noqa: E402
from restaurant_pos.utils.enums import (  # noqa: E402
    DayOfWeek,
    ReservationStatus,
    UserRole,
)

PASSWORD = 'Passw0rd!'
HASHED_PASSWORD = get_password_hash(PASSWORD)
ALL_DAYS = [day.value for day in DayOfWeek]


@pytest.fixture
async def engine(tmp_path):
    """Файловая SQLite: у каждой сессии своё соединение."""
    engine = create_async_engine(
        f'sqlite+aiosqlite:///{tmp_path / "test.db"}',
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    """HTTP-клиент приложения с тестовой базой."""

    async def override_get_async_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_async_session
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url='http://test',
    ) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_notifications(monkeypatch) -> list[dict]:
    """Письма не уходят в Celery, а складываются в список."""
    sent = []

    def fake_send_notification_task(**kwargs) -> None:
        sent.append(kwargs)

    monkeypatch.setattr(
        send_email_service,
        'send_notification_task',
        fake_send_notification_task,
    )
    return sent


@pytest.fixture
def today() -> date:
    return branch_today('UTC')


@pytest.fixture
def future_date(today) -> date:
    return today + timedelta(days=7)


async def _create_user(
    session: AsyncSession,
    username: str,
    role: UserRole,
) -> User:
    user = User(
        username=username,
        email=f'{username}@example.com',
        hashed_password=HASHED_PASSWORD,
        role=role,
        is_active=True,
        is_superuser=False,
        is_verified=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def _auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user_id=user.id, username=user.username)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def admin(session) -> User:
    return await _create_user(session, 'admin_user', UserRole.ADMIN)


@pytest.fixture
async def manager(session) -> User:
    return await _create_user(session, 'manager_user', UserRole.MANAGER)


@pytest.fixture
async def employee(session) -> User:
    return await _create_user(session, 'waiter_user', UserRole.EMPLOYEE)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return _auth_headers(admin)


@pytest.fixture
def manager_headers(manager) -> dict[str, str]:
    return _auth_headers(manager)


@pytest.fixture
def employee_headers(employee) -> dict[str, str]:
    return _auth_headers(employee)


@pytest.fixture
async def branch(session) -> Branch:
    branch = Branch(name='Центральный', address='ул. Ленина, 1')
    session.add(branch)
    await session.commit()
    await session.refresh(branch)
    return branch


@pytest.fixture
def make_table(session):
    """Фабрика столов филиала."""

    async def factory(
        branch: Branch,
        number: int,
        capacity: int,
        is_shared: bool = False,
        **kwargs,
    ) -> Table:
        table = Table(
            branch_id=branch.id,
            number=number,
            name=str(number),
            capacity=capacity,
            is_shared=is_shared,
            **kwargs,
        )
        session.add(table)
        await session.commit()
        await session.refresh(table)
        return table

    return factory


@pytest.fixture
def make_slot(session):
    """Фабрика временных слотов. exclusive закрепляет столы за слотом."""

    async def factory(
        branch: Branch,
        start: time = time(12, 0),
        end: time = time(15, 0),
        exclusive: Optional[list[Table]] = None,
        days: Optional[list[str]] = None,
        name: str = 'Обед',
        **kwargs,
    ) -> TimeSlot:
        time_slot = TimeSlot(
            branch_id=branch.id,
            name=name,
            start_time=start,
            end_time=end,
            days_of_week=days or ALL_DAYS,
            **kwargs,
        )
        time_slot.table_links = [
            TimeSlotTable(table_id=table.id, is_exclusive=True)
            for table in exclusive or []
        ]
        session.add(time_slot)
        await session.commit()
        await session.refresh(time_slot)
        return time_slot

    return factory


@pytest.fixture
def make_reservation(session):
    """Фабрика бронирований с уже назначенными столами."""

    async def factory(
        time_slot: TimeSlot,
        reservation_date: date,
        people: int,
        tables: Optional[list[Table]] = None,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
    ) -> Reservation:
        reservation = Reservation(
            branch_id=time_slot.branch_id,
            customer_name='Иван Петров',
            customer_email='guest@example.com',
            customer_phone='+79991234567',
            date=reservation_date,
            time_slot_id=time_slot.id,
            people=people,
            status=status,
            created_by='WEB',
        )
        reservation.table_links = [
            ReservationTable(table_id=table.id) for table in tables or []
        ]
        session.add(reservation)
        await session.commit()
        await session.refresh(reservation)
        return reservation

    return factory


def _reservation_payload(
    branch: Branch,
    time_slot: TimeSlot,
    reservation_date: date,
    people: int,
    **kwargs,
) -> dict:
    """Тело запроса на создание бронирования."""
    payload = {
        'branch_id': str(branch.id),
        'customer_name': 'Иван Петров',
        'customer_email': 'guest@example.com',
        'customer_phone': '+79991234567',
        'date': reservation_date.isoformat(),
        'time_slot_id': str(time_slot.id),
        'people': people,
    }
    payload.update(kwargs)
    return payload


@pytest.fixture
def reservation_payload():
    return _reservation_payload
