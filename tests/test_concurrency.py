import asyncio

from sqlalchemy import func, select

from restaurant_pos.models import Reservation, ReservationTable
from restaurant_pos.repositories.reservation import reservation_repository
from restaurant_pos.schemas.reservation import ReservationCreate
from restaurant_pos.utils.enums import ReservationStatus


async def test_parallel_reservations_do_not_share_table(
    session,
    session_factory,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    data = ReservationCreate(
        **reservation_payload(branch, time_slot, future_date, 2),
    )

    async def create():
        async with session_factory() as own_session:
            reservation, _ = (
                await reservation_repository.create_with_assignment(
                    own_session,
                    data,
                    'WEB',
                )
            )
            return reservation.status

    statuses = await asyncio.gather(create(), create(), create())

    assert sorted(statuses) == sorted(
        [
            ReservationStatus.CONFIRMED,
            ReservationStatus.PENDING,
            ReservationStatus.PENDING,
        ],
    )
    links = await session.execute(
        select(func.count()).select_from(ReservationTable).where(
            ReservationTable.table_id == table.id,
        ),
    )
    assert links.scalar_one() == 1
    total = await session.execute(select(func.count(Reservation.id)))
    assert total.scalar_one() == 3


async def test_parallel_parties_fill_shared_table_exactly(
    session_factory,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
):
    await make_table(branch, 1, 6, is_shared=True)
    time_slot = await make_slot(branch)
    data = ReservationCreate(
        **reservation_payload(branch, time_slot, future_date, 2),
    )

    async def create():
        async with session_factory() as own_session:
            _, assignment = (
                await reservation_repository.create_with_assignment(
                    own_session,
                    data,
                    'WEB',
                )
            )
            return assignment is not None

    assigned = await asyncio.gather(*(create() for _ in range(5)))

    assert assigned.count(True) == 3
