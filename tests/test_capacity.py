from datetime import time

import pytest

from restaurant_pos.services.capacity import (
    CapacityService,
    remaining_capacity_for,
)
from restaurant_pos.utils.enums import ReservationStatus


def test_regular_table_is_taken_whole():
    assert remaining_capacity_for(4, False, 0) == 4
    assert remaining_capacity_for(4, False, 1) == 0


def test_shared_table_is_split():
    assert remaining_capacity_for(10, True, 3) == 7
    assert remaining_capacity_for(10, True, 12) == 0


async def test_remaining_capacity_counts_only_active_reservations(
    session,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
):
    shared = await make_table(branch, 1, 10, is_shared=True)
    time_slot = await make_slot(branch)
    await make_reservation(time_slot, future_date, 3, [shared])
    await make_reservation(
        time_slot,
        future_date,
        2,
        [shared],
        status=ReservationStatus.PENDING,
    )
    await make_reservation(
        time_slot,
        future_date,
        4,
        [shared],
        status=ReservationStatus.CANCELED,
    )

    remaining = await CapacityService.remaining_capacity(
        session,
        shared,
        future_date,
        time_slot.id,
    )

    assert remaining == 5


async def test_fcfs_counts_overlapping_slots(
    session,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
):
    table = await make_table(branch, 1, 4)
    lunch = await make_slot(branch, time(12), time(15), name='Обед')
    late_lunch = await make_slot(branch, time(14), time(17), name='Поздний')
    evening = await make_slot(branch, time(18), time(22), name='Ужин')
    await make_reservation(lunch, future_date, 2, [table])

    assert await CapacityService.remaining_capacity(
        session,
        table,
        future_date,
        late_lunch.id,
    ) == 4
    assert await CapacityService.remaining_capacity_fcfs(
        session,
        table,
        future_date,
        late_lunch.id,
    ) == 0
    assert await CapacityService.remaining_capacity_fcfs(
        session,
        table,
        future_date,
        evening.id,
    ) == 4


async def test_shared_table_fcfs_leaves_the_rest(
    session,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
):
    shared = await make_table(branch, 1, 6, is_shared=True)
    evening = await make_slot(branch, time(18), time(20), name='Вечер')
    late = await make_slot(branch, time(19), time(21), name='Поздний')
    await make_reservation(evening, future_date, 4, [shared])

    first = await CapacityService.remaining_capacity_fcfs(
        session,
        shared,
        future_date,
        late.id,
    )
    second = await CapacityService.remaining_capacity_fcfs(
        session,
        shared,
        future_date,
        late.id,
    )

    assert first == second == 2


@pytest.mark.parametrize('is_shared', [True, False])
@pytest.mark.parametrize('occupied', [0, 1, 3, 6, 9])
def test_remaining_and_occupied_add_up_to_capacity(is_shared, occupied):
    remaining = remaining_capacity_for(6, is_shared, occupied)

    assert 0 <= remaining <= 6
    if is_shared:
        assert remaining == max(6 - occupied, 0)
    else:
        assert remaining == (6 if occupied == 0 else 0)


async def test_batch_excludes_reservation(
    session,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    reservation = await make_reservation(time_slot, future_date, 2, [table])

    capacities = await CapacityService.remaining_capacity_batch(
        session,
        [table],
        future_date,
        time_slot.id,
        exclude_reservation_id=reservation.id,
    )

    assert capacities == {table.id: 4}
