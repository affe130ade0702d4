from datetime import time
from uuid import uuid4

from restaurant_pos.services.assignment import (
    AssignmentService,
    TableCandidate,
    select_assignment,
)
from restaurant_pos.utils.enums import (
    AssignmentType,
    FailureReason,
    TableStatus,
)


def candidate(number, capacity, remaining=None, is_shared=False, **kwargs):
    return TableCandidate(
        id=uuid4(),
        number=number,
        capacity=capacity,
        is_shared=is_shared,
        remaining=capacity if remaining is None else remaining,
        **kwargs,
    )


class TestSelectAssignment:

    def test_size_match_wins_over_exclusive(self):
        exclusive = [candidate(1, 6)]
        exact = candidate(2, 4)

        result = select_assignment(exclusive, [exact], 4)

        assert result.table_ids == [exact.id]
        assert result.assignment_type == AssignmentType.SIZE_MATCH

    def test_size_match_in_exclusive_pool(self):
        exact = candidate(1, 4)

        result = select_assignment([exact], [exact, candidate(2, 4)], 4)

        assert result.table_ids == [exact.id]
        assert result.assignment_type == AssignmentType.EXCLUSIVE

    def test_smallest_exclusive_table(self):
        big, small = candidate(1, 8), candidate(2, 5)

        result = select_assignment([big, small], [], 3)

        assert result.table_ids == [small.id]
        assert result.assignment_type == AssignmentType.EXCLUSIVE
        assert result.total_capacity == 5

    def test_exclusive_combination(self):
        first, second = candidate(1, 2), candidate(2, 3)

        result = select_assignment([first, second], [], 4)

        assert result.table_ids == [first.id, second.id]
        assert result.assignment_type == AssignmentType.COMBINED
        assert result.total_capacity == 5

    def test_shared_table_before_regular_pool_table(self):
        shared = candidate(1, 10, is_shared=True)
        regular = candidate(2, 6)

        result = select_assignment([], [regular, shared], 5)

        assert result.table_ids == [shared.id]
        assert result.assignment_type == AssignmentType.SHARED_TABLE
        assert result.is_shared_table_only

    def test_regular_pool_table(self):
        regular = candidate(1, 6)

        result = select_assignment([], [regular], 5)

        assert result.table_ids == [regular.id]
        assert result.assignment_type == AssignmentType.SHARED_POOL
        assert not result.is_shared_table_only

    def test_pool_combination_ordered_by_remaining(self):
        four, two, three = candidate(1, 4), candidate(2, 2), candidate(3, 3)

        result = select_assignment([], [four, two, three], 5)

        assert result.table_ids == [two.id, three.id]
        assert result.assignment_type == AssignmentType.COMBINED

    def test_combination_skips_shared_tables(self):
        shared = candidate(1, 3, is_shared=True)
        regular = candidate(2, 3)

        assert select_assignment([], [shared, regular], 5) is None

    def test_shared_table_partial_remaining(self):
        shared = candidate(1, 10, remaining=4, is_shared=True)

        assert select_assignment([], [shared], 5) is None
        result = select_assignment([], [shared], 4)
        assert result.assignment_type == AssignmentType.SIZE_MATCH

    def test_tables_with_manual_status_are_skipped(self):
        cleaning = candidate(1, 4, status=TableStatus.CLEANING)
        empty = candidate(2, 4, status=TableStatus.EMPTY)

        result = select_assignment([], [cleaning, empty], 4)

        assert result.table_ids == [empty.id]

    def test_no_tables(self):
        assert select_assignment([], [candidate(1, 4, remaining=0)], 2) is None


async def find(session, branch, time_slot, reservation_date, party_size):
    return await AssignmentService.find_available_tables(
        session,
        branch.id,
        reservation_date,
        time_slot.id,
        party_size,
    )


async def test_exclusive_tables_take_precedence(
    session,
    branch,
    make_table,
    make_slot,
    future_date,
):
    await make_table(branch, 1, 4)
    reserved_for_slot = await make_table(branch, 2, 6)
    time_slot = await make_slot(branch, exclusive=[reserved_for_slot])

    result = await find(session, branch, time_slot, future_date, 3)

    assert result.success
    assert result.data.table_ids == [reserved_for_slot.id]
    assert result.data.assignment_type == AssignmentType.EXCLUSIVE


async def test_table_of_overlapping_slot_is_not_offered(
    session,
    branch,
    make_table,
    make_slot,
    future_date,
):
    table = await make_table(branch, 1, 4)
    await make_slot(branch, time(12), time(15), exclusive=[table])
    requested = await make_slot(branch, time(14), time(17), name='Поздний')
    adjacent = await make_slot(branch, time(15), time(18), name='Полдник')

    blocked = await find(session, branch, requested, future_date, 2)
    free = await find(session, branch, adjacent, future_date, 2)

    assert not blocked.success
    assert blocked.reason == FailureReason.NO_CAPACITY
    assert blocked.error is None
    assert free.data.table_ids == [table.id]


async def test_first_come_first_served_across_slots(
    session,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
):
    table = await make_table(branch, 1, 4)
    lunch = await make_slot(branch, time(12), time(15))
    late_lunch = await make_slot(branch, time(14), time(17), name='Поздний')
    await make_reservation(lunch, future_date, 2, [table])

    result = await find(session, branch, late_lunch, future_date, 2)

    assert not result.success
    assert result.reason == FailureReason.NO_CAPACITY


async def test_shared_table_keeps_seats_left_by_earlier_slot(
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

    too_many = await find(session, branch, late, future_date, 4)
    couple = await find(session, branch, late, future_date, 2)

    assert not too_many.success
    assert too_many.reason == FailureReason.NO_CAPACITY
    assert couple.success
    assert couple.data.table_ids == [shared.id]
    assert couple.data.is_shared_table_only is True



async def test_combination_of_three_tables(
    session,
    branch,
    make_table,
    make_slot,
    future_date,
):
    tables = [await make_table(branch, number, 4) for number in range(1, 5)]
    time_slot = await make_slot(branch)

    result = await find(session, branch, time_slot, future_date, 12)

    assert result.data.assignment_type == AssignmentType.COMBINED
    assert result.data.table_ids == [table.id for table in tables[:3]]
    assert result.data.total_capacity == 12


async def test_unknown_slot_is_reported(session, branch, future_date):
    result = await AssignmentService.find_available_tables(
        session,
        branch.id,
        future_date,
        uuid4(),
        2,
    )

    assert not result.success
    assert result.reason == FailureReason.NOT_FOUND
    assert result.error == 'Временной слот не найден'
