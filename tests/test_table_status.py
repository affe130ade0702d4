from restaurant_pos.models import Table
from restaurant_pos.services.table_status import (
    TableStatusService,
    table_status_for,
)
from restaurant_pos.utils.enums import ReservationStatus, TableStatus


def test_table_status_for_each_reservation_status():
    assert table_status_for(ReservationStatus.PENDING) == (
        TableStatus.RESERVED
    )
    assert table_status_for(ReservationStatus.CONFIRMED) == (
        TableStatus.RESERVED
    )
    assert table_status_for(ReservationStatus.SEATED) == TableStatus.OCCUPIED
    for status in (
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELED,
        ReservationStatus.NO_SHOW,
    ):
        assert table_status_for(status) == TableStatus.EMPTY


async def get_status(session, table):
    refreshed = await session.get(Table, table.id, populate_existing=True)
    return refreshed.status


async def test_today_reservation_updates_table_status(
    client,
    session,
    branch,
    make_table,
    make_slot,
    today,
    reservation_payload,
    employee_headers,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    created = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, today, 2),
    )
    reservation_id = created.json()['reservation']['id']
    assert await get_status(session, table) == TableStatus.RESERVED

    await client.patch(
        f'/reservations/{reservation_id}/status',
        json={'status': 'SEATED'},
        headers=employee_headers,
    )
    assert await get_status(session, table) == TableStatus.OCCUPIED

    await client.patch(
        f'/reservations/{reservation_id}/status',
        json={'status': 'COMPLETED'},
        headers=employee_headers,
    )
    assert await get_status(session, table) == TableStatus.EMPTY


async def test_future_reservation_keeps_table_status(
    client,
    session,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)

    await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 2),
    )

    assert await get_status(session, table) is None


async def test_shared_table_status_is_not_synced(
    session,
    branch,
    make_table,
    today,
):
    shared = await make_table(branch, 1, 10, is_shared=True)

    applied = await TableStatusService.sync_for_reservation(
        session,
        branch,
        today,
        [shared.id],
        ReservationStatus.SEATED,
    )
    await session.commit()

    assert applied == TableStatus.OCCUPIED
    assert await get_status(session, shared) is None


async def test_table_with_open_order_is_not_released(
    client,
    session,
    branch,
    make_table,
    make_slot,
    make_reservation,
    today,
    employee_headers,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    reservation = await make_reservation(time_slot, today, 2, [table])
    opened = await client.post(
        f'/branches/{branch.id}/orders/table',
        json={'table_id': str(table.id), 'party_size': 2},
        headers=employee_headers,
    )
    assert opened.status_code == 201, opened.text

    await client.post(
        f'/reservations/{reservation.id}/cancel',
        headers=employee_headers,
    )

    assert await get_status(session, table) == TableStatus.OCCUPIED
