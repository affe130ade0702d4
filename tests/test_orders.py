from datetime import datetime, time
from zoneinfo import ZoneInfo

import pytest

from restaurant_pos.models import Table
from restaurant_pos.utils.enums import TableStatus

ALL_DAY = {'start': time(0, 0), 'end': time(23, 59, 59, 999999)}


@pytest.fixture
def orders_url(branch):
    return f'/branches/{branch.id}/orders'


async def table_status(session, table):
    refreshed = await session.get(Table, table.id, populate_existing=True)
    return refreshed.status


async def test_walk_in_takes_free_table(
    client,
    session,
    branch,
    make_table,
    make_slot,
    orders_url,
    employee_headers,
):
    await make_table(branch, 1, 6)
    small = await make_table(branch, 2, 2)
    await make_slot(branch, **ALL_DAY)

    response = await client.post(
        f'{orders_url}/walk_in',
        json={'party_size': 2},
        headers=employee_headers,
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data['assignment']['table_ids'] == [str(small.id)]
    assert data['order']['table_id'] == str(small.id)
    assert data['order']['status'] == 'PENDING'
    assert data['order']['type'] == 'DINE_IN'
    assert data['order']['public_code'].startswith('KS')
    assert await table_status(session, small) == TableStatus.OCCUPIED


async def test_walk_in_without_free_table(
    client,
    branch,
    make_table,
    make_slot,
    orders_url,
    employee_headers,
):
    await make_table(branch, 1, 2)
    await make_table(branch, 2, 2)
    await make_slot(branch, **ALL_DAY)

    response = await client.post(
        f'{orders_url}/walk_in',
        json={'party_size': 4},
        headers=employee_headers,
    )

    assert response.status_code == 409
    assert response.json()['detail'] == 'Нет свободного стола для 4 гостей'


async def test_walk_in_outside_working_hours(
    client,
    branch,
    make_table,
    orders_url,
    employee_headers,
):
    await make_table(branch, 1, 4)

    response = await client.post(
        f'{orders_url}/walk_in',
        json={'party_size': 2},
        headers=employee_headers,
    )

    assert response.status_code == 400


async def test_second_order_at_regular_table_is_refused(
    client,
    branch,
    make_table,
    orders_url,
    employee_headers,
):
    table = await make_table(branch, 1, 4)
    body = {'table_id': str(table.id), 'party_size': 2}

    first = await client.post(
        f'{orders_url}/table',
        json=body,
        headers=employee_headers,
    )
    second = await client.post(
        f'{orders_url}/table',
        json=body,
        headers=employee_headers,
    )

    assert first.status_code == 201
    assert second.status_code == 400


async def test_shared_table_accepts_several_orders(
    client,
    branch,
    make_table,
    orders_url,
    employee_headers,
):
    shared = await make_table(branch, 1, 10, is_shared=True)
    body = {'table_id': str(shared.id), 'party_size': 2}

    first = await client.post(
        f'{orders_url}/table',
        json=body,
        headers=employee_headers,
    )
    second = await client.post(
        f'{orders_url}/table',
        json=body,
        headers=employee_headers,
    )

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()['public_code'] != second.json()['public_code']


async def test_move_and_close_order(
    client,
    session,
    branch,
    make_table,
    orders_url,
    employee_headers,
):
    source = await make_table(branch, 1, 4)
    target = await make_table(branch, 2, 4)
    opened = await client.post(
        f'{orders_url}/table',
        json={'table_id': str(source.id)},
        headers=employee_headers,
    )
    order_id = opened.json()['id']

    candidates = await client.get(
        f'{orders_url}/tables_for_move',
        headers=employee_headers,
    )
    moved = await client.post(
        f'{orders_url}/{order_id}/move',
        json={'target_table_id': str(target.id)},
        headers=employee_headers,
    )

    assert [item['id'] for item in candidates.json()] == [str(target.id)]
    assert moved.status_code == 200, moved.text
    assert moved.json()['table_id'] == str(target.id)
    assert await table_status(session, source) == TableStatus.EMPTY
    assert await table_status(session, target) == TableStatus.OCCUPIED

    closed = await client.post(
        f'{orders_url}/{order_id}/close',
        json={'status': 'COMPLETED'},
        headers=employee_headers,
    )
    closed_again = await client.post(
        f'{orders_url}/{order_id}/close',
        json={'status': 'COMPLETED'},
        headers=employee_headers,
    )

    assert closed.status_code == 200
    assert closed.json()['status'] == 'COMPLETED'
    assert closed.json()['table_id'] is None
    assert closed_again.status_code == 400
    assert await table_status(session, target) == TableStatus.EMPTY


async def test_table_with_current_reservation_is_not_offered_for_move(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    today,
    orders_url,
    employee_headers,
):
    reserved = await make_table(branch, 1, 4)
    free = await make_table(branch, 2, 4)
    time_slot = await make_slot(branch, **ALL_DAY)
    await make_reservation(time_slot, today, 2, [reserved])

    response = await client.get(
        f'{orders_url}/tables_for_move',
        headers=employee_headers,
    )

    assert [item['id'] for item in response.json()] == [str(free.id)]


async def test_reservation_frees_table_at_slot_end(
    client,
    monkeypatch,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    orders_url,
    employee_headers,
):
    reserved = await make_table(branch, 1, 4)
    free = await make_table(branch, 2, 4)
    lunch = await make_slot(branch, time(12), time(15))
    await make_reservation(lunch, future_date, 2, [reserved])

    async def tables_at(moment):
        monkeypatch.setattr(
            'restaurant_pos.repositories.order.branch_now',
            lambda timezone_name: datetime.combine(
                future_date,
                moment,
                tzinfo=ZoneInfo(timezone_name),
            ),
        )
        response = await client.get(
            f'{orders_url}/tables_for_move',
            headers=employee_headers,
        )
        return [item['id'] for item in response.json()]

    assert await tables_at(time(14, 59)) == [str(free.id)]
    assert await tables_at(time(15)) == [str(reserved.id), str(free.id)]



async def test_orders_require_staff(client, orders_url):
    response = await client.get(f'{orders_url}/')

    assert response.status_code == 401
