import pytest

from restaurant_pos.utils.enums import TableStatus


@pytest.fixture
def tables_url(branch):
    return f'/branches/{branch.id}/tables'


async def test_create_table_named_by_number(
    client,
    tables_url,
    manager_headers,
):
    response = await client.post(
        f'{tables_url}/',
        json={'number': 7, 'capacity': 4},
        headers=manager_headers,
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data['name'] == '7'
    assert data['is_shared'] is False
    assert data['status'] is None


async def test_duplicate_number_is_rejected(
    client,
    branch,
    make_table,
    tables_url,
    manager_headers,
):
    await make_table(branch, 7, 4)

    response = await client.post(
        f'{tables_url}/',
        json={'number': 7, 'capacity': 2},
        headers=manager_headers,
    )

    assert response.status_code == 400
    assert response.json()['detail'] == 'Стол №7 уже есть в филиале'


async def test_unknown_branch(client, manager_headers):
    response = await client.get(
        '/branches/00000000-0000-0000-0000-000000000000/tables/',
        headers=manager_headers,
    )

    assert response.status_code == 404


async def test_manual_status(
    client,
    branch,
    make_table,
    tables_url,
    employee_headers,
):
    table = await make_table(branch, 1, 4)

    response = await client.patch(
        f'{tables_url}/{table.id}/status',
        json={'status': TableStatus.CLEANING.value},
        headers=employee_headers,
    )

    assert response.json()['status'] == 'CLEANING'


async def test_availability_shows_pools(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    tables_url,
    employee_headers,
):
    shared = await make_table(branch, 1, 10, is_shared=True)
    exclusive = await make_table(branch, 2, 4)
    time_slot = await make_slot(branch, exclusive=[exclusive])
    await make_reservation(time_slot, future_date, 3, [shared])

    response = await client.get(
        f'{tables_url}/availability',
        params={
            'date': future_date.isoformat(),
            'time_slot_id': str(time_slot.id),
        },
        headers=employee_headers,
    )

    assert response.status_code == 200, response.text
    rows = {row['number']: row for row in response.json()}
    assert rows[1]['remaining_capacity'] == 7
    assert rows[1]['is_exclusive'] is False
    assert rows[1]['in_shared_pool'] is True
    assert rows[2]['is_exclusive'] is True
    assert rows[2]['is_available'] is True


async def test_table_with_reservations_cannot_be_deleted(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    tables_url,
    manager_headers,
):
    booked = await make_table(branch, 1, 4)
    unused = await make_table(branch, 2, 4)
    time_slot = await make_slot(branch)
    await make_reservation(time_slot, future_date, 2, [booked])

    refused = await client.delete(
        f'{tables_url}/{booked.id}',
        headers=manager_headers,
    )
    deleted = await client.delete(
        f'{tables_url}/{unused.id}',
        headers=manager_headers,
    )

    assert refused.status_code == 400
    assert deleted.status_code == 204
