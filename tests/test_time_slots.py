from datetime import time, timedelta

import pytest

from restaurant_pos.services.schedule import day_of_week


@pytest.fixture
def slots_url(branch):
    return f'/branches/{branch.id}/time_slots'


def slot_body(**kwargs):
    body = {
        'name': 'Обед',
        'start_time': '12:00:00',
        'end_time': '15:00:00',
        'days_of_week': ['monday', 'tuesday', 'wednesday', 'thursday',
                         'friday', 'saturday', 'sunday'],
    }
    body.update(kwargs)
    return body


async def test_create_slot_with_exclusive_tables(
    client,
    branch,
    make_table,
    slots_url,
    manager_headers,
):
    table = await make_table(branch, 1, 4)

    response = await client.post(
        f'{slots_url}/',
        json=slot_body(table_ids=[str(table.id)], price_per_person='1500'),
        headers=manager_headers,
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data['table_links'][0]['table_id'] == str(table.id)
    assert data['table_links'][0]['is_exclusive'] is True
    assert data['table_links'][0]['table']['number'] == 1


async def test_invalid_interval_is_rejected(
    client,
    slots_url,
    manager_headers,
):
    response = await client.post(
        f'{slots_url}/',
        json=slot_body(start_time='15:00:00', end_time='12:00:00'),
        headers=manager_headers,
    )

    assert response.status_code == 422


async def test_employee_cannot_create_slot(
    client,
    slots_url,
    employee_headers,
):
    response = await client.post(
        f'{slots_url}/',
        json=slot_body(),
        headers=employee_headers,
    )

    assert response.status_code == 403


async def test_available_slots_for_date(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    slots_url,
):
    table = await make_table(branch, 1, 4)
    lunch = await make_slot(branch, exclusive=[table])
    other_day = day_of_week(future_date + timedelta(days=1)).value
    await make_slot(branch, name='Завтрак', days=[other_day])
    await make_reservation(lunch, future_date, 3, [table])

    response = await client.get(
        f'{slots_url}/available',
        params={'date': future_date.isoformat(), 'party_size': 2},
    )

    assert response.status_code == 200, response.text
    slots = response.json()
    assert [item['id'] for item in slots] == [str(lunch.id)]
    assert slots[0]['capacity'] == 4
    assert slots[0]['booked_people'] == 3
    assert slots[0]['available_capacity'] == 1
    assert slots[0]['has_availability'] is False


async def test_slot_without_tables_has_no_limit(
    client,
    branch,
    make_slot,
    future_date,
    slots_url,
):
    await make_slot(branch)

    response = await client.get(
        f'{slots_url}/available',
        params={'date': future_date.isoformat()},
    )

    slot = response.json()[0]
    assert slot['capacity'] is None
    assert slot['has_availability'] is True


async def test_customer_limit_overrides_table_capacity(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    slots_url,
):
    table = await make_table(branch, 1, 10)
    await make_slot(branch, exclusive=[table], customer_limit=6)

    response = await client.get(
        f'{slots_url}/available',
        params={'date': future_date.isoformat(), 'party_size': 7},
    )

    slot = response.json()[0]
    assert slot['capacity'] == 6
    assert slot['has_availability'] is False


async def test_table_conflicts(
    client,
    branch,
    make_table,
    make_slot,
    slots_url,
    manager_headers,
):
    table = await make_table(branch, 1, 4)
    lunch = await make_slot(branch, exclusive=[table])

    overlapping = await client.get(
        f'{slots_url}/table_conflicts',
        params={'start_time': '14:00:00', 'end_time': '16:00:00'},
        headers=manager_headers,
    )
    adjacent = await client.get(
        f'{slots_url}/table_conflicts',
        params={'start_time': '15:00:00', 'end_time': '17:00:00'},
        headers=manager_headers,
    )
    itself = await client.get(
        f'{slots_url}/table_conflicts',
        params={
            'start_time': '12:00:00',
            'end_time': '15:00:00',
            'exclude_id': str(lunch.id),
        },
        headers=manager_headers,
    )

    assert overlapping.json() == [
        {
            'table_id': str(table.id),
            'time_slot_id': str(lunch.id),
            'time_slot_name': lunch.name,
        },
    ]
    assert adjacent.json() == []
    assert itself.json() == []


async def test_update_replaces_tables(
    client,
    branch,
    make_table,
    make_slot,
    slots_url,
    manager_headers,
):
    first = await make_table(branch, 1, 4)
    second = await make_table(branch, 2, 4)
    time_slot = await make_slot(branch, exclusive=[first])

    response = await client.patch(
        f'{slots_url}/{time_slot.id}',
        json={'table_ids': [str(second.id)], 'end_time': '16:00:00'},
        headers=manager_headers,
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert [link['table_id'] for link in data['table_links']] == [
        str(second.id),
    ]
    assert data['end_time'] == '16:00:00'


async def test_table_cannot_be_exclusive_in_overlapping_slots(
    client,
    branch,
    make_table,
    slots_url,
    manager_headers,
):
    table = await make_table(branch, 5, 4)
    evening = slot_body(
        name='Вечер',
        start_time='18:00:00',
        end_time='20:00:00',
        table_ids=[str(table.id)],
    )

    first = await client.post(
        f'{slots_url}/', json=evening, headers=manager_headers,
    )
    second = await client.post(
        f'{slots_url}/',
        json={**evening, 'name': 'Поздний вечер',
              'start_time': '19:00:00', 'end_time': '21:00:00'},
        headers=manager_headers,
    )
    adjacent = await client.post(
        f'{slots_url}/',
        json={**evening, 'name': 'Ночь',
              'start_time': '20:00:00', 'end_time': '22:00:00'},
        headers=manager_headers,
    )

    assert first.status_code == 201, first.text
    assert second.status_code == 400
    assert second.json()['detail'] == (
        'Стол №5 уже закреплён за слотом "Вечер"'
    )
    assert adjacent.status_code == 201, adjacent.text


async def test_other_weekdays_do_not_conflict(
    client,
    branch,
    make_table,
    make_slot,
    slots_url,
    manager_headers,
):
    table = await make_table(branch, 1, 4)
    await make_slot(branch, exclusive=[table], days=['monday'])

    response = await client.post(
        f'{slots_url}/',
        json=slot_body(
            name='Выходной обед',
            days_of_week=['saturday', 'sunday'],
            table_ids=[str(table.id)],
        ),
        headers=manager_headers,
    )

    assert response.status_code == 201, response.text


async def test_update_cannot_claim_taken_table(
    client,
    branch,
    make_table,
    make_slot,
    slots_url,
    manager_headers,
):
    first = await make_table(branch, 1, 4)
    second = await make_table(branch, 2, 4)
    await make_slot(branch, exclusive=[first])
    dinner = await make_slot(
        branch,
        start=time(15, 0),
        end=time(18, 0),
        exclusive=[second],
        name='Ужин',
    )

    claimed = await client.patch(
        f'{slots_url}/{dinner.id}',
        json={'table_ids': [str(first.id), str(second.id)]},
        headers=manager_headers,
    )
    stretched = await client.patch(
        f'{slots_url}/{dinner.id}',
        json={'start_time': '14:00:00', 'table_ids': [str(first.id)]},
        headers=manager_headers,
    )
    unchanged = await client.get(
        f'{slots_url}/{dinner.id}',
        headers=manager_headers,
    )

    assert claimed.status_code == 200, claimed.text
    assert stretched.status_code == 400
    assert 'Стол №1' in stretched.json()['detail']
    assert unchanged.json()['start_time'] == '15:00:00'


async def test_toggle_on_checks_exclusive_tables(
    client,
    branch,
    make_table,
    make_slot,
    slots_url,
    manager_headers,
):
    table = await make_table(branch, 1, 4)
    await make_slot(branch, exclusive=[table])
    retired = await make_slot(
        branch,
        exclusive=[table],
        name='Старый обед',
        is_active=False,
    )

    response = await client.patch(
        f'{slots_url}/{retired.id}/toggle',
        headers=manager_headers,
    )

    assert response.status_code == 400
    assert 'Старый обед' not in response.json()['detail']



async def test_toggle_and_delete(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    slots_url,
    manager_headers,
):
    table = await make_table(branch, 1, 4)
    booked = await make_slot(branch)
    empty = await make_slot(branch, name='Ужин')
    await make_reservation(booked, future_date, 2, [table])

    toggled = await client.patch(
        f'{slots_url}/{booked.id}/toggle',
        headers=manager_headers,
    )
    refused = await client.delete(
        f'{slots_url}/{booked.id}',
        params={'hard': True},
        headers=manager_headers,
    )
    deleted = await client.delete(
        f'{slots_url}/{empty.id}',
        params={'hard': True},
        headers=manager_headers,
    )
    missing = await client.get(
        f'{slots_url}/{empty.id}',
        headers=manager_headers,
    )

    assert toggled.json()['is_active'] is False
    assert refused.status_code == 400
    assert deleted.status_code == 204
    assert missing.status_code == 404
