from datetime import time, timedelta
from uuid import uuid4

from restaurant_pos.services.schedule import day_of_week
from restaurant_pos.utils.enums import ReservationStatus


async def test_guest_reservation_gets_table(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
    sent_notifications,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)

    response = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 3),
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data['auto_assigned'] is True
    assert data['message'] == 'Бронирование подтверждено, столы назначены'
    assert data['assignment']['table_ids'] == [str(table.id)]
    assert data['assignment']['assignment_type'] == 'shared_pool'
    reservation = data['reservation']
    assert reservation['status'] == 'CONFIRMED'
    assert reservation['created_by'] == 'WEB'
    assert [item['id'] for item in reservation['tables']] == [str(table.id)]
    assert len(sent_notifications) == 1
    assert sent_notifications[0]['emails'] == ['guest@example.com']


async def test_staff_reservation_records_author(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
    employee,
    employee_headers,
):
    await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)

    response = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 2),
        headers=employee_headers,
    )

    assert response.status_code == 201, response.text
    assert response.json()['reservation']['created_by'] == employee.username


async def test_no_capacity_leaves_reservation_pending(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
):
    await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    payload = reservation_payload(branch, time_slot, future_date, 2)

    first = await client.post('/reservations/', json=payload)
    second = await client.post('/reservations/', json=payload)

    assert first.json()['reservation']['status'] == 'CONFIRMED'
    data = second.json()
    assert second.status_code == 201
    assert data['auto_assigned'] is False
    assert data['assignment'] is None
    assert data['reservation']['status'] == 'PENDING'
    assert data['reservation']['tables'] == []
    assert data['message'] == (
        'Бронирование создано и ожидает назначения столов'
    )


async def test_auto_assign_can_be_disabled(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
):
    await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)

    response = await client.post(
        '/reservations/',
        json=reservation_payload(
            branch,
            time_slot,
            future_date,
            2,
            auto_assign_tables=False,
        ),
    )

    assert response.json()['reservation']['status'] == 'PENDING'


async def test_shared_table_is_filled_by_several_parties(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
):
    shared = await make_table(branch, 1, 10, is_shared=True)
    time_slot = await make_slot(branch)

    first = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 4),
    )
    second = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 6),
    )
    third = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 1),
    )

    assert first.json()['assignment']['assignment_type'] == 'shared_table'
    assert first.json()['assignment']['is_shared_table_only'] is True
    assert second.json()['assignment']['table_ids'] == [str(shared.id)]
    assert second.json()['assignment']['assignment_type'] == 'size_match'
    assert third.json()['auto_assigned'] is False


async def test_past_date_is_rejected(
    client,
    branch,
    make_table,
    make_slot,
    today,
    reservation_payload,
):
    time_slot = await make_slot(branch)

    response = await client.post(
        '/reservations/',
        json=reservation_payload(
            branch,
            time_slot,
            today - timedelta(days=1),
            2,
        ),
    )

    assert response.status_code == 400
    assert response.json()['detail'] == 'Нельзя бронировать на прошедшие даты'


async def test_slot_not_running_that_day(
    client,
    branch,
    make_slot,
    future_date,
    reservation_payload,
):
    other_day = day_of_week(future_date + timedelta(days=1)).value
    time_slot = await make_slot(branch, days=[other_day])

    response = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 2),
    )

    assert response.status_code == 400


async def test_unknown_slot_returns_404(
    client,
    branch,
    make_slot,
    future_date,
    reservation_payload,
):
    time_slot = await make_slot(branch)
    payload = reservation_payload(branch, time_slot, future_date, 2)
    payload['time_slot_id'] = str(uuid4())

    response = await client.post('/reservations/', json=payload)

    assert response.status_code == 404
    assert response.json() == {
        'code': 404,
        'detail': 'Временной слот не найден',
    }


async def test_invalid_party_size(
    client,
    branch,
    make_slot,
    future_date,
    reservation_payload,
):
    time_slot = await make_slot(branch)

    response = await client.post(
        '/reservations/',
        json=reservation_payload(branch, time_slot, future_date, 0),
    )

    assert response.status_code == 422


async def test_list_requires_staff(client):
    response = await client.get('/reservations/')

    assert response.status_code == 401


async def test_manual_assignment(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    employee_headers,
):
    busy = await make_table(branch, 1, 4)
    free = await make_table(branch, 2, 2)
    spare = await make_table(branch, 3, 2)
    time_slot = await make_slot(branch)
    await make_reservation(time_slot, future_date, 2, [busy])
    pending = await make_reservation(
        time_slot,
        future_date,
        4,
        status=ReservationStatus.PENDING,
    )
    url = f'/reservations/{pending.id}/tables'

    conflict = await client.put(
        url,
        json={'table_ids': [str(busy.id)]},
        headers=employee_headers,
    )
    too_small = await client.put(
        url,
        json={'table_ids': [str(free.id)]},
        headers=employee_headers,
    )
    assigned = await client.put(
        url,
        json={'table_ids': [str(free.id), str(spare.id)]},
        headers=employee_headers,
    )

    assert conflict.status_code == 409
    assert conflict.json()['detail'] == 'Стол №1 занят'
    assert too_small.status_code == 409
    assert assigned.status_code == 200, assigned.text
    data = assigned.json()
    assert data['status'] == 'CONFIRMED'
    assert {item['id'] for item in data['tables']} == {
        str(free.id),
        str(spare.id),
    }


async def test_cancel_frees_table(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    reservation_payload,
    employee_headers,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    payload = reservation_payload(branch, time_slot, future_date, 2)
    created = await client.post('/reservations/', json=payload)
    reservation_id = created.json()['reservation']['id']

    canceled = await client.post(
        f'/reservations/{reservation_id}/cancel',
        headers=employee_headers,
    )
    again = await client.post('/reservations/', json=payload)
    reopen = await client.patch(
        f'/reservations/{reservation_id}/status',
        json={'status': 'CONFIRMED'},
        headers=employee_headers,
    )

    assert canceled.json()['status'] == 'CANCELED'
    assert again.json()['assignment']['table_ids'] == [str(table.id)]
    assert reopen.status_code == 400


async def test_reschedule_checks_assigned_tables(
    client,
    branch,
    make_table,
    make_slot,
    make_reservation,
    future_date,
    employee_headers,
):
    table = await make_table(branch, 1, 4)
    lunch = await make_slot(branch)
    dinner = await make_slot(branch, start=time(18), end=time(22))
    await make_reservation(dinner, future_date, 2, [table])
    reservation = await make_reservation(lunch, future_date, 2, [table])

    moved = await client.patch(
        f'/reservations/{reservation.id}',
        json={'time_slot_id': str(dinner.id)},
        headers=employee_headers,
    )
    grown = await client.patch(
        f'/reservations/{reservation.id}',
        json={'people': 4},
        headers=employee_headers,
    )
    renamed = await client.patch(
        f'/reservations/{reservation.id}',
        json={'customer_name': 'Пётр Иванов'},
        headers=employee_headers,
    )

    assert moved.status_code == 409
    assert grown.status_code == 200, grown.text
    assert grown.json()['people'] == 4
    assert renamed.json()['customer_name'] == 'Пётр Иванов'


async def test_preview_does_not_save(
    client,
    branch,
    make_table,
    make_slot,
    future_date,
    employee_headers,
):
    table = await make_table(branch, 1, 4)
    time_slot = await make_slot(branch)
    body = {
        'branch_id': str(branch.id),
        'date': future_date.isoformat(),
        'time_slot_id': str(time_slot.id),
        'party_size': 4,
    }

    first = await client.post(
        '/reservations/assignment/preview',
        json=body,
        headers=employee_headers,
    )
    second = await client.post(
        '/reservations/assignment/preview',
        json=body,
        headers=employee_headers,
    )

    assert first.json() == second.json()
    assert first.json()['success'] is True
    assert first.json()['data']['table_ids'] == [str(table.id)]
