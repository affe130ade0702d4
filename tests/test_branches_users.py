async def test_admin_creates_branch(client, admin_headers):
    response = await client.post(
        '/branches/',
        json={
            'name': 'Набережная',
            'address': 'наб. Реки, 5',
            'timezone': 'Europe/Moscow',
        },
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    assert response.json()['timezone'] == 'Europe/Moscow'


async def test_branch_name_is_unique(client, branch, admin_headers):
    response = await client.post(
        '/branches/',
        json={'name': branch.name, 'address': 'ул. Мира, 2'},
        headers=admin_headers,
    )

    assert response.status_code == 400


async def test_branch_name_is_unique_ignoring_case(client, admin_headers):
    first = await client.post(
        '/branches/',
        json={'name': 'Loft', 'address': 'ул. Мира, 2'},
        headers=admin_headers,
    )
    second = await client.post(
        '/branches/',
        json={'name': 'LOFT', 'address': 'ул. Мира, 4'},
        headers=admin_headers,
    )

    assert first.status_code == 201, first.text
    assert second.status_code == 400
    assert second.json()['detail'] == (
        'Филиал с таким названием уже существует'
    )


async def test_rename_to_taken_name_is_rejected(
    client,
    branch,
    admin_headers,
):
    created = await client.post(
        '/branches/',
        json={'name': 'Вокзал', 'address': 'пл. Вокзальная'},
        headers=admin_headers,
    )

    response = await client.patch(
        f'/branches/{created.json()["id"]}',
        json={'name': branch.name},
        headers=admin_headers,
    )

    assert response.status_code == 400



async def test_unknown_timezone_is_rejected(client, admin_headers):
    response = await client.post(
        '/branches/',
        json={'name': 'Вокзал', 'address': 'пл. Вокзальная', 'timezone': 'X'},
        headers=admin_headers,
    )

    assert response.status_code == 422


async def test_manager_cannot_create_branch(client, manager_headers):
    response = await client.post(
        '/branches/',
        json={'name': 'Вокзал', 'address': 'пл. Вокзальная'},
        headers=manager_headers,
    )

    assert response.status_code == 403


async def test_login_and_me(client, employee):
    login = await client.post(
        '/auth/login',
        json={'login': employee.email, 'password': 'Passw0rd!'},
    )
    token = login.json()['access_token']

    me = await client.get(
        '/users/me',
        headers={'Authorization': f'Bearer {token}'},
    )

    assert me.status_code == 200
    assert me.json()['username'] == employee.username
    assert me.json()['role'] == 0


async def test_wrong_password(client, employee):
    response = await client.post(
        '/auth/login',
        json={'login': employee.username, 'password': 'Wrong_pass1'},
    )

    assert response.status_code == 401


async def test_admin_creates_manager(client, admin_headers):
    response = await client.post(
        '/users/',
        json={
            'username': 'new_manager',
            'phone': '+79995554433',
            'password': 'Strong_pass1',
            'role': 1,
        },
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    assert response.json()['role'] == 1
