import pytest

from localbase import NotFoundError, StorageError, UserNotFoundError


async def add_admin(client):
    await client.from_('users').insert({'name': 'Admin Sistema', 'email': 'admin@cheforg.com'})


@pytest.mark.asyncio
async def test_sign_in_accepts_any_password_for_known_email(client):
    await add_admin(client)

    for password in ('right', 'wrong', ''):
        response = await client.auth.sign_in_with_password('admin@cheforg.com', password)
        assert response.ok
        assert response.data['user']['id'] == 1
        assert response.data['user']['email'] == 'admin@cheforg.com'

    session = response.data['session']
    assert session['token_type'] == 'bearer'
    assert session['user'] == response.data['user']
    assert len(session['access_token']) == 32


@pytest.mark.asyncio
async def test_sign_in_unknown_email_fails_without_session(client):
    await add_admin(client)

    response = await client.auth.sign_in_with_password('nobody@cheforg.com', 'secret')

    assert isinstance(response.error, UserNotFoundError)
    assert isinstance(response.error, NotFoundError)
    assert (await client.auth.get_session()).data == {'session': None}
    assert (await client.auth.get_user()).data == {'user': None}


@pytest.mark.asyncio
async def test_session_lifecycle(client):
    await add_admin(client)
    signed_in = await client.auth.sign_in_with_password('admin@cheforg.com', 'x')

    session = await client.auth.get_session()
    user = await client.auth.get_user()
    assert session.data['session']['access_token'] == signed_in.data['session']['access_token']
    assert user.data['user']['name'] == 'Admin Sistema'

    signed_out = await client.auth.sign_out()
    assert signed_out.ok
    assert signed_out.data == {}
    assert (await client.auth.get_session()).data == {'session': None}
    assert (await client.auth.get_user()).data == {'user': None}


@pytest.mark.asyncio
async def test_sign_out_when_signed_out(client):
    response = await client.auth.sign_out()
    assert response.ok


@pytest.mark.asyncio
async def test_session_is_not_a_collection(client):
    await add_admin(client)
    await client.auth.sign_in_with_password('admin@cheforg.com', 'x')
    assert client.collections() == ['users']


@pytest.mark.asyncio
async def test_failed_session_write_rolls_back_current_user(client, storage, monkeypatch):
    await add_admin(client)
    real_write = storage.write

    def failing_write(key, data):
        if key.endswith('auth_session'):
            raise StorageError("quota exceeded")
        real_write(key, data)

    monkeypatch.setattr(storage, 'write', failing_write)
    response = await client.auth.sign_in_with_password('admin@cheforg.com', 'x')

    assert response.error.code == 'storage_error'
    assert storage.read('cheforg_current_user') is None
    assert (await client.auth.get_user()).data == {'user': None}


@pytest.mark.asyncio
async def test_unreadable_session_reads_as_signed_out(client, storage):
    storage.write('cheforg_auth_session', b'not json')
    response = await client.auth.get_session()
    assert response.ok
    assert response.data == {'session': None}
