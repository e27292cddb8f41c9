import time

import pytest

from app.models import Profile, UserRole
from app.services.auth_client import AuthClient, AuthError, AuthSession
from app.services.session_manager import SESSION_STORAGE_KEY, AuthEvent, SessionManager
from supabase_fake import FakeBackend


@pytest.fixture()
def backend():
    fake = FakeBackend()
    fake.add_user('master@rq.id', 'secret', 'uuid-master', name='Ustadz Master', user_roles='MASTER')
    return fake


def make_manager(backend, storage=None, loader=None):
    auth = AuthClient('https://project.test', 'anon-key', http=backend, timeout=5)

    def load(user_id, token):
        assert token == f'token-{user_id}'
        return Profile(id=1, auth_user_id=user_id, name='Ustadz Master', user_roles='MASTER')

    return SessionManager(auth, loader or load, storage if storage is not None else {})


def test_sign_in_stores_session_and_resolves_profile_first(backend):
    storage = {}
    manager = make_manager(backend, storage)
    seen = []
    manager.subscribe(lambda event, session: seen.append((event, manager.role)))

    session = manager.sign_in('master@rq.id', 'secret')

    assert session.user_id == 'uuid-master'
    assert storage[SESSION_STORAGE_KEY]['access_token'] == 'token-uuid-master'
    # Listener lain sudah melihat profil hasil resolve
    assert seen == [(AuthEvent.SIGNED_IN, UserRole.MASTER)]
    assert manager.is_master
    assert manager.user_name == 'Ustadz Master'


def test_wrong_password_raises_auth_error(backend):
    manager = make_manager(backend)

    with pytest.raises(AuthError) as excinfo:
        manager.sign_in('master@rq.id', 'salah')

    assert excinfo.value.message == 'Invalid login credentials'
    assert not manager.is_authenticated


def test_profile_failure_degrades_to_no_profile(backend):
    def broken(user_id, token):
        raise RuntimeError('profiles unreachable')

    manager = make_manager(backend, loader=broken)
    manager.sign_in('master@rq.id', 'secret')

    assert manager.is_authenticated
    assert manager.profile is None
    assert manager.role is None
    assert not manager.is_master
    assert manager.user_name == 'master@rq.id'


def test_initialize_restores_stored_session(backend):
    stored = AuthSession('token-uuid-master', 'refresh-uuid-master',
                         expires_at=int(time.time()) + 3600,
                         user_id='uuid-master', email='master@rq.id')
    manager = make_manager(backend, {SESSION_STORAGE_KEY: stored.to_dict()})
    seen = []
    manager.subscribe(lambda event, session: seen.append(event))

    manager.initialize()
    manager.initialize()

    assert seen == [AuthEvent.INITIAL_SESSION]
    assert manager.profile.auth_user_id == 'uuid-master'
    assert manager.access_token() == 'token-uuid-master'
    assert backend.calls == []


def test_initialize_refreshes_expired_session(backend):
    expired = AuthSession('old-token', 'refresh-uuid-master', expires_at=int(time.time()) - 10,
                          user_id='uuid-master', email='master@rq.id')
    storage = {SESSION_STORAGE_KEY: expired.to_dict()}
    manager = make_manager(backend, storage)
    seen = []
    manager.subscribe(lambda event, session: seen.append(event))

    manager.initialize()

    assert seen == [AuthEvent.TOKEN_REFRESHED]
    assert manager.session.access_token == 'token-uuid-master'
    assert storage[SESSION_STORAGE_KEY]['access_token'] == 'token-uuid-master'
    assert backend.last['json'] == {'refresh_token': 'refresh-uuid-master'}


def test_failed_refresh_signs_out(backend):
    expired = AuthSession('old-token', 'revoked', expires_at=int(time.time()) - 10,
                          user_id='uuid-master', email='master@rq.id')
    storage = {SESSION_STORAGE_KEY: expired.to_dict()}
    manager = make_manager(backend, storage)
    seen = []
    manager.subscribe(lambda event, session: seen.append((event, session)))

    manager.initialize()

    assert seen == [(AuthEvent.SIGNED_OUT, None)]
    assert not manager.is_authenticated
    assert SESSION_STORAGE_KEY not in storage
    assert manager.access_token() is None


def test_sign_out_clears_storage_even_if_server_rejects(backend):
    storage = {}
    manager = make_manager(backend, storage)
    manager.sign_in('master@rq.id', 'secret')
    backend.fail_next(401, {'msg': 'invalid JWT'})

    manager.sign_out()

    assert backend.last['url'] == 'https://project.test/auth/v1/logout'
    assert backend.last['headers']['Authorization'] == 'Bearer token-uuid-master'
    assert SESSION_STORAGE_KEY not in storage
    assert manager.profile is None


def test_unsubscribe_and_listener_errors(backend):
    manager = make_manager(backend)
    seen = []

    def noisy(event, session):
        raise ValueError('listener rusak')

    manager.subscribe(noisy)
    unsubscribe = manager.subscribe(lambda event, session: seen.append(event))
    unsubscribe()

    manager.sign_in('master@rq.id', 'secret')

    assert seen == []
    assert manager.is_master


def test_session_expiry_uses_leeway():
    session = AuthSession('t', expires_at=1000)
    assert session.is_expired(now=950)
    assert not session.is_expired(now=900)
    assert not AuthSession('t').is_expired()
