import pytest

from app import create_app
from config import TestConfig
from supabase_fake import FakeBackend


MASTER_ID = 'uuid-master'
STAFF_ID = 'uuid-staff'


@pytest.fixture()
def backend():
    fake = FakeBackend()
    fake.seed('rumah_quran', {'code': 'RQ-001', 'name': 'RQ Al-Falah', 'location': 'Bogor', 'is_active': True})
    fake.seed('rumah_quran', {'code': 'RQ-002', 'name': 'RQ An-Nur', 'location': 'Depok', 'is_active': True})
    fake.add_user('master@rq.id', 'secret', MASTER_ID, name='Ustadz Master', user_roles='MASTER', rumah_quran_id=1)
    fake.add_user('staff@rq.id', 'secret', STAFF_ID, name='Staff Depok', user_roles='STAFF', rumah_quran_id=2)
    return fake


@pytest.fixture()
def app(backend):
    app = create_app(TestConfig)
    app.extensions['supabase'].http = backend
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def login(client, email, password='secret'):
    return client.post('/login', data={'email': email, 'password': password}, follow_redirects=False)


@pytest.fixture()
def master_client(client):
    login(client, 'master@rq.id')
    return client


@pytest.fixture()
def staff_client(client):
    login(client, 'staff@rq.id')
    return client
