from app.models import Profile, RumahQuran
from app.services import rumah_quran_service
from app.services.table_api import TableClient
from supabase_fake import FakeBackend, FakeResponse


def make_client(backend):
    return TableClient('https://project.test', 'anon-key', 'rumah_quran', http=backend)


def test_next_code_takes_highest_number():
    assert rumah_quran_service.next_code(['RQ-001', 'RQ-007']) == 'RQ-008'
    assert rumah_quran_service.next_code(['RQ-010', 'RQ-002']) == 'RQ-011'


def test_next_code_on_empty_table():
    assert rumah_quran_service.next_code([]) == 'RQ-001'
    assert rumah_quran_service.next_code([None, 'LAMA']) == 'RQ-001'


def test_generate_code_counts_soft_deleted_rows():
    backend = FakeBackend()
    backend.seed('rumah_quran', {'code': 'RQ-001', 'name': 'A'})
    backend.seed('rumah_quran', {'code': 'RQ-004', 'name': 'B', 'deleted_at': '2025-02-01T00:00:00+00:00'})

    result = rumah_quran_service.generate_code(make_client(backend))

    assert result.data == 'RQ-005'
    assert ('deleted_at', 'is.null') not in backend.last['params']


def test_create_assigns_code_and_defaults_active():
    backend = FakeBackend()
    backend.seed('rumah_quran', {'code': 'RQ-001', 'name': 'A'})

    result = rumah_quran_service.create_rumah_quran(
        make_client(backend), {'name': 'Test Center', 'location': 'Jakarta', 'code': 'RQ-999'}
    )

    assert result.ok
    assert result.data['code'] == 'RQ-002'
    assert result.data['is_active'] is True
    assert result.data['location'] == 'Jakarta'


class RacingBackend(FakeBackend):
    """Request lain menyisipkan kode yang sama tepat sebelum insert pertama."""

    def __init__(self):
        super().__init__()
        self.raced = False

    def _rest(self, method, table, params, body):
        if method == 'POST' and not self.raced:
            self.raced = True
            self.seed(table, {'code': body['code'], 'name': 'Tab lain'})
        return super()._rest(method, table, params, body)


def test_create_regenerates_code_on_conflict():
    backend = RacingBackend()
    backend.seed('rumah_quran', {'code': 'RQ-001', 'name': 'A'})

    result = rumah_quran_service.create_rumah_quran(make_client(backend), {'name': 'Test Center'})

    assert result.ok
    assert result.data['code'] == 'RQ-003'
    codes = sorted(row['code'] for row in backend.rows('rumah_quran'))
    assert codes == ['RQ-001', 'RQ-002', 'RQ-003']


class AlwaysConflict(FakeBackend):
    def _rest(self, method, table, params, body):
        if method == 'POST':
            return FakeResponse(409, {'code': '23505', 'message': 'duplicate key value'})
        return super()._rest(method, table, params, body)


def test_create_gives_up_after_retries():
    backend = AlwaysConflict()

    result = rumah_quran_service.create_rumah_quran(make_client(backend), {'name': 'X'}, retries=2)

    assert result.error is not None
    assert result.error.is_conflict
    assert 'Gagal membuat kode Rumah Quran unik' in result.error.message
    assert sum(1 for call in backend.calls if call['method'] == 'POST') == 3


def test_non_conflict_error_is_not_retried():
    backend = FakeBackend()
    backend.fail_next(200, [])
    backend.fail_next(403, {'message': 'permission denied for table rumah_quran'})

    result = rumah_quran_service.create_rumah_quran(make_client(backend), {'name': 'X'})

    assert result.error.status == 403
    assert len(backend.calls) == 2


def test_update_payload_never_touches_code():
    patch = rumah_quran_service.update_payload({'code': 'RQ-100', 'name': 'Baru', 'is_active': False})
    assert patch == {'name': 'Baru', 'is_active': False}


def test_facility_choices_by_role():
    items = [
        RumahQuran(id=1, code='RQ-001', name='A', is_active=True),
        RumahQuran(id=2, code='RQ-002', name='B', is_active=True),
    ]
    master = Profile(user_roles='MASTER', rumah_quran_id=1)
    staff = Profile(user_roles='STAFF', rumah_quran_id=2)

    assert [value for value, _ in rumah_quran_service.facility_choices(items, master)] == ['', 1, 2]
    assert rumah_quran_service.facility_choices(items, staff)[1:] == [(2, 'RQ-002 - B')]


def test_facility_choices_keep_current_inactive_facility():
    items = [
        RumahQuran(id=1, code='RQ-001', name='A', is_active=True),
        RumahQuran(id=2, code='RQ-002', name='B', is_active=False),
    ]
    master = Profile(user_roles='MASTER')
    staff = Profile(user_roles='STAFF', rumah_quran_id=2)

    # Form baru: Rumah Quran nonaktif tidak bisa dipilih
    assert [value for value, _ in rumah_quran_service.facility_choices(items, master)] == ['', 1]
    assert rumah_quran_service.facility_choices(items, staff) == [('', '- Pilih Rumah Quran -')]

    # Edit: Rumah Quran record tetap tersedia
    assert rumah_quran_service.facility_choices(items, staff, current_id=2)[1:] == [(2, 'RQ-002 - B (nonaktif)')]
    assert [value for value, _ in rumah_quran_service.facility_choices(items, master, current_id=2)] == ['', 1, 2]


def test_facility_choices_fall_back_for_deleted_facility():
    choices = rumah_quran_service.facility_choices([], Profile(user_roles='MASTER'), current_id=9)
    assert choices[-1] == (9, 'Rumah Quran #9 (nonaktif)')
