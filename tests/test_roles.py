from app.models import Profile, UserRole
from app.services.table_api import Eq, IsNull, active_filter
from app.utils.roles import can_access_facility, get_role, parse_role, role_label, scope_filter


def test_parse_role_treats_unknown_text_as_staff():
    assert parse_role('MASTER') is UserRole.MASTER
    assert parse_role(' master ') is UserRole.MASTER
    assert parse_role('ADMIN_RQ') is UserRole.STAFF
    assert parse_role('') is None
    assert parse_role(None) is None


def test_get_role_without_profile():
    assert get_role(None) is None
    assert role_label(None) == '-'
    assert role_label('MASTER') == 'Master'


def test_scope_filter_master_is_unrestricted():
    master = Profile(user_roles='MASTER', rumah_quran_id=1)
    assert scope_filter(master, active_filter()) == {'deleted_at': IsNull()}


def test_scope_filter_staff_is_limited_to_own_facility():
    staff = Profile(user_roles='STAFF', rumah_quran_id=3)
    assert scope_filter(staff, active_filter()) == {'deleted_at': IsNull(), 'rumah_quran_id': Eq(3)}


def test_scope_filter_staff_without_facility_sees_nothing():
    assert scope_filter(Profile(user_roles='STAFF'), active_filter()) is None
    assert scope_filter(None, active_filter()) is None


def test_can_access_facility():
    staff = Profile(user_roles='STAFF', rumah_quran_id=3)
    assert can_access_facility(staff, 3)
    assert not can_access_facility(staff, 4)
    assert can_access_facility(Profile(user_roles='MASTER'), 4)
    assert not can_access_facility(Profile(user_roles='STAFF'), None)
