from app.models import UserRole
from app.services.table_api import Eq


ROLE_LABELS = {
    UserRole.MASTER: 'Master',
    UserRole.STAFF: 'Staff',
}


def parse_role(raw):
    """Kolom user_roles berupa teks bebas; selain MASTER dianggap staff."""
    if not raw:
        return None

    if isinstance(raw, UserRole):
        return raw

    if isinstance(raw, str):
        normalized = raw.strip()
        if not normalized:
            return None

        for role in UserRole:
            if normalized.upper() == role.value:
                return role

        return UserRole.STAFF

    return None


def get_role(profile):
    if profile is None:
        return None
    return parse_role(getattr(profile, 'user_roles', None))


def is_master(profile):
    return get_role(profile) == UserRole.MASTER


def role_label(role):
    parsed = parse_role(role)
    if not parsed:
        return '-'
    return ROLE_LABELS.get(parsed, parsed.value.title())


def scope_filter(profile, base=None):
    """
    Filter list Santri / Work Program sesuai role.

    MASTER: tanpa batasan Rumah Quran.
    Non-MASTER: dibatasi ke rumah_quran_id miliknya. Jika belum punya
    Rumah Quran, kembalikan None (tidak boleh melihat data apa pun).

    Ini hanya kenyamanan UI; batas keamanan sebenarnya adalah policy
    row-level di sisi server.
    """
    result = dict(base or {})
    if is_master(profile):
        return result

    facility_id = getattr(profile, 'rumah_quran_id', None)
    if not facility_id:
        return None

    result['rumah_quran_id'] = Eq(facility_id)
    return result


def can_access_facility(profile, rumah_quran_id):
    if is_master(profile):
        return True
    own = getattr(profile, 'rumah_quran_id', None)
    return bool(own) and own == rumah_quran_id
