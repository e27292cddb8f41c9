from dataclasses import dataclass, field, fields
from datetime import date, datetime
import enum
from typing import Any, Dict, Optional

from flask_login import UserMixin


# ==========================================
# 0. SOFT DELETE LIFECYCLE
# ==========================================
class Lifecycle(enum.Enum):
    ACTIVE = "active"
    DELETED = "deleted"


def parse_timestamp(value):
    """Ubah string ISO dari API menjadi datetime (atau None)."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if not text:
        return None
    # Python < 3.11 tidak menerima akhiran 'Z'
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_date(value):
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    parsed = parse_timestamp(value)
    if parsed is not None:
        return parsed.date()
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


# ==========================================
# 1. ENUMS
# ==========================================
class UserRole(enum.Enum):
    MASTER = "MASTER"
    STAFF = "STAFF"


class SubmissionStatus(enum.Enum):
    SUBMITTED = "submitted"
    REVISED = "revised"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

    @property
    def label(self):
        return self.value.upper()

    @classmethod
    def parse(cls, raw, default=None):
        """Status di luar himpunan tertutup jatuh ke default (submitted)."""
        fallback = default or cls.SUBMITTED
        if isinstance(raw, cls):
            return raw
        if not raw:
            return fallback
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return fallback


class EnrollmentStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"
    DROPPED = "dropped"

    @property
    def label(self):
        return self.value.title()


class GraduationStatus(enum.Enum):
    NOT_GRADUATED = "not_graduated"
    GRADUATED = "graduated"
    DROPPED_OUT = "dropped_out"

    @property
    def label(self):
        return self.value.replace('_', ' ').title()


# ==========================================
# 2. BASE RECORD
# ==========================================
@dataclass
class BaseRecord:
    """
    Representasi baris dari hosted table API.
    Semua entitas punya timestamp dan soft delete (deleted_at).
    """
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    _timestamp_fields = ('created_at', 'updated_at', 'deleted_at')
    _date_fields = ()

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]):
        if row is None:
            return None
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in row.items() if k in known}
        for name in cls._timestamp_fields:
            if name in values:
                values[name] = parse_timestamp(values[name])
        for name in cls._date_fields:
            if name in values:
                values[name] = parse_date(values[name])
        return cls(**values)

    @classmethod
    def from_rows(cls, rows):
        return [cls.from_row(row) for row in rows or []]

    @property
    def lifecycle(self):
        return Lifecycle.DELETED if self.deleted_at is not None else Lifecycle.ACTIVE

    @property
    def is_deleted(self):
        return self.lifecycle is Lifecycle.DELETED


# ==========================================
# 3. ENTITIES
# ==========================================
@dataclass
class Profile(BaseRecord):
    auth_user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    user_roles: Optional[str] = None
    position: Optional[str] = None
    is_active: Optional[bool] = None
    last_login: Optional[datetime] = None
    rumah_quran_id: Optional[int] = None
    birthdate: Optional[date] = None
    birthplace: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None

    _timestamp_fields = ('created_at', 'updated_at', 'deleted_at', 'last_login')
    _date_fields = ('birthdate',)

    @property
    def display_name(self):
        return self.name or self.email


@dataclass
class RumahQuran(BaseRecord):
    code: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    is_active: Optional[bool] = None

    @property
    def label(self):
        return f"{self.code} - {self.name}"


@dataclass
class Santri(BaseRecord):
    name: Optional[str] = None
    birthdate: Optional[date] = None
    birthplace: Optional[str] = None
    address: Optional[str] = None
    rumah_quran_id: Optional[int] = None
    institution_origin: Optional[str] = None
    enrollment_status: Optional[str] = None
    enrollment_date: Optional[date] = None
    graduation_status: Optional[str] = None
    graduation_date: Optional[date] = None

    _date_fields = ('birthdate', 'enrollment_date', 'graduation_date')


@dataclass
class WorkProgramSubmission(BaseRecord):
    submitted_by: Optional[int] = None
    rumah_quran_id: Optional[int] = None
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    estimated_audience_number: Optional[int] = None
    actual_audience_number: Optional[int] = None
    submitted_start_date: Optional[date] = None
    submitted_end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    submitted_duration: Optional[int] = None
    actual_duration: Optional[int] = None
    submitted_cost: Optional[float] = None
    approved_cost: Optional[float] = None
    submission_status: Optional[str] = field(default=SubmissionStatus.SUBMITTED.value)
    is_verified_by_director: Optional[bool] = False

    _date_fields = (
        'submitted_start_date', 'submitted_end_date',
        'actual_start_date', 'actual_end_date',
    )

    @property
    def status(self):
        return SubmissionStatus.parse(self.submission_status)


# Nama tabel di schema hosted API
TABLES = {
    Profile: 'profiles',
    RumahQuran: 'rumah_quran',
    Santri: 'santri',
    WorkProgramSubmission: 'work_program_submission',
}


# ==========================================
# 4. LOGGED-IN PRINCIPAL (FLASK-LOGIN)
# ==========================================
class CurrentUser(UserMixin):
    """Pembungkus sesi + profil untuk Flask-Login (current_user)."""

    def __init__(self, session, profile=None):
        self.session = session
        self.profile = profile

    def get_id(self):
        return self.session.user_id

    @property
    def email(self):
        return self.session.email

    @property
    def display_name(self):
        if self.profile is not None and self.profile.display_name:
            return self.profile.display_name
        return self.session.email

    @property
    def rumah_quran_id(self):
        return self.profile.rumah_quran_id if self.profile is not None else None

    @property
    def is_master(self):
        from app.utils.roles import is_master
        return is_master(self.profile)
