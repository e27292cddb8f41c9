# app/services/work_program_service.py
import math
from datetime import date, datetime

from app.models import SubmissionStatus, parse_date
from app.utils.roles import is_master

PROGRAM_TYPES = [
    "Kajian Rutin",
    "Kajian Umum",
    "Tahsin",
    "Tahfidz",
    "Kegiatan Sosial",
    "Pelatihan",
    "Seminar",
    "Workshop",
    "Lainnya",
]

# Hanya MASTER yang boleh mengisi kolom ini
MASTER_ONLY_FIELDS = ('approved_cost', 'is_verified_by_director')

EDITABLE_FIELDS = (
    'rumah_quran_id', 'name', 'type', 'description',
    'estimated_audience_number', 'actual_audience_number',
    'submitted_start_date', 'submitted_end_date',
    'actual_start_date', 'actual_end_date',
    'submitted_cost', 'approved_cost',
    'submission_status', 'is_verified_by_director',
)

DATE_FIELDS = (
    'submitted_start_date', 'submitted_end_date',
    'actual_start_date', 'actual_end_date',
)
INT_FIELDS = ('rumah_quran_id', 'estimated_audience_number', 'actual_audience_number')
FLOAT_FIELDS = ('submitted_cost', 'approved_cost')


def _to_datetime(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    parsed = parse_date(value)
    if parsed is None:
        return None
    return datetime(parsed.year, parsed.month, parsed.day)


def compute_duration(start, end):
    """Durasi (hari) = ceil((end - start) / 1 hari) + 1; None jika salah satu kosong."""
    start_dt = _to_datetime(start)
    end_dt = _to_datetime(end)
    if start_dt is None or end_dt is None:
        return None
    days = (end_dt - start_dt).total_seconds() / 86400
    return math.ceil(days) + 1


def _coerce(value, caster):
    if value is None or value == '':
        return None
    try:
        return caster(value)
    except (TypeError, ValueError):
        return None


def _iso(value):
    if value is None or value == '':
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def build_submission_payload(form_data, profile, existing=None):
    """
    Susun payload insert/update dari data form.

    - durasi diturunkan dari pasangan tanggal (tidak pernah diinput manual)
    - status dipaksa masuk himpunan tertutup
    - kolom khusus MASTER dibuang jika editor bukan MASTER
    """
    payload = {}
    for key in EDITABLE_FIELDS:
        if key in form_data:
            payload[key] = form_data[key]

    for key in DATE_FIELDS:
        if key in payload:
            payload[key] = _iso(payload[key])
    for key in INT_FIELDS:
        if key in payload:
            payload[key] = _coerce(payload[key], int)
    for key in FLOAT_FIELDS:
        if key in payload:
            payload[key] = _coerce(payload[key], float)

    for key in ('name', 'type', 'description'):
        if key in payload:
            payload[key] = payload[key] or None

    fallback = existing.status if existing is not None else SubmissionStatus.SUBMITTED
    payload['submission_status'] = SubmissionStatus.parse(
        payload.get('submission_status'), default=fallback
    ).value

    merged = {}
    if existing is not None:
        for key in DATE_FIELDS:
            merged[key] = _iso(getattr(existing, key, None))
    merged.update({k: payload[k] for k in DATE_FIELDS if k in payload})

    payload['submitted_duration'] = compute_duration(
        merged.get('submitted_start_date'), merged.get('submitted_end_date')
    )
    payload['actual_duration'] = compute_duration(
        merged.get('actual_start_date'), merged.get('actual_end_date')
    )

    if not is_master(profile):
        for key in MASTER_ONLY_FIELDS:
            payload.pop(key, None)
    elif 'is_verified_by_director' in payload:
        payload['is_verified_by_director'] = bool(payload['is_verified_by_director'])

    return payload


def new_submission_payload(form_data, profile):
    payload = build_submission_payload(form_data, profile)
    payload['submitted_by'] = getattr(profile, 'id', None)
    # Non-MASTER selalu mengajukan untuk Rumah Quran miliknya sendiri
    if not is_master(profile) and getattr(profile, 'rumah_quran_id', None):
        payload['rumah_quran_id'] = profile.rumah_quran_id
    payload.setdefault('submission_status', SubmissionStatus.SUBMITTED.value)
    if is_master(profile):
        payload.setdefault('is_verified_by_director', False)
    return payload


def summarize(programs):
    programs = list(programs or [])
    return {
        'total': len(programs),
        'pending': sum(1 for p in programs if p.status == SubmissionStatus.SUBMITTED),
        'approved': sum(1 for p in programs if p.status == SubmissionStatus.APPROVED),
    }
