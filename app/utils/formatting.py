from datetime import date, datetime

from app.models import EnrollmentStatus, SubmissionStatus, parse_timestamp

BULAN_SINGKAT = ['Jan', 'Feb', 'Mar', 'Apr', 'Mei', 'Jun',
                 'Jul', 'Agu', 'Sep', 'Okt', 'Nov', 'Des']

STATUS_BADGE_CLASSES = {
    SubmissionStatus.SUBMITTED: 'warning',
    SubmissionStatus.REVISED: 'info',
    SubmissionStatus.APPROVED: 'success',
    SubmissionStatus.REJECTED: 'danger',
    SubmissionStatus.COMPLETED: 'primary',
}

ENROLLMENT_BADGE_CLASSES = {
    EnrollmentStatus.ACTIVE: 'success',
    EnrollmentStatus.INACTIVE: 'secondary',
    EnrollmentStatus.GRADUATED: 'primary',
    EnrollmentStatus.DROPPED: 'danger',
}


def format_date(value):
    """Format tanggal gaya id-ID: '5 Mar 2025'."""
    if value is None or value == '':
        return '-'
    if not isinstance(value, date):
        value = parse_timestamp(value)
        if value is None:
            return '-'
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day} {BULAN_SINGKAT[value.month - 1]} {value.year}"


def format_currency(value):
    """Format Rupiah tanpa desimal: 'Rp 1.500.000'."""
    if value is None or value == '':
        return '-'
    try:
        amount = round(float(value))
    except (TypeError, ValueError):
        return '-'
    sign = '-' if amount < 0 else ''
    return f"{sign}Rp {abs(amount):,}".replace(',', '.')


def status_label(raw):
    return SubmissionStatus.parse(raw).label


def status_badge(raw):
    return STATUS_BADGE_CLASSES[SubmissionStatus.parse(raw)]


def enrollment_badge(raw):
    try:
        return ENROLLMENT_BADGE_CLASSES[EnrollmentStatus(raw)]
    except ValueError:
        return 'secondary'


def active_label(is_active):
    return 'Active' if is_active else 'Inactive'
