# app/services/rumah_quran_service.py
import logging
import re

from app.models import RumahQuran, TABLES
from app.services.table_api import ApiError, ApiResult, Order, active_filter
from app.utils.roles import is_master

logger = logging.getLogger(__name__)

TABLE = TABLES[RumahQuran]
CODE_PATTERN = re.compile(r'RQ-(\d+)')

# Kolom yang boleh diisi dari form (code tidak termasuk: immutable)
EDITABLE_FIELDS = ('name', 'address', 'location', 'is_active')


def format_code(number):
    return f"RQ-{number:03d}"


def next_code(codes):
    """Ambil angka terbesar dari pola RQ-<NNN> lalu tambah satu."""
    highest = 0
    for code in codes or []:
        match = CODE_PATTERN.search(code or '')
        if match:
            highest = max(highest, int(match.group(1)))
    return format_code(highest + 1)


def generate_code(client):
    """
    Baca semua kode yang pernah ada (termasuk yang sudah di-soft-delete,
    agar kode lama tidak dipakai ulang) lalu hitung kode berikutnya.
    """
    result = client.get(TABLE, select='code', order=Order('code', ascending=False))
    if result.error:
        return ApiResult(error=result.error)
    codes = [row.get('code') for row in result.data or []]
    return ApiResult(data=next_code(codes))


def create_rumah_quran(client, data, retries=3):
    """
    Insert Rumah Quran dengan kode otomatis.

    Kode dihitung ulang jika insert bentrok dengan unique constraint di
    server (HTTP 409 / 23505), maksimal ``retries`` kali percobaan ulang.
    """
    payload = {key: data.get(key) for key in EDITABLE_FIELDS if key in data}
    payload.setdefault('is_active', True)

    last_error = None
    for attempt in range(retries + 1):
        generated = generate_code(client)
        if generated.error:
            return generated

        payload['code'] = generated.data
        result = client.insert(TABLE, payload)
        if not result.error:
            return result

        last_error = result.error
        if not last_error.is_conflict:
            return result

        logger.warning(
            "Kode %s bentrok (percobaan %s/%s), generate ulang",
            payload['code'], attempt + 1, retries + 1,
        )

    return ApiResult(error=ApiError(
        f"Gagal membuat kode Rumah Quran unik: {last_error}",
        status=last_error.status, code=last_error.code,
    ))


def update_payload(data):
    """Patch untuk edit: field 'code' selalu dibuang."""
    return {key: data.get(key) for key in EDITABLE_FIELDS if key in data}


def list_rumah_quran(client):
    """List Rumah Quran yang belum dihapus, urut nama."""
    result = client.get(TABLE, filter=active_filter(), order=Order('name'))
    if result.error:
        return result
    return ApiResult(data=RumahQuran.from_rows(result.data))


def facility_choices(rumah_quran_list, profile, current_id=None, blank_label='- Pilih Rumah Quran -'):
    """
    Pilihan dropdown: hanya Rumah Quran aktif, staff hanya miliknya.

    ``current_id`` (Rumah Quran record yang sedang diedit) selalu ikut
    walau sudah nonaktif, agar record lama tetap bisa disimpan.
    """
    own_id = getattr(profile, 'rumah_quran_id', None)
    choices = [('', blank_label)]
    for rq in rumah_quran_list:
        if not rq.is_active and rq.id != current_id:
            continue
        if is_master(profile) or rq.id == own_id:
            label = rq.label if rq.is_active else f"{rq.label} (nonaktif)"
            choices.append((rq.id, label))

    if current_id and current_id not in {value for value, _ in choices}:
        choices.append((current_id, f"Rumah Quran #{current_id} (nonaktif)"))
    return choices
