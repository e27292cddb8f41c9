# app/services/santri_import.py
import csv
from datetime import date, datetime
from io import TextIOWrapper
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.models import EnrollmentStatus, GraduationStatus, Santri, TABLES, parse_date
from app.utils.roles import is_master

TABLE = TABLES[Santri]

# Header yang diterima -> kolom tabel santri
HEADER_ALIASES = {
    'name': 'name', 'nama': 'name', 'nama_lengkap': 'name',
    'birthdate': 'birthdate', 'tanggal_lahir': 'birthdate',
    'birthplace': 'birthplace', 'tempat_lahir': 'birthplace',
    'address': 'address', 'alamat': 'address',
    'institution_origin': 'institution_origin', 'sekolah_asal': 'institution_origin',
    'enrollment_status': 'enrollment_status',
    'enrollment_date': 'enrollment_date', 'tanggal_masuk': 'enrollment_date',
    'graduation_status': 'graduation_status',
    'graduation_date': 'graduation_date',
    'rumah_quran_id': 'rumah_quran_id',
}

DATE_COLUMNS = ('birthdate', 'enrollment_date', 'graduation_date')


class UploadError(ValueError):
    """File upload tidak bisa dibaca (encoding salah / bukan workbook)."""


def _cell_text(value):
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    # Excel menyimpan angka bulat sebagai float (2.0 -> "2")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _header_row(cells):
    return [_cell_text(cell) for cell in cells]


def _read_xlsx(file):
    try:
        workbook = load_workbook(file, data_only=True, read_only=True)
    except (BadZipFile, InvalidFileException, KeyError) as exc:
        raise UploadError('File XLSX tidak valid atau rusak.') from exc

    try:
        rows = workbook.active.iter_rows(values_only=True)
        headers = _header_row(next(rows, ()))
        parsed = []
        for line_no, cells in enumerate(rows, start=2):
            cells = tuple(cells or ())
            padded = cells + (None,) * (len(headers) - len(cells))
            parsed.append((line_no, {h: _cell_text(v) for h, v in zip(headers, padded)}))
        return parsed
    finally:
        workbook.close()


def _read_csv(file):
    text = TextIOWrapper(file.stream, encoding='utf-8-sig')
    try:
        reader = csv.DictReader(text)
        return [
            (line_no, {key: _cell_text(value) for key, value in row.items() if key is not None})
            for line_no, row in enumerate(reader, start=2)
        ]
    except UnicodeDecodeError as exc:
        raise UploadError('File CSV harus ber-encoding UTF-8.') from exc
    except csv.Error as exc:
        raise UploadError(f'Format CSV tidak valid: {exc}') from exc
    finally:
        text.detach()


def iter_upload_rows(file):
    """
    Baca CSV / XLSX menjadi list (nomor_baris, dict) mulai baris 2.
    File yang tidak bisa dibaca menghasilkan UploadError.
    """
    if (file.filename or '').lower().endswith('.xlsx'):
        return _read_xlsx(file)
    return _read_csv(file)


def row_to_record(row, profile):
    """Validasi satu baris. Return (record, pesan_error)."""
    record = {}
    for header, value in row.items():
        column = HEADER_ALIASES.get((header or '').strip().lower())
        if column and value not in (None, ''):
            record[column] = value

    if not record.get('name'):
        return None, 'Nama wajib diisi.'

    for column in DATE_COLUMNS:
        if column in record:
            parsed = parse_date(record[column])
            if parsed is None:
                return None, f'Format tanggal {column} tidak valid (YYYY-MM-DD).'
            record[column] = parsed.isoformat()

    enrollment = record.get('enrollment_status', EnrollmentStatus.ACTIVE.value).lower()
    if enrollment not in {s.value for s in EnrollmentStatus}:
        return None, f'enrollment_status "{enrollment}" tidak dikenal.'
    record['enrollment_status'] = enrollment

    graduation = record.get('graduation_status', GraduationStatus.NOT_GRADUATED.value).lower()
    if graduation not in {s.value for s in GraduationStatus}:
        return None, f'graduation_status "{graduation}" tidak dikenal.'
    record['graduation_status'] = graduation

    if is_master(profile):
        if 'rumah_quran_id' in record:
            try:
                record['rumah_quran_id'] = int(record['rumah_quran_id'])
            except ValueError:
                return None, 'rumah_quran_id harus angka.'
    else:
        # Staff hanya boleh mengimpor ke Rumah Quran miliknya
        record['rumah_quran_id'] = getattr(profile, 'rumah_quran_id', None)

    return record, None


def import_santri(client, rows, profile):
    created = 0
    skipped = 0
    errors = []

    for idx, row in rows:
        record, problem = row_to_record(row, profile)
        if problem:
            skipped += 1
            errors.append(f'Baris {idx}: {problem}')
            continue

        result = client.insert(TABLE, record)
        if result.error:
            skipped += 1
            errors.append(f'Baris {idx}: {result.error}')
            continue
        created += 1

    return created, skipped, errors
