from datetime import date
from io import BytesIO

import pytest
from openpyxl import Workbook
from werkzeug.datastructures import FileStorage

from app.models import Profile
from app.services.santri_import import UploadError, import_santri, iter_upload_rows, row_to_record
from app.services.table_api import TableClient
from supabase_fake import FakeBackend

MASTER = Profile(id=1, user_roles='MASTER', rumah_quran_id=1)
STAFF = Profile(id=2, user_roles='STAFF', rumah_quran_id=2)


def csv_upload(text, filename='santri.csv'):
    return FileStorage(stream=BytesIO(text.encode('utf-8')), filename=filename)


def test_iter_csv_rows_start_at_line_two():
    upload = csv_upload('nama,tanggal_lahir,sekolah_asal\nAhmad , 2012-05-01,SDN 1\nFatimah,,\n')

    rows = iter_upload_rows(upload)

    assert rows[0] == (2, {'nama': 'Ahmad', 'tanggal_lahir': '2012-05-01', 'sekolah_asal': 'SDN 1'})
    assert rows[1][0] == 3


def test_iter_xlsx_rows_normalizes_cells():
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(['name', 'birthdate', 'rumah_quran_id'])
    sheet.append(['Zaid', date(2011, 1, 2), 2])
    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)

    rows = iter_upload_rows(FileStorage(stream=buffer, filename='Santri.XLSX'))

    assert rows == [(2, {'name': 'Zaid', 'birthdate': '2011-01-02', 'rumah_quran_id': '2'})]


def test_row_to_record_validates():
    record, problem = row_to_record({'Nama': 'Ahmad', 'tanggal_lahir': '2012-05-01'}, MASTER)
    assert problem is None
    assert record == {
        'name': 'Ahmad',
        'birthdate': '2012-05-01',
        'enrollment_status': 'active',
        'graduation_status': 'not_graduated',
    }

    assert row_to_record({'nama': ''}, MASTER) == (None, 'Nama wajib diisi.')
    assert row_to_record({'nama': 'A', 'tanggal_lahir': '01/05/2012'}, MASTER)[0] is None
    assert row_to_record({'nama': 'A', 'enrollment_status': 'cuti'}, MASTER)[0] is None


def test_staff_rows_are_pinned_to_own_facility():
    record, _ = row_to_record({'nama': 'Ahmad', 'rumah_quran_id': '1'}, STAFF)
    assert record['rumah_quran_id'] == 2


def test_import_counts_created_and_skipped():
    backend = FakeBackend()
    client = TableClient('https://project.test', 'anon-key', 'rumah_quran', http=backend)
    rows = [
        (2, {'nama': 'Ahmad', 'rumah_quran_id': '1'}),
        (3, {'nama': ''}),
        (4, {'nama': 'Fatimah', 'rumah_quran_id': 'satu'}),
    ]

    created, skipped, errors = import_santri(client, rows, MASTER)

    assert (created, skipped) == (1, 2)
    assert errors[0] == 'Baris 3: Nama wajib diisi.'
    assert errors[1].startswith('Baris 4:')
    assert backend.rows('santri')[0]['name'] == 'Ahmad'
    assert backend.rows('santri')[0]['rumah_quran_id'] == 1


def test_non_utf8_csv_is_rejected():
    upload = FileStorage(stream=BytesIO('nama\nJos\xe9\n'.encode('latin-1')), filename='santri.csv')

    with pytest.raises(UploadError) as excinfo:
        iter_upload_rows(upload)

    assert 'UTF-8' in str(excinfo.value)


def test_broken_xlsx_is_rejected():
    upload = FileStorage(stream=BytesIO(b'not a zip'), filename='santri.xlsx')

    with pytest.raises(UploadError) as excinfo:
        iter_upload_rows(upload)

    assert 'XLSX' in str(excinfo.value)


def test_xlsx_short_rows_are_padded():
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(['nama', 'alamat'])
    sheet.append(['Bilal'])
    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)

    rows = iter_upload_rows(FileStorage(stream=buffer, filename='santri.xlsx'))

    assert rows == [(2, {'nama': 'Bilal', 'alamat': ''})]
