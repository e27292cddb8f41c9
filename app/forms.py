from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, FileRequired

from wtforms import (
    StringField,
    PasswordField,
    BooleanField,
    SelectField,
    DateField,
    TextAreaField,
    IntegerField,
    DecimalField,
    SubmitField,
)

from wtforms.validators import (
    DataRequired,
    Optional,
    Email,
    Length,
    NumberRange,
    ValidationError,
)

from app.models import EnrollmentStatus, GraduationStatus, SubmissionStatus
from app.services.work_program_service import PROGRAM_TYPES


def _optional_int(value):
    if value in (None, '', 'None'):
        return None
    return int(value)


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
    submit = SubmitField('Login')


class RumahQuranForm(FlaskForm):
    # Kode dibuat otomatis (RQ-001, RQ-002, ...) dan hanya ditampilkan
    name = StringField('Nama Rumah Quran', validators=[DataRequired(), Length(max=150)])
    location = StringField('Lokasi', validators=[Optional(), Length(max=150)])
    address = TextAreaField('Alamat', validators=[Optional()])
    is_active = BooleanField('Aktif', default=True)
    submit = SubmitField('Simpan')


class SantriForm(FlaskForm):
    name = StringField('Nama Lengkap', validators=[DataRequired(), Length(max=150)])
    birthdate = DateField('Tanggal Lahir', format='%Y-%m-%d', validators=[Optional()])
    birthplace = StringField('Tempat Lahir', validators=[Optional()])
    address = TextAreaField('Alamat', validators=[Optional()])
    # Pilihan diisi dinamis di route
    rumah_quran_id = SelectField('Rumah Quran', coerce=_optional_int, validators=[Optional()])
    institution_origin = StringField('Sekolah Asal', validators=[Optional()])
    enrollment_status = SelectField(
        'Status Keanggotaan',
        choices=[(s.value, s.label) for s in EnrollmentStatus],
        default=EnrollmentStatus.ACTIVE.value,
    )
    enrollment_date = DateField('Tanggal Masuk', format='%Y-%m-%d', validators=[Optional()])
    graduation_status = SelectField(
        'Status Kelulusan',
        choices=[(s.value, s.label) for s in GraduationStatus],
        default=GraduationStatus.NOT_GRADUATED.value,
    )
    graduation_date = DateField('Tanggal Lulus', format='%Y-%m-%d', validators=[Optional()])
    submit = SubmitField('Simpan Data Santri')


class SantriImportForm(FlaskForm):
    file = FileField('File CSV / XLSX', validators=[
        FileRequired(message='File belum dipilih.'),
        FileAllowed(['csv', 'xlsx'], 'Format file harus CSV atau XLSX.'),
    ])
    submit = SubmitField('Upload')


class WorkProgramForm(FlaskForm):
    name = StringField('Nama Program', validators=[DataRequired(), Length(max=200)])
    type = SelectField(
        'Jenis Program',
        choices=[('', 'Pilih jenis')] + [(t, t) for t in PROGRAM_TYPES],
        validators=[DataRequired()],
    )
    rumah_quran_id = SelectField('Rumah Quran', coerce=_optional_int, validators=[DataRequired()])
    description = TextAreaField('Deskripsi', validators=[Optional()])

    submitted_start_date = DateField('Tanggal Mulai', format='%Y-%m-%d', validators=[DataRequired()])
    submitted_end_date = DateField('Tanggal Selesai', format='%Y-%m-%d', validators=[DataRequired()])

    estimated_audience_number = IntegerField('Perkiraan Peserta', validators=[Optional(), NumberRange(min=0)])
    submitted_cost = DecimalField('Anggaran Diajukan (IDR)', places=0, validators=[Optional(), NumberRange(min=0)])

    submit = SubmitField('Simpan')

    def validate_submitted_end_date(self, field):
        start = self.submitted_start_date.data
        if start and field.data and field.data < start:
            raise ValidationError('Tanggal selesai tidak boleh sebelum tanggal mulai.')


class WorkProgramEditForm(WorkProgramForm):
    actual_start_date = DateField('Tanggal Mulai Realisasi', format='%Y-%m-%d', validators=[Optional()])
    actual_end_date = DateField('Tanggal Selesai Realisasi', format='%Y-%m-%d', validators=[Optional()])
    actual_audience_number = IntegerField('Jumlah Peserta Realisasi', validators=[Optional(), NumberRange(min=0)])
    submission_status = SelectField(
        'Status Pengajuan',
        choices=[(s.value, s.label) for s in SubmissionStatus],
        default=SubmissionStatus.SUBMITTED.value,
    )

    # Khusus MASTER (dibuang dari payload untuk role lain)
    approved_cost = DecimalField('Anggaran Disetujui (IDR)', places=0, validators=[Optional(), NumberRange(min=0)])
    is_verified_by_director = BooleanField('Diverifikasi Direktur')

    def validate_actual_end_date(self, field):
        start = self.actual_start_date.data
        if start and field.data and field.data < start:
            raise ValidationError('Tanggal selesai realisasi tidak boleh sebelum tanggal mulai.')


def form_data(form, exclude=('submit', 'csrf_token')):
    """Ambil data semua field form sebagai dict (untuk payload API)."""
    return {
        name: field.data
        for name, field in form._fields.items()
        if name not in exclude
    }
