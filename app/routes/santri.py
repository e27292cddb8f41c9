# app/routes/santri.py

from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user

from app.extensions import supabase
from app.forms import SantriForm, SantriImportForm, form_data
from app.models import EnrollmentStatus, Santri, TABLES
from app.services.rumah_quran_service import facility_choices, list_rumah_quran
from app.services.santri_import import UploadError, import_santri, iter_upload_rows
from app.services.table_api import Eq, Order, active_filter
from app.utils.roles import scope_filter
from app.utils.search import filter_items

santri_bp = Blueprint('santri', __name__)

TABLE = TABLES[Santri]
SEARCH_FIELDS = ('name', 'birthplace', 'institution_origin')
DATE_FIELDS = ('birthdate', 'enrollment_date', 'graduation_date')


def _payload(form):
    data = form_data(form)
    for key in DATE_FIELDS:
        data[key] = data[key].isoformat() if data.get(key) else None
    for key in ('birthplace', 'address', 'institution_origin'):
        data[key] = data.get(key) or None

    profile = current_user.profile
    if not current_user.is_master:
        # Staff hanya mengelola santri di Rumah Quran miliknya
        data['rumah_quran_id'] = getattr(profile, 'rumah_quran_id', None)
    return data


def _setup_form(form, rumah_quran_list, current_id=None):
    form.rumah_quran_id.choices = facility_choices(rumah_quran_list, current_user.profile, current_id=current_id)
    if request.method == 'GET' and form.rumah_quran_id.data is None and not current_user.is_master:
        form.rumah_quran_id.data = current_user.rumah_quran_id


def _get_scoped(client, id):
    filters = scope_filter(current_user.profile, active_filter(id=Eq(id)))
    if filters is None:
        return None
    result = client.get(TABLE, filter=filters, single=True)
    if result.error:
        current_app.logger.warning("Gagal memuat santri %s: %s", id, result.error)
    return Santri.from_row(result.data)


# =========================================================
# 1. LIST (dibatasi Rumah Quran untuk non-MASTER)
# =========================================================
@santri_bp.route('')
@login_required
def index():
    client = supabase.table
    query = (request.args.get('q') or '').strip()
    rumah_quran_filter = request.args.get('rumah_quran') or 'all'
    enrollment_filter = request.args.get('enrollment') or 'all'

    items = []
    filters = scope_filter(current_user.profile, active_filter())
    if filters is None:
        flash('Akun Anda belum terhubung ke Rumah Quran.', 'info')
    else:
        result = client.get(TABLE, filter=filters, order=Order('name'))
        if result.error:
            flash(str(result.error), 'danger')
        items = Santri.from_rows(result.data)

    rumah_quran_list = list_rumah_quran(client).data or []
    items = filter_items(
        items, query, SEARCH_FIELDS,
        rumah_quran_id=rumah_quran_filter,
        enrollment_status=enrollment_filter,
    )

    return render_template(
        'santri/list.html',
        items=items,
        query=query,
        rumah_quran_filter=rumah_quran_filter,
        enrollment_filter=enrollment_filter,
        enrollment_options=list(EnrollmentStatus),
        rumah_quran_list=rumah_quran_list,
        rumah_quran_names={rq.id: rq.label for rq in rumah_quran_list},
        is_master=current_user.is_master,
    )


# =========================================================
# 2. CREATE
# =========================================================
@santri_bp.route('/create', methods=['GET', 'POST'])
@login_required
def create():
    client = supabase.table
    form = SantriForm()
    _setup_form(form, list_rumah_quran(client).data or [])

    if form.validate_on_submit():
        result = client.insert(TABLE, _payload(form))
        if result.error:
            flash(str(result.error), 'danger')
        else:
            flash('Data santri berhasil ditambahkan.', 'success')
            return redirect(url_for('santri.index'))

    return render_template('santri/form.html', form=form, title='Tambah Santri')


# =========================================================
# 3. EDIT
# =========================================================
@santri_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    client = supabase.table
    santri = _get_scoped(client, id)
    if santri is None:
        flash('Gagal memuat data santri.', 'danger')
        return redirect(url_for('santri.index'))

    form = SantriForm(obj=santri)
    _setup_form(form, list_rumah_quran(client).data or [], current_id=santri.rumah_quran_id)

    if form.validate_on_submit():
        result = client.update(TABLE, {'id': Eq(id)}, _payload(form))
        if result.error:
            flash(str(result.error), 'danger')
        else:
            flash('Data santri berhasil diperbarui.', 'success')
            return redirect(url_for('santri.index'))

    return render_template('santri/form.html', form=form, santri=santri, title='Edit Santri')


# =========================================================
# 4. SOFT DELETE
# =========================================================
@santri_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete(id):
    client = supabase.table
    if _get_scoped(client, id) is None:
        flash('Gagal memuat data santri.', 'danger')
        return redirect(url_for('santri.index'))

    result = client.soft_delete(TABLE, {'id': Eq(id)})
    if result.error:
        flash(str(result.error), 'danger')
    else:
        flash('Data santri berhasil dihapus.', 'success')
    return redirect(url_for('santri.index'))


# =========================================================
# 5. IMPORT CSV / XLSX
# =========================================================
@santri_bp.route('/import', methods=['GET', 'POST'])
@login_required
def upload():
    form = SantriImportForm()
    if form.validate_on_submit():
        try:
            rows = iter_upload_rows(form.file.data)
        except UploadError as exc:
            current_app.logger.warning("Import santri ditolak: %s", exc.__cause__ or exc)
            flash(str(exc), 'danger')
            return render_template('santri/import.html', form=form)

        created, skipped, errors = import_santri(supabase.table, rows, current_user.profile)

        flash(f'Import santri selesai. Berhasil: {created}, Dilewati: {skipped}.', 'success')
        if errors:
            flash('Contoh error: ' + '; '.join(errors[:3]), 'warning')
        return redirect(url_for('santri.index'))

    for error in form.file.errors:
        flash(error, 'warning')
    return render_template('santri/import.html', form=form)
