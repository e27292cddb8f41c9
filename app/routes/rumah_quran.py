from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user

from app.decorators import master_required
from app.extensions import supabase
from app.forms import RumahQuranForm, form_data
from app.models import RumahQuran, TABLES
from app.services import rumah_quran_service
from app.services.table_api import Eq, Order, active_filter
from app.utils.roles import can_access_facility
from app.utils.search import filter_items

rumah_quran_bp = Blueprint('rumah_quran', __name__)

TABLE = TABLES[RumahQuran]
SEARCH_FIELDS = ('code', 'name', 'location', 'address')


def _get_or_none(client, id):
    result = client.get(TABLE, filter=active_filter(id=Eq(id)), single=True)
    if result.error:
        current_app.logger.warning("Gagal memuat Rumah Quran %s: %s", id, result.error)
    return RumahQuran.from_row(result.data)


# =========================================================
# 1. LIST
# =========================================================
@rumah_quran_bp.route('')
@login_required
def index():
    query = (request.args.get('q') or '').strip()
    status = (request.args.get('status') or 'all').strip().lower()

    result = supabase.table.get(TABLE, filter=active_filter(), order=Order('code'))
    if result.error:
        flash(str(result.error), 'danger')

    items = RumahQuran.from_rows(result.data)
    items = filter_items(items, query, SEARCH_FIELDS)
    if status in ('active', 'inactive'):
        wanted = status == 'active'
        items = [rq for rq in items if bool(rq.is_active) == wanted]

    return render_template(
        'rumah_quran/list.html',
        items=items,
        query=query,
        status=status,
        is_master=current_user.is_master,
    )


# =========================================================
# 2. CREATE (MASTER)
# =========================================================
@rumah_quran_bp.route('/create', methods=['GET', 'POST'])
@login_required
@master_required('rumah_quran.index')
def create():
    form = RumahQuranForm()
    client = supabase.table

    if form.validate_on_submit():
        result = rumah_quran_service.create_rumah_quran(
            client,
            form_data(form),
            retries=current_app.config.get('RUMAH_QURAN_CODE_RETRIES', 3),
        )
        if result.error:
            flash(str(result.error) or 'Gagal membuat Rumah Quran', 'danger')
        else:
            code = (result.data or {}).get('code')
            flash(f'Rumah Quran {code} berhasil dibuat.', 'success')
            return redirect(url_for('rumah_quran.index'))

    # Kode hanya pratinjau; kode final dihitung ulang saat insert
    preview = rumah_quran_service.generate_code(client)
    if preview.error:
        current_app.logger.warning("Gagal generate kode Rumah Quran: %s", preview.error)

    return render_template(
        'rumah_quran/form.html',
        form=form,
        code=preview.data,
        title='Tambah Rumah Quran',
    )


# =========================================================
# 3. EDIT (kode tidak bisa diubah)
# =========================================================
@rumah_quran_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    client = supabase.table
    rumah_quran = _get_or_none(client, id)
    if rumah_quran is None:
        flash('Gagal memuat data Rumah Quran.', 'danger')
        return redirect(url_for('rumah_quran.index'))

    if not can_access_facility(current_user.profile, rumah_quran.id):
        flash('Akses ditolak: Anda hanya dapat mengubah Rumah Quran Anda sendiri.', 'warning')
        return redirect(url_for('rumah_quran.index'))

    form = RumahQuranForm(obj=rumah_quran)
    if form.validate_on_submit():
        result = client.update(
            TABLE,
            {'id': Eq(id)},
            rumah_quran_service.update_payload(form_data(form)),
        )
        if result.error:
            flash(str(result.error) or 'Gagal memperbarui Rumah Quran', 'danger')
        else:
            flash('Data Rumah Quran berhasil diperbarui.', 'success')
            return redirect(url_for('rumah_quran.index'))

    return render_template(
        'rumah_quran/form.html',
        form=form,
        code=rumah_quran.code,
        rumah_quran=rumah_quran,
        title='Edit Rumah Quran',
    )


# =========================================================
# 4. SOFT DELETE (MASTER)
# =========================================================
@rumah_quran_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
@master_required('rumah_quran.index')
def delete(id):
    result = supabase.table.soft_delete(TABLE, {'id': Eq(id)})
    if result.error:
        flash(str(result.error), 'danger')
    else:
        flash('Rumah Quran berhasil dihapus.', 'success')
    return redirect(url_for('rumah_quran.index'))
