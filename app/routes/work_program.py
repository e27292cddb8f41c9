from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user

from app.extensions import supabase
from app.forms import WorkProgramEditForm, WorkProgramForm, form_data
from app.models import Profile, RumahQuran, SubmissionStatus, WorkProgramSubmission, TABLES
from app.services.rumah_quran_service import facility_choices, list_rumah_quran
from app.services.table_api import Eq, Order, active_filter
from app.services.work_program_service import build_submission_payload, new_submission_payload
from app.utils.roles import scope_filter
from app.utils.search import filter_items

work_program_bp = Blueprint('work_program', __name__)

TABLE = TABLES[WorkProgramSubmission]
SEARCH_FIELDS = ('name', 'type', 'submission_status')


def _get_scoped(client, id):
    filters = scope_filter(current_user.profile, active_filter(id=Eq(id)))
    if filters is None:
        return None
    result = client.get(TABLE, filter=filters, single=True)
    if result.error:
        current_app.logger.warning("Gagal memuat program kerja %s: %s", id, result.error)
    return WorkProgramSubmission.from_row(result.data)


def _setup_form(form, client, current_id=None):
    form.rumah_quran_id.choices = facility_choices(
        list_rumah_quran(client).data or [],
        current_user.profile,
        current_id=current_id,
    )
    if request.method == 'GET' and form.rumah_quran_id.data is None:
        form.rumah_quran_id.data = current_user.rumah_quran_id


# =========================================================
# 1. LIST
# =========================================================
@work_program_bp.route('')
@login_required
def index():
    client = supabase.table
    query = (request.args.get('q') or '').strip()
    status_filter = request.args.get('status') or 'all'
    rumah_quran_filter = request.args.get('rumah_quran') or 'all'

    items = []
    filters = scope_filter(current_user.profile, active_filter())
    if filters is None:
        flash('Akun Anda belum terhubung ke Rumah Quran.', 'info')
    else:
        result = client.get(TABLE, filter=filters, order=Order('created_at', ascending=False))
        if result.error:
            flash(str(result.error), 'danger')
        items = WorkProgramSubmission.from_rows(result.data)

    rumah_quran_list = list_rumah_quran(client).data or []
    items = filter_items(
        items, query, SEARCH_FIELDS,
        submission_status=status_filter,
        rumah_quran_id=rumah_quran_filter,
    )

    return render_template(
        'work_program/list.html',
        items=items,
        query=query,
        status_filter=status_filter,
        rumah_quran_filter=rumah_quran_filter,
        status_options=list(SubmissionStatus),
        rumah_quran_list=rumah_quran_list,
        rumah_quran_names={rq.id: rq.label for rq in rumah_quran_list},
        is_master=current_user.is_master,
    )


# =========================================================
# 2. CREATE
# =========================================================
@work_program_bp.route('/create', methods=['GET', 'POST'])
@login_required
def create():
    client = supabase.table
    form = WorkProgramForm()
    _setup_form(form, client)

    if form.validate_on_submit():
        payload = new_submission_payload(form_data(form), current_user.profile)
        result = client.insert(TABLE, payload)
        if result.error:
            flash(str(result.error) or 'Gagal membuat program kerja', 'danger')
        else:
            flash('Pengajuan program kerja berhasil dikirim.', 'success')
            return redirect(url_for('work_program.index'))

    return render_template('work_program/form.html', form=form, title='Pengajuan Program Kerja Baru')


# =========================================================
# 3. VIEW
# =========================================================
@work_program_bp.route('/view/<int:id>')
@login_required
def view(id):
    client = supabase.table
    program = _get_scoped(client, id)
    if program is None:
        flash('Program kerja tidak ditemukan.', 'danger')
        return redirect(url_for('work_program.index'))

    rumah_quran = None
    if program.rumah_quran_id:
        rumah_quran = RumahQuran.from_row(
            client.get(TABLES[RumahQuran], filter={'id': Eq(program.rumah_quran_id)}, single=True).data
        )

    submitter = None
    if program.submitted_by:
        submitter = Profile.from_row(
            client.get(TABLES[Profile], filter={'id': Eq(program.submitted_by)}, single=True).data
        )

    return render_template(
        'work_program/view.html',
        program=program,
        rumah_quran=rumah_quran,
        submitter=submitter,
        is_master=current_user.is_master,
    )


# =========================================================
# 4. EDIT
# =========================================================
@work_program_bp.route('/edit/<int:id>', methods=['GET', 'POST'])
@login_required
def edit(id):
    client = supabase.table
    program = _get_scoped(client, id)
    if program is None:
        flash('Gagal memuat data program kerja.', 'danger')
        return redirect(url_for('work_program.index'))

    form = WorkProgramEditForm(obj=program)
    _setup_form(form, client, current_id=program.rumah_quran_id)

    if form.validate_on_submit():
        payload = build_submission_payload(form_data(form), current_user.profile, existing=program)
        if not current_user.is_master and current_user.rumah_quran_id:
            payload['rumah_quran_id'] = current_user.rumah_quran_id

        result = client.update(TABLE, {'id': Eq(id)}, payload)
        if result.error:
            flash(str(result.error) or 'Gagal memperbarui program kerja', 'danger')
        else:
            flash('Program kerja berhasil diperbarui.', 'success')
            return redirect(url_for('work_program.view', id=id))

    return render_template(
        'work_program/edit.html',
        form=form,
        program=program,
        is_master=current_user.is_master,
        title='Edit Program Kerja',
    )


# =========================================================
# 5. SOFT DELETE
# =========================================================
@work_program_bp.route('/delete/<int:id>', methods=['POST'])
@login_required
def delete(id):
    client = supabase.table
    if _get_scoped(client, id) is None:
        flash('Gagal memuat data program kerja.', 'danger')
        return redirect(url_for('work_program.index'))

    result = client.soft_delete(TABLE, {'id': Eq(id)})
    if result.error:
        flash(str(result.error), 'danger')
    else:
        flash('Program kerja berhasil dihapus.', 'success')
    return redirect(url_for('work_program.index'))
