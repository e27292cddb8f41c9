from flask import Blueprint, render_template, current_app
from flask_login import login_required, current_user

from app.extensions import supabase
from app.models import Profile, RumahQuran, WorkProgramSubmission, TABLES
from app.services.table_api import Eq, Order, active_filter
from app.services.work_program_service import summarize
from app.utils.roles import scope_filter

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
@main_bp.route('/dashboard')
@login_required
def dashboard():
    """
    Dashboard dengan kartu statistik sesuai role.

    MASTER: statistik lintas Rumah Quran + daftar staff di Rumah Quran miliknya.
    Staff : kartu Rumah Quran miliknya + statistik program (terbatas ke RQ sendiri).
    """
    client = supabase.table
    profile = current_user.profile
    is_master = current_user.is_master

    stats = {
        'total_rumah_quran': 0,
        'active_rumah_quran': 0,
        'total_programs': 0,
        'pending_submissions': 0,
        'approved_programs': 0,
        'total_users': 0,
    }
    recent_programs = []
    assigned_rumah_quran = None
    staff_list = []
    rumah_quran_names = {}

    # 1. Data program (umum untuk semua role)
    program_filter = scope_filter(profile, active_filter())
    if program_filter is not None:
        result = client.get(TABLES[WorkProgramSubmission], filter=program_filter)
        if result.error:
            current_app.logger.warning("Dashboard: gagal memuat program: %s", result.error)
        programs = WorkProgramSubmission.from_rows(result.data)
        summary = summarize(programs)
        stats['total_programs'] = summary['total']
        stats['pending_submissions'] = summary['pending']
        stats['approved_programs'] = summary['approved']

        recent = client.get(
            TABLES[WorkProgramSubmission],
            filter=program_filter,
            order=Order('created_at', ascending=False),
            limit=5,
        )
        recent_programs = WorkProgramSubmission.from_rows(recent.data)

    # 2. Data khusus role
    own_rq_id = current_user.rumah_quran_id
    if is_master:
        rq_result = client.get(TABLES[RumahQuran], filter=active_filter())
        rumah_quran = RumahQuran.from_rows(rq_result.data)
        users = Profile.from_rows(client.get(TABLES[Profile], filter=active_filter()).data)

        stats['total_rumah_quran'] = len(rumah_quran)
        stats['active_rumah_quran'] = sum(1 for rq in rumah_quran if rq.is_active is True)
        stats['total_users'] = len(users)
        rumah_quran_names = {rq.id: rq.label for rq in rumah_quran}

        if own_rq_id:
            assigned_rumah_quran = next((rq for rq in rumah_quran if rq.id == own_rq_id), None)
            staff_list = [u for u in users if u.rumah_quran_id == own_rq_id]
    elif own_rq_id:
        rq_result = client.get(
            TABLES[RumahQuran],
            filter=active_filter(id=Eq(own_rq_id)),
            single=True,
        )
        assigned_rumah_quran = RumahQuran.from_row(rq_result.data)
        if assigned_rumah_quran is not None:
            rumah_quran_names = {assigned_rumah_quran.id: assigned_rumah_quran.label}

    return render_template(
        'dashboard.html',
        stats=stats,
        is_master=is_master,
        recent_programs=recent_programs,
        assigned_rumah_quran=assigned_rumah_quran,
        staff_list=staff_list,
        rumah_quran_names=rumah_quran_names,
    )


@main_bp.route('/settings')
@login_required
def settings():
    return render_template('settings.html', profile=current_user.profile)
