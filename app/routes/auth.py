from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_user, logout_user, current_user, login_required
from app.extensions import supabase
from app.forms import LoginForm
from app.models import CurrentUser
from app.services.auth_client import AuthError
from app.utils.security import is_safe_url


auth_bp = Blueprint('auth', __name__)


# --- ROUTE LOGIN ----
@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    form = LoginForm()
    if form.validate_on_submit():
        manager = supabase.session_manager
        try:
            auth_session = manager.sign_in(form.email.data.strip(), form.password.data)
        except AuthError as exc:
            # Kredensial salah ditampilkan langsung di form login
            flash(exc.message or 'Login gagal.', 'danger')
            return render_template('auth/login.html', title='Login', form=form)

        login_user(CurrentUser(auth_session, manager.profile))
        if manager.profile is None:
            current_app.logger.warning("User %s login tanpa profil", auth_session.user_id)

        next_page = request.args.get('next')
        if is_safe_url(next_page):
            return redirect(next_page)

        return redirect(url_for('main.dashboard'))

    return render_template('auth/login.html', title='Login', form=form)


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    supabase.session_manager.initialize().sign_out()
    logout_user()
    flash('Anda telah keluar.', 'info')
    return redirect(url_for('auth.login'))
