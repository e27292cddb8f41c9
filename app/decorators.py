from functools import wraps
from flask import abort, flash, redirect, url_for
from flask_login import current_user
from app.models import UserRole
from app.utils.roles import get_role


def role_required(*roles, fallback_endpoint=None):
    """
    Decorator untuk membatasi akses berdasarkan Role.
    Penggunaan: @role_required(UserRole.MASTER, fallback_endpoint='rumah_quran.index')

    Jika fallback_endpoint diisi, user dialihkan ke sana (bukan 403).
    """
    def wrapper(fn):
        @wraps(fn)
        def decorated_view(*args, **kwargs):
            if not current_user.is_authenticated:
                return abort(401)
            if get_role(current_user.profile) not in roles:
                if fallback_endpoint:
                    flash('Akses ditolak: halaman ini khusus role MASTER.', 'warning')
                    return redirect(url_for(fallback_endpoint))
                return abort(403) # Forbidden
            return fn(*args, **kwargs)
        return decorated_view
    return wrapper


def master_required(fallback_endpoint):
    return role_required(UserRole.MASTER, fallback_endpoint=fallback_endpoint)
