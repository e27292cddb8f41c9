import logging

from flask import Flask, redirect, url_for
from config import Config, validate_config
from app.extensions import login_manager, csrf, supabase


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # 0. Validasi konfigurasi (gagal keras jika URL / key kosong)
    validate_config(app.config)
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # 1. Init Extensions
    login_manager.init_app(app)
    csrf.init_app(app)
    supabase.init_app(app)

    # 2. Context Processor (helper format untuk template)
    @app.context_processor
    def inject_helpers():
        from datetime import datetime
        from app.utils import formatting
        from app.utils.roles import role_label
        return {
            'datetime': datetime,
            'format_date': formatting.format_date,
            'format_currency': formatting.format_currency,
            'status_label': formatting.status_label,
            'status_badge': formatting.status_badge,
            'enrollment_badge': formatting.enrollment_badge,
            'active_label': formatting.active_label,
            'role_label': role_label,
        }

    # 3. User Loader (Wajib untuk Flask-Login)
    from app import models

    @login_manager.user_loader
    def load_user(user_id):
        manager = supabase.session_manager.initialize()
        current = manager.session
        if current is None or current.user_id != user_id:
            return None
        return models.CurrentUser(current, manager.profile)

    # 4. Halaman yang tidak dikenal -> kembali ke beranda
    @app.errorhandler(404)
    def not_found(error):
        return redirect(url_for('main.dashboard'))

    # 5. Registrasi Blueprint
    from app.routes.auth import auth_bp
    from app.routes.main import main_bp
    from app.routes.rumah_quran import rumah_quran_bp
    from app.routes.santri import santri_bp
    from app.routes.work_program import work_program_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(rumah_quran_bp, url_prefix='/rumah-quran')
    app.register_blueprint(santri_bp, url_prefix='/santri')
    app.register_blueprint(work_program_bp, url_prefix='/work-program')

    return app
