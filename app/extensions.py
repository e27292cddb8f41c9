from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

from app.services.gateway import SupabaseGateway

login_manager = LoginManager()
login_manager.login_view = 'auth.login' # Jika belum login, lempar ke sini
login_manager.login_message = 'Silakan login terlebih dahulu.'
login_manager.login_message_category = 'info'
csrf = CSRFProtect()
supabase = SupabaseGateway()
