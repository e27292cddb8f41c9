import os
from dotenv import load_dotenv

# Muat variabel dari file .env (untuk di laptop)
load_dotenv()


class ConfigurationError(RuntimeError):
    """Konfigurasi wajib tidak tersedia saat aplikasi dinyalakan."""


class Config:
    # 1. SECRET KEY
    # Tambahkan 'or ...' sebagai cadangan agar tidak error jika lupa set env
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'kunci-rahasia-default-jika-lupa'

    # 2. HOSTED API (BAGIAN KRUSIAL)
    # URL project dan anon key WAJIB ada, tanpa ini aplikasi tidak bisa jalan
    SUPABASE_URL = (os.environ.get('SUPABASE_URL') or '').rstrip('/')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY') or ''

    # Schema tabel (Accept-Profile / Content-Profile)
    SUPABASE_SCHEMA = os.environ.get('SUPABASE_SCHEMA') or 'rumah_quran'

    # Batas waktu tiap request HTTP (detik)
    SUPABASE_TIMEOUT = float(os.environ.get('SUPABASE_TIMEOUT') or 15)

    # 3. APLIKASI
    # Berapa kali generate ulang kode RQ jika bentrok (unique constraint)
    RUMAH_QURAN_CODE_RETRIES = int(os.environ.get('RUMAH_QURAN_CODE_RETRIES') or 3)

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    REQUIRED_KEYS = ('SUPABASE_URL', 'SUPABASE_ANON_KEY')


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test-secret'
    SUPABASE_URL = 'https://project.test'
    SUPABASE_ANON_KEY = 'anon-key'
    SUPABASE_SCHEMA = 'rumah_quran'
    SUPABASE_TIMEOUT = 5


def validate_config(config):
    """Gagal keras jika URL / key hosted API kosong."""
    missing = [key for key in config.get('REQUIRED_KEYS', ()) if not config.get(key)]
    if missing:
        raise ConfigurationError(
            f"Konfigurasi wajib belum diset: {', '.join(missing)}"
        )
