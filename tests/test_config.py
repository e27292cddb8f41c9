import pytest

from app import create_app
from config import ConfigurationError, TestConfig, validate_config


class MissingKeyConfig(TestConfig):
    SUPABASE_ANON_KEY = ''


def test_validate_config_lists_missing_keys():
    with pytest.raises(ConfigurationError) as excinfo:
        validate_config({'REQUIRED_KEYS': ('SUPABASE_URL', 'SUPABASE_ANON_KEY'), 'SUPABASE_URL': ''})

    assert 'SUPABASE_URL' in str(excinfo.value)
    assert 'SUPABASE_ANON_KEY' in str(excinfo.value)


def test_app_refuses_to_start_without_credentials():
    with pytest.raises(ConfigurationError):
        create_app(MissingKeyConfig)


def test_app_registers_gateway(app):
    assert 'supabase' in app.extensions
    assert app.config['SUPABASE_SCHEMA'] == 'rumah_quran'
