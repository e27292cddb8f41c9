# app/services/gateway.py
"""
Extension Flask yang merangkai AuthClient, SessionManager dan TableClient
untuk setiap request.

SessionManager dibuat sekali per request (disimpan di ``g``) dengan Flask
session (cookie tertandatangan) sebagai storage sesi login.
"""
import logging

import requests
from flask import current_app, g, session

from app.models import Profile, TABLES
from app.services.auth_client import AuthClient
from app.services.session_manager import SessionManager
from app.services.table_api import Eq, TableClient, active_filter

logger = logging.getLogger(__name__)


class SupabaseGateway:
    def __init__(self, app=None):
        self.http = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.http = requests.Session()
        app.extensions['supabase'] = self
        app.teardown_appcontext(self._teardown)

    # --- FACTORIES ---
    def _settings(self):
        config = current_app.config
        return (
            config['SUPABASE_URL'],
            config['SUPABASE_ANON_KEY'],
            config['SUPABASE_SCHEMA'],
            config.get('SUPABASE_TIMEOUT'),
        )

    def make_table_client(self, token_provider=None):
        url, key, schema, timeout = self._settings()
        return TableClient(url, key, schema, token_provider=token_provider,
                           http=self.http, timeout=timeout)

    def make_auth_client(self):
        url, key, _, timeout = self._settings()
        return AuthClient(url, key, http=self.http, timeout=timeout)

    def load_profile(self, user_id, access_token):
        """Ambil profil berdasarkan auth_user_id memakai token sesi itu sendiri."""
        client = self.make_table_client(token_provider=lambda: access_token)
        result = client.get(
            TABLES[Profile],
            filter=active_filter(auth_user_id=Eq(user_id)),
            single=True,
        )
        if result.error:
            raise result.error
        return Profile.from_row(result.data)

    # --- PER REQUEST ---
    @property
    def session_manager(self) -> SessionManager:
        manager = g.get('session_manager')
        if manager is None:
            manager = SessionManager(self.make_auth_client(), self.load_profile, session)
            g.session_manager = manager
        return manager

    @property
    def table(self) -> TableClient:
        client = g.get('table_client')
        if client is None:
            client = self.make_table_client(token_provider=self.session_manager.initialize().access_token)
            g.table_client = client
        return client

    def _teardown(self, exc):
        manager = g.pop('session_manager', None)
        if manager is not None:
            manager.teardown()
        g.pop('table_client', None)
