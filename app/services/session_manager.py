# app/services/session_manager.py
"""
Session Manager: pemilik tunggal sesi login + profil turunannya.

Siklus hidup eksplisit:
    initialize()  -> baca sesi tersimpan, refresh jika kadaluarsa, muat profil
    sign_in / sign_out / refresh -> ubah sesi, kabari subscriber
    teardown()    -> lepas semua subscriber

Profil selalu di-resolve ulang oleh listener internal yang didaftarkan
paling awal, sehingga subscriber lain selalu melihat profil terbaru.
"""
import enum
import logging
from typing import Callable, List, MutableMapping, Optional

from app.models import Profile, UserRole
from app.services.auth_client import AuthClient, AuthError, AuthSession
from app.utils.roles import is_master

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = 'auth_session'


class AuthEvent(enum.Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


Listener = Callable[[AuthEvent, Optional[AuthSession]], None]
ProfileLoader = Callable[[str, str], Optional[Profile]]


class SessionManager:
    def __init__(self, auth_client: AuthClient, profile_loader: ProfileLoader,
                 storage: MutableMapping):
        self.auth_client = auth_client
        self.profile_loader = profile_loader
        self.storage = storage
        self._session: Optional[AuthSession] = None
        self._profile: Optional[Profile] = None
        self._listeners: List[Listener] = []
        self._initialized = False
        self.subscribe(self._resolve_profile)

    # --- STATE ---
    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def is_authenticated(self):
        return self._session is not None

    @property
    def is_master(self):
        return is_master(self._profile)

    @property
    def role(self) -> Optional[UserRole]:
        if self._profile is None:
            return None
        return UserRole.MASTER if self.is_master else UserRole.STAFF

    @property
    def user_email(self):
        return self._session.email if self._session else None

    @property
    def user_name(self):
        if self._profile is not None and self._profile.display_name:
            return self._profile.display_name
        return self.user_email

    # --- SUBSCRIPTION ---
    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: AuthEvent):
        for listener in list(self._listeners):
            try:
                listener(event, self._session)
            except Exception:
                logger.exception("Listener sesi gagal memproses event %s", event.value)

    def _resolve_profile(self, event, session):
        if session is None or not session.user_id:
            self._profile = None
            return
        try:
            self._profile = self.profile_loader(session.user_id, session.access_token)
        except Exception:
            logger.exception("Gagal memuat profil untuk user %s", session.user_id)
            self._profile = None

    # --- PERSISTENCE ---
    def _store(self, session: Optional[AuthSession]):
        self._session = session
        if session is None:
            self.storage.pop(SESSION_STORAGE_KEY, None)
        else:
            self.storage[SESSION_STORAGE_KEY] = session.to_dict()

    # --- LIFECYCLE ---
    def initialize(self):
        """Baca sesi tersimpan (sekali per request) lalu muat profil."""
        if self._initialized:
            return self
        self._initialized = True

        try:
            stored = AuthSession.from_dict(self.storage.get(SESSION_STORAGE_KEY))
        except Exception:
            logger.exception("Sesi tersimpan rusak, dianggap belum login")
            stored = None

        if stored is None:
            self._store(None)
            return self

        self._session = stored
        if stored.is_expired():
            self.refresh()
        else:
            self._notify(AuthEvent.INITIAL_SESSION)
        return self

    def sign_in(self, email, password) -> AuthSession:
        """Kredensial salah -> AuthError dilempar ke form login."""
        session = self.auth_client.sign_in_with_password(email, password)
        self._initialized = True
        self._store(session)
        self._notify(AuthEvent.SIGNED_IN)
        return session

    def sign_out(self):
        session = self._session
        if session is not None:
            self.auth_client.sign_out(session.access_token)
        self._store(None)
        self._notify(AuthEvent.SIGNED_OUT)

    def refresh(self) -> Optional[AuthSession]:
        current = self._session
        if current is None:
            return None
        try:
            renewed = self.auth_client.refresh_session(current.refresh_token)
        except AuthError as exc:
            logger.warning("Refresh sesi gagal, user dianggap logout: %s", exc)
            self._store(None)
            self._notify(AuthEvent.SIGNED_OUT)
            return None

        # Sebagian respons refresh tidak menyertakan data user
        renewed.user_id = renewed.user_id or current.user_id
        renewed.email = renewed.email or current.email
        self._store(renewed)
        self._notify(AuthEvent.TOKEN_REFRESHED)
        return renewed

    def access_token(self) -> Optional[str]:
        """Token terkini untuk Table Data Client (refresh jika perlu)."""
        if self._session is None:
            return None
        if self._session.is_expired():
            renewed = self.refresh()
            return renewed.access_token if renewed else None
        return self._session.access_token

    def teardown(self):
        self._listeners.clear()
