# app/services/auth_client.py
import logging
import time
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Kegagalan dari identity provider (kredensial salah, token kadaluarsa)."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self):
        return self.message


class AuthSession:
    """Sesi login dari identity provider (access + refresh token)."""

    def __init__(self, access_token, refresh_token=None, expires_at=None,
                 user_id=None, email=None):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at = expires_at
        self.user_id = user_id
        self.email = email

    def is_expired(self, leeway=60, now=None):
        if not self.expires_at:
            return False
        current = now if now is not None else time.time()
        return current + leeway >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'expires_at': self.expires_at,
            'user_id': self.user_id,
            'email': self.email,
        }

    @classmethod
    def from_dict(cls, data) -> Optional['AuthSession']:
        if not data or not data.get('access_token'):
            return None
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token'),
            expires_at=data.get('expires_at'),
            user_id=data.get('user_id'),
            email=data.get('email'),
        )

    @classmethod
    def from_token_response(cls, payload) -> 'AuthSession':
        user = payload.get('user') or {}
        expires_at = payload.get('expires_at')
        if not expires_at and payload.get('expires_in'):
            expires_at = int(time.time()) + int(payload['expires_in'])
        return cls(
            access_token=payload['access_token'],
            refresh_token=payload.get('refresh_token'),
            expires_at=expires_at,
            user_id=user.get('id'),
            email=user.get('email'),
        )

    def __repr__(self):
        return f"AuthSession(user_id={self.user_id!r}, email={self.email!r})"


class AuthClient:
    """Client REST untuk endpoint ``<base>/auth/v1``."""

    def __init__(self, base_url, api_key, http=None, timeout=None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.http = http or requests.Session()
        self.timeout = timeout

    def _url(self, path):
        return f"{self.base_url}/auth/v1/{path.lstrip('/')}"

    def _headers(self, bearer=None):
        return {
            'apikey': self.api_key,
            'Authorization': f"Bearer {bearer or self.api_key}",
            'Content-Type': 'application/json',
        }

    def _post(self, path, params=None, payload=None, bearer=None):
        try:
            response = self.http.request(
                'POST', self._url(path), params=params, json=payload,
                headers=self._headers(bearer), timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthError(str(exc) or 'Network error') from exc

        if not 200 <= response.status_code < 300:
            raise AuthError(self._message(response), status=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise AuthError('Respons identity provider tidak valid', status=response.status_code) from exc

    @staticmethod
    def _message(response):
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            for key in ('error_description', 'msg', 'message', 'error'):
                if payload.get(key):
                    return payload[key]
        return (response.text or '').strip() or f"HTTP {response.status_code}"

    def sign_in_with_password(self, email, password) -> AuthSession:
        payload = self._post(
            'token', params={'grant_type': 'password'},
            payload={'email': email, 'password': password},
        )
        return AuthSession.from_token_response(payload)

    def refresh_session(self, refresh_token) -> AuthSession:
        if not refresh_token:
            raise AuthError('Refresh token tidak tersedia')
        payload = self._post(
            'token', params={'grant_type': 'refresh_token'},
            payload={'refresh_token': refresh_token},
        )
        return AuthSession.from_token_response(payload)

    def sign_out(self, access_token):
        try:
            self._post('logout', bearer=access_token)
        except AuthError as exc:
            # Token lokal tetap dibuang walau server menolak
            logger.warning("Logout di identity provider gagal: %s", exc)
