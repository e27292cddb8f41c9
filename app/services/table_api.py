# app/services/table_api.py
"""
Client tipis untuk hosted table API (konvensi PostgREST).

Semua operasi mengembalikan ``ApiResult`` (pasangan data/error) dan tidak
pernah melempar exception HTTP ke pemanggil.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

import requests

logger = logging.getLogger(__name__)

DELETED_AT_FIELD = 'deleted_at'


# ==========================================
# 1. ERROR & RESULT
# ==========================================
class ApiError(Exception):
    """Kegagalan operasi data (jaringan, status non-2xx, respons rusak)."""

    def __init__(self, message, status=None, code=None, details=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    @property
    def is_conflict(self):
        return self.status == 409 or self.code == '23505'

    def __str__(self):
        return self.message


class ApiResult:
    """Pasangan {data, error}. Bernilai True jika tidak ada error."""

    __slots__ = ('data', 'error')

    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error

    @property
    def ok(self):
        return self.error is None

    def __bool__(self):
        return self.ok

    def __iter__(self):
        # Agar bisa dipakai: data, error = client.get(...)
        yield self.data
        yield self.error

    def __repr__(self):
        return f"ApiResult(data={self.data!r}, error={self.error!r})"


# ==========================================
# 2. FILTER ALGEBRA
# ==========================================
def _render_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    return str(value)


class Filter:
    operator = None

    def __init__(self, value=None):
        self.value = value

    def render(self):
        return f"{self.operator}.{_render_value(self.value)}"

    def __eq__(self, other):
        return type(self) is type(other) and self.value == other.value

    def __hash__(self):
        return hash((type(self), repr(self.value)))

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"


class Eq(Filter):
    operator = 'eq'


class Neq(Filter):
    operator = 'neq'


class Gt(Filter):
    operator = 'gt'


class Gte(Filter):
    operator = 'gte'


class Lt(Filter):
    operator = 'lt'


class Lte(Filter):
    operator = 'lte'


class ILike(Filter):
    operator = 'ilike'


class Is(Filter):
    """``is.true`` / ``is.false``."""
    operator = 'is'


class IsNull(Filter):
    def __init__(self):
        super().__init__(None)

    def render(self):
        return 'is.null'


class NotNull(Filter):
    def __init__(self):
        super().__init__(None)

    def render(self):
        return 'not.is.null'


class In(Filter):
    def __init__(self, values: Iterable[Any]):
        super().__init__(tuple(values))

    def render(self):
        return 'in.(' + ','.join(_render_value(v) for v in self.value) + ')'


FilterValue = Union[Filter, str]


def render_filter(value: FilterValue) -> str:
    # String mentah ("eq.5") tetap diterima apa adanya
    if isinstance(value, Filter):
        return value.render()
    return str(value)


def active_filter(**extra: FilterValue) -> Dict[str, FilterValue]:
    """Filter default: hanya baris yang belum di-soft-delete."""
    result: Dict[str, FilterValue] = {DELETED_AT_FIELD: IsNull()}
    result.update(extra)
    return result


class Order:
    def __init__(self, column, ascending=True):
        self.column = column
        self.ascending = ascending

    def render(self):
        return f"{self.column}.{'asc' if self.ascending else 'desc'}"


# ==========================================
# 3. REQUEST BUILDER + TABLE CLIENT
# ==========================================
class TableClient:
    """
    Operasi get/insert/update/soft_delete terhadap ``<base>/rest/v1/<table>``.

    ``token_provider`` dipanggil pada SETIAP request, sehingga token yang
    berganti di tengah sesi langsung terpakai. Jika provider tidak
    mengembalikan token, anon key dipakai sebagai bearer.
    """

    def __init__(self, base_url: str, api_key: str, schema: str,
                 token_provider: Optional[Callable[[], Optional[str]]] = None,
                 http=None, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.schema = schema
        self.token_provider = token_provider
        self.http = http or requests.Session()
        self.timeout = timeout

    # --- URL & HEADERS ---
    def table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _token(self) -> str:
        token = None
        if self.token_provider is not None:
            try:
                token = self.token_provider()
            except Exception:
                logger.exception("Token provider gagal, memakai anon key")
        return token or self.api_key

    def build_headers(self, write=False, prefer=None) -> Dict[str, str]:
        headers = {
            'apikey': self.api_key,
            'Authorization': f"Bearer {self._token()}",
        }
        if write:
            headers['Content-Profile'] = self.schema
            headers['Content-Type'] = 'application/json'
        else:
            headers['Accept-Profile'] = self.schema
        if prefer:
            headers['Prefer'] = prefer
        return headers

    @staticmethod
    def build_params(select=None, filter: Optional[Mapping[str, FilterValue]] = None,
                     order: Optional[Order] = None, limit: Optional[int] = None):
        params = []
        if select is not None:
            params.append(('select', select))
        for column, predicate in (filter or {}).items():
            params.append((column, render_filter(predicate)))
        if order is not None:
            params.append(('order', order.render()))
        if limit:
            params.append(('limit', str(int(limit))))
        return params

    # --- TRANSPORT ---
    def _send(self, method, table, params=None, json=None, headers=None):
        url = self.table_url(table)
        try:
            response = self.http.request(
                method, url, params=params, json=json,
                headers=headers, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Request %s %s gagal: %s", method, table, exc)
            raise ApiError(str(exc) or 'Network error') from exc

        if not 200 <= response.status_code < 300:
            error = self._error_from_response(response)
            logger.warning(
                "Request %s %s ditolak (HTTP %s): %s",
                method, table, response.status_code, error.message,
            )
            raise error
        return response

    @staticmethod
    def _error_from_response(response) -> ApiError:
        body_text = response.text or ''
        message, code, details = None, None, None
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            message = payload.get('message') or payload.get('error_description') or payload.get('error')
            code = payload.get('code')
            details = payload.get('details') or payload.get('hint')
        message = message or body_text.strip() or f"HTTP {response.status_code}"
        return ApiError(message, status=response.status_code, code=code, details=details)

    @staticmethod
    def _json(response):
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError('Respons server bukan JSON yang valid', status=response.status_code) from exc

    @staticmethod
    def _first(result):
        if isinstance(result, list):
            return result[0] if result else None
        return result

    # --- OPERATIONS ---
    def get(self, table: str, select: str = '*',
            filter: Optional[Mapping[str, FilterValue]] = None,
            order: Optional[Order] = None, limit: Optional[int] = None,
            single: bool = False) -> ApiResult:
        try:
            response = self._send(
                'GET', table,
                params=self.build_params(select or '*', filter, order, limit),
                headers=self.build_headers(),
            )
            rows = self._json(response) or []
        except ApiError as exc:
            return ApiResult(error=exc)

        if single:
            return ApiResult(data=self._first(rows))
        return ApiResult(data=rows)

    def insert(self, table: str, record: Mapping[str, Any]) -> ApiResult:
        try:
            response = self._send(
                'POST', table,
                json=dict(record),
                headers=self.build_headers(write=True, prefer='return=representation'),
            )
            return ApiResult(data=self._first(self._json(response)))
        except ApiError as exc:
            return ApiResult(error=exc)

    def update(self, table: str, filter: Mapping[str, FilterValue],
               patch: Mapping[str, Any]) -> ApiResult:
        if not filter:
            return ApiResult(error=ApiError('Update tanpa filter ditolak'))
        try:
            response = self._send(
                'PATCH', table,
                params=self.build_params(filter=filter),
                json=dict(patch),
                headers=self.build_headers(write=True, prefer='return=representation'),
            )
            return ApiResult(data=self._first(self._json(response)))
        except ApiError as exc:
            return ApiResult(error=exc)

    def soft_delete(self, table: str, filter: Mapping[str, FilterValue]) -> ApiResult:
        """Soft delete: hanya kolom deleted_at yang diubah, baris tidak dihapus."""
        if not filter:
            return ApiResult(error=ApiError('Hapus tanpa filter ditolak'))
        try:
            self._send(
                'PATCH', table,
                params=self.build_params(filter=filter),
                json={DELETED_AT_FIELD: utc_now_iso()},
                headers=self.build_headers(write=True),
            )
        except ApiError as exc:
            return ApiResult(error=exc)
        return ApiResult()


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat()
