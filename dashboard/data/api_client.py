import logging
import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

_SECRET_GETTER = None
_TOKEN_GETTER = None


class ApiError(RuntimeError):
    def __init__(self, status, detail):
        super().__init__(f"API error {status}: {detail}")
        self.status = status
        self.detail = detail


def _build_session():
    session = requests.Session()
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET", "POST", "PUT", "PATCH", "DELETE"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


def configure(secret_getter, token_getter):
    global _SECRET_GETTER, _TOKEN_GETTER
    _SECRET_GETTER = secret_getter
    _TOKEN_GETTER = token_getter


def current_token():
    return _TOKEN_GETTER() if _TOKEN_GETTER else None


def _get_secret(path, default=None):
    if _SECRET_GETTER is None:
        return default
    return _SECRET_GETTER(path, default)


def api_base_url():
    return (
        _get_secret(("app", "API_BASE_URL"))
        or _get_secret(("API_BASE_URL",))
        or os.getenv("API_BASE_URL")
        or "http://localhost:8000"
    )


def _detail(response):
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason
    if isinstance(payload, dict):
        return payload.get("detail") or payload.get("message") or payload
    return payload


def request(
    method: str,
    path: str,
    params: dict | None = None,
    json: Any = None,
    timeout: int = 10,
    auth: bool = True,
    token: str | None = None,
) -> Any:
    """Call the backend. Pass ``token`` when calling off the Streamlit script thread."""
    base = api_base_url().rstrip("/")
    headers = {}
    if auth:
        token = token or current_token()
        if not token:
            raise ApiError(401, "Not logged in")
        headers["Authorization"] = f"Bearer {token}"
    url = f"{base}{path}"
    try:
        response = _SESSION.request(method, url, params=params, json=json, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("%s %s failed: %s", method, path, exc)
        raise ApiError(0, f"Backend unreachable: {exc.__class__.__name__}") from exc
    if not response.ok:
        raise ApiError(response.status_code, _detail(response))
    if response.status_code == 204:
        return None
    return response.json()
