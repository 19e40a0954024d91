from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backend.settings import get_settings

logger = logging.getLogger(__name__)

_ASYNC_SCHEMES = (
    ("postgres://", "postgresql+asyncpg://"),
    ("postgresql://", "postgresql+asyncpg://"),
    ("postgresql+psycopg2://", "postgresql+asyncpg://"),
    ("sqlite:///", "sqlite+aiosqlite:///"),
)
_LOCAL_HOSTS = {"localhost", "127.0.0.1"}


def _asyncpg_query(query: str) -> str:
    # asyncpg understands ssl=true but not libpq's sslmode/channel_binding.
    kept = []
    wants_ssl = False
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key == "sslmode":
            wants_ssl = True
        elif key not in {"channel_binding", "ssl"}:
            kept.append((key, value))
    if wants_ssl:
        kept.append(("ssl", "true"))
    return urlencode(kept)


def normalize_database_url(database_url: str) -> str:
    url = str(database_url or "").strip()
    for prefix, replacement in _ASYNC_SCHEMES:
        if url.startswith(prefix):
            url = replacement + url[len(prefix) :]
            break
    if not url.startswith("postgresql+asyncpg://"):
        return url
    parsed = urlparse(url)
    return urlunparse(parsed._replace(query=_asyncpg_query(parsed.query)))


def is_sqlite(database_url: str) -> bool:
    return str(database_url or "").strip().lower().startswith("sqlite")


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker | None = None


def _build_engine(db_url: str) -> AsyncEngine:
    if is_sqlite(db_url):
        # Connections must not outlive the event loop that opened them.
        return create_async_engine(db_url, poolclass=NullPool, future=True)
    host = urlparse(db_url).hostname or ""
    connect_args = {"ssl": True} if host and host not in _LOCAL_HOSTS else {}
    logger.info("Connecting to Postgres host %s", host or "<default>")
    return create_async_engine(
        db_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        future=True,
        pool_size=10,
        max_overflow=5,
    )


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = _build_engine(normalize_database_url(get_settings().database_url))
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


def reset_engine() -> None:
    global _engine, _session_factory
    _engine = None
    _session_factory = None
