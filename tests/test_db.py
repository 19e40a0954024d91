from backend.db import is_sqlite, normalize_database_url


class TestDatabaseUrl:
    def test_postgres_urls_use_asyncpg(self):
        assert normalize_database_url("postgres://u:p@db.example.com/life") == "postgresql+asyncpg://u:p@db.example.com/life"
        assert normalize_database_url("postgresql://u:p@localhost/life").startswith("postgresql+asyncpg://")

    def test_sslmode_becomes_ssl_flag(self):
        url = normalize_database_url("postgresql://u:p@db.example.com/life?sslmode=require&channel_binding=require")
        assert url == "postgresql+asyncpg://u:p@db.example.com/life?ssl=true"

    def test_sqlite_gets_async_driver(self):
        url = normalize_database_url("sqlite:///./life.db")
        assert url == "sqlite+aiosqlite:///./life.db"
        assert is_sqlite(url)
        assert not is_sqlite("postgresql+asyncpg://localhost/life")
