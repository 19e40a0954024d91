from __future__ import annotations

from sqlalchemy import text as sql_text

from backend.db import get_engine
from backend.schemas import ENTITIES


USERS_TABLE = "life_users"
ROUTINE_TABLE = "life_routine"


async def init_db():
    engine = get_engine()
    async with engine.begin() as conn:
        for entity in ENTITIES:
            await conn.execute(
                sql_text(
                    f"""
                    CREATE TABLE IF NOT EXISTS {entity.table} (
                        id TEXT PRIMARY KEY,
                        payload_json TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        updated_at TEXT
                    )
                    """
                )
            )
            await conn.execute(
                sql_text(
                    f"CREATE INDEX IF NOT EXISTS idx_{entity.table}_created "
                    f"ON {entity.table} (created_at)"
                )
            )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {USERS_TABLE} (
                    id TEXT PRIMARY KEY,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )
        )
        await conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {ROUTINE_TABLE} (
                    id TEXT PRIMARY KEY,
                    weekly_routine_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )
        )
