from __future__ import annotations

import base64
import hashlib
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List
from uuid import uuid4

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy import text as sql_text

from backend.db import get_sessionmaker
from backend.db_init import ROUTINE_TABLE, USERS_TABLE
from backend.errors import NotFound
from backend.lifedata import default_routine
from backend.schemas import ENTITIES, EntitySpec
from backend.settings import get_settings

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^[0-9a-f]{32}$")
_SEALED_PREFIX = "fernet:"
_SEALED_FIELDS = {"credentials": ("password",)}


def _new_id() -> str:
    return uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(_ID_RE.match(str(value)))


def _fernet() -> Fernet | None:
    settings = get_settings()
    if not settings.credential_encryption_key:
        return None
    digest = hashlib.sha256(settings.credential_encryption_key.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def _seal(entity: EntitySpec, payload: dict) -> dict:
    fields = _SEALED_FIELDS.get(entity.slug)
    fernet = _fernet() if fields else None
    if fernet is None:
        return payload
    sealed = dict(payload)
    for field in fields:
        value = sealed.get(field)
        if isinstance(value, str) and value and not value.startswith(_SEALED_PREFIX):
            sealed[field] = _SEALED_PREFIX + fernet.encrypt(value.encode("utf-8")).decode("utf-8")
    return sealed


def _open(entity: EntitySpec, payload: dict) -> dict:
    fields = _SEALED_FIELDS.get(entity.slug)
    if not fields:
        return payload
    fernet = _fernet()
    opened = dict(payload)
    for field in fields:
        value = opened.get(field)
        if not (isinstance(value, str) and value.startswith(_SEALED_PREFIX)):
            continue
        if fernet is None:
            logger.warning("Credential %s is encrypted but no CREDENTIAL_ENCRYPTION_KEY is set", field)
            continue
        try:
            opened[field] = fernet.decrypt(value[len(_SEALED_PREFIX) :].encode("utf-8")).decode("utf-8")
        except InvalidToken:
            logger.warning("Credential %s could not be decrypted with the configured key", field)
    return opened


def _row_to_document(entity: EntitySpec, row) -> dict:
    try:
        payload = json.loads(row["payload_json"] or "{}")
    except (TypeError, ValueError):
        logger.warning("Unreadable payload in %s row %s", entity.table, row["id"])
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    payload.pop("id", None)
    return {"id": row["id"], **_open(entity, payload)}


async def _insert(session, entity: EntitySpec, payload: dict, created_at: datetime | None = None) -> dict:
    doc_id = _new_id()
    stamp = (created_at or _now()).isoformat()
    clean = {key: value for key, value in payload.items() if key != "id"}
    await session.execute(
        sql_text(
            f"INSERT INTO {entity.table} (id, payload_json, created_at, updated_at) "
            "VALUES (:id, :payload_json, :created_at, :updated_at)"
        ),
        {
            "id": doc_id,
            "payload_json": json.dumps(_seal(entity, clean), ensure_ascii=False),
            "created_at": stamp,
            "updated_at": stamp,
        },
    )
    return {"id": doc_id, **clean}


async def list_documents(entity: EntitySpec) -> list[dict]:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        rows = (await session.execute(
            sql_text(f"SELECT id, payload_json FROM {entity.table} ORDER BY created_at, id")
        )).mappings().all()
    return [_row_to_document(entity, row) for row in rows]


async def get_document(entity: EntitySpec, doc_id: str) -> dict:
    if not is_valid_id(doc_id):
        raise NotFound("Document not found")
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT id, payload_json FROM {entity.table} WHERE id = :id"),
            {"id": doc_id},
        )).mappings().fetchone()
    if not row:
        raise NotFound("Document not found")
    return _row_to_document(entity, row)


async def insert_document(entity: EntitySpec, payload: dict) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        record = await _insert(session, entity, payload)
        await session.commit()
    return record


async def update_document(entity: EntitySpec, doc_id: str, patch: dict) -> dict:
    current = await get_document(entity, doc_id)
    merged = {**current, **patch}
    merged.pop("id", None)
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(
                f"UPDATE {entity.table} SET payload_json = :payload_json, updated_at = :updated_at "
                "WHERE id = :id"
            ),
            {
                "id": doc_id,
                "payload_json": json.dumps(_seal(entity, merged), ensure_ascii=False),
                "updated_at": _now().isoformat(),
            },
        )
        await session.commit()
    if result.rowcount == 0:
        raise NotFound("Document not found")
    return {"id": doc_id, **merged}


async def delete_document(entity: EntitySpec, doc_id: str) -> None:
    if not is_valid_id(doc_id):
        raise NotFound("Document not found")
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        result = await session.execute(
            sql_text(f"DELETE FROM {entity.table} WHERE id = :id"),
            {"id": doc_id},
        )
        await session.commit()
    if result.rowcount == 0:
        raise NotFound("Document not found")


async def list_all_documents() -> Dict[str, List[dict]]:
    return {entity.slug: await list_documents(entity) for entity in ENTITIES}


async def count_users() -> int:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        count = (await session.execute(sql_text(f"SELECT COUNT(*) FROM {USERS_TABLE}"))).scalar_one()
    return int(count or 0)


async def get_user(user_id: str | None = None) -> dict | None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        if user_id is None:
            row = (await session.execute(
                sql_text(f"SELECT id, password_hash FROM {USERS_TABLE} ORDER BY created_at LIMIT 1")
            )).mappings().fetchone()
        else:
            row = (await session.execute(
                sql_text(f"SELECT id, password_hash FROM {USERS_TABLE} WHERE id = :id"),
                {"id": user_id},
            )).mappings().fetchone()
    return dict(row) if row else None


async def create_user(password_hash: str) -> dict:
    user_id = _new_id()
    stamp = _now().isoformat()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"INSERT INTO {USERS_TABLE} (id, password_hash, created_at, updated_at) "
                "VALUES (:id, :password_hash, :created_at, :updated_at)"
            ),
            {"id": user_id, "password_hash": password_hash, "created_at": stamp, "updated_at": stamp},
        )
        await session.commit()
    return {"id": user_id, "password_hash": password_hash}


async def update_user_password(user_id: str, password_hash: str) -> None:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"UPDATE {USERS_TABLE} SET password_hash = :password_hash, updated_at = :updated_at "
                "WHERE id = :id"
            ),
            {"id": user_id, "password_hash": password_hash, "updated_at": _now().isoformat()},
        )
        await session.commit()


def _decode_routine(raw) -> dict:
    try:
        payload = json.loads(raw or "{}")
    except (TypeError, ValueError):
        logger.warning("Unreadable weekly routine, falling back to an empty week")
        payload = {}
    routine = default_routine()
    if isinstance(payload, dict):
        routine.update({day: tasks for day, tasks in payload.items() if isinstance(tasks, list)})
    return routine


async def get_routine() -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT id, weekly_routine_json FROM {ROUTINE_TABLE} ORDER BY created_at LIMIT 1")
        )).mappings().fetchone()
    if not row:
        return {"weeklyRoutine": default_routine()}
    return {"id": row["id"], "weeklyRoutine": _decode_routine(row["weekly_routine_json"])}


async def _write_routine(session, weekly_routine: dict) -> dict:
    stamp = _now().isoformat()
    encoded = json.dumps(weekly_routine, ensure_ascii=False)
    row = (await session.execute(
        sql_text(f"SELECT id FROM {ROUTINE_TABLE} ORDER BY created_at LIMIT 1")
    )).mappings().fetchone()
    if row:
        routine_id = row["id"]
        await session.execute(
            sql_text(
                f"UPDATE {ROUTINE_TABLE} SET weekly_routine_json = :payload, updated_at = :updated_at "
                "WHERE id = :id"
            ),
            {"id": routine_id, "payload": encoded, "updated_at": stamp},
        )
    else:
        routine_id = _new_id()
        await session.execute(
            sql_text(
                f"INSERT INTO {ROUTINE_TABLE} (id, weekly_routine_json, created_at, updated_at) "
                "VALUES (:id, :payload, :created_at, :updated_at)"
            ),
            {"id": routine_id, "payload": encoded, "created_at": stamp, "updated_at": stamp},
        )
    return {"id": routine_id, "weeklyRoutine": _decode_routine(encoded)}


async def save_routine(weekly_routine: dict) -> dict:
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        record = await _write_routine(session, weekly_routine)
        await session.commit()
    return record


async def wipe_everything() -> None:
    """Empty every table one by one. There is no rollback across tables."""
    session_factory = get_sessionmaker()
    for table in [entity.table for entity in ENTITIES] + [ROUTINE_TABLE, USERS_TABLE]:
        async with session_factory() as session:
            await session.execute(sql_text(f"DELETE FROM {table}"))
            await session.commit()
        logger.info("Cleared table %s", table)


async def replace_everything(collections: Dict[str, List[dict]], weekly_routine: dict | None) -> Dict[str, int]:
    """Swap all collections and the routine for the given ones inside one transaction."""
    counts: Dict[str, int] = {}
    base = _now()
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        async with session.begin():
            for entity in ENTITIES:
                await session.execute(sql_text(f"DELETE FROM {entity.table}"))
            await session.execute(sql_text(f"DELETE FROM {ROUTINE_TABLE}"))
            offset = 0
            for entity in ENTITIES:
                items = collections.get(entity.slug) or []
                for payload in items:
                    offset += 1
                    await _insert(session, entity, payload, created_at=base + timedelta(microseconds=offset))
                counts[entity.slug] = len(items)
            if weekly_routine:
                await _write_routine(session, weekly_routine)
    return counts
