from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from backend import repositories as repo
from backend.errors import TransactionAborted, error_fields
from backend.lifedata import build_life_data, flatten_life_data
from backend.schemas import DAYS_OF_WEEK, ENTITIES, RoutinePayload
from backend.settings import get_settings

logger = logging.getLogger(__name__)


async def export_life_data() -> Dict[str, Any]:
    collections = await repo.list_all_documents()
    routine = await repo.get_routine()
    return build_life_data(collections, routine.get("weeklyRoutine"), get_settings().timezone)


def _validate_blob(life_data: Dict[str, Any]) -> tuple[Dict[str, List[dict]], Dict[str, list] | None]:
    if not isinstance(life_data, dict) or not isinstance(life_data.get("dailyData", {}), dict):
        raise TransactionAborted("Import aborted: the file is not a life data export")
    collections = flatten_life_data(life_data)
    clean: Dict[str, List[dict]] = {}
    for entity in ENTITIES:
        items = []
        for index, raw in enumerate(collections.get(entity.slug) or []):
            if not isinstance(raw, dict):
                raise TransactionAborted(f"Import aborted: {entity.slug}[{index}] is not an object")
            try:
                model = entity.create_model.model_validate(raw)
            except PydanticValidationError as exc:
                fields = ", ".join(error_fields(exc))
                raise TransactionAborted(f"Import aborted: {entity.slug}[{index}] invalid fields: {fields}") from exc
            items.append(model.model_dump(by_alias=True))
        clean[entity.slug] = items

    weekly = life_data.get("weeklyRoutine")
    if weekly is None:
        return clean, None
    if not isinstance(weekly, dict):
        raise TransactionAborted("Import aborted: weeklyRoutine invalid fields: weeklyRoutine")
    try:
        routine = RoutinePayload.model_validate(
            {"weeklyRoutine": {day: tasks for day, tasks in weekly.items() if day in DAYS_OF_WEEK}}
        )
    except PydanticValidationError as exc:
        fields = ", ".join(error_fields(exc))
        raise TransactionAborted(f"Import aborted: weeklyRoutine invalid fields: {fields}") from exc
    return clean, routine.model_dump(by_alias=True)["weeklyRoutine"]


async def import_life_data(life_data: Dict[str, Any]) -> Dict[str, Any]:
    collections, weekly_routine = _validate_blob(life_data)
    try:
        counts = await repo.replace_everything(collections, weekly_routine)
    except Exception as exc:
        logger.exception("Import rolled back")
        raise TransactionAborted(f"Import aborted: {exc.__class__.__name__}") from exc
    logger.info("Imported %s documents", sum(counts.values()))
    return {"message": "Data imported successfully", "counts": counts}
