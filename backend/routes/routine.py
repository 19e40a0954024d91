from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError as PydanticValidationError

from backend import repositories as repo
from backend.auth import require_user
from backend.errors import ValidationError, error_fields
from backend.schemas import RoutinePayload

router = APIRouter(prefix="/api/routine", dependencies=[Depends(require_user)])


@router.get("")
async def get_routine():
    return await repo.get_routine()


@router.post("")
async def save_routine(body: Any = Body(...)):
    try:
        payload = RoutinePayload.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError(fields=error_fields(exc)) from exc
    weekly = payload.model_dump(by_alias=True)["weeklyRoutine"]
    return await repo.save_routine(weekly)
