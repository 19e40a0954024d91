from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from backend.auth import require_user
from backend.services import transfer_service

router = APIRouter(prefix="/api", dependencies=[Depends(require_user)])


@router.get("/export")
async def export_data():
    return await transfer_service.export_life_data()


@router.post("/import")
async def import_data(body: Any = Body(...)):
    return await transfer_service.import_life_data(body)
