from __future__ import annotations

from fastapi import APIRouter

from backend.routes.crud import build_crud_router
from backend.schemas import ENTITIES

router = APIRouter()

for _entity in ENTITIES:
    router.include_router(build_crud_router(_entity))
