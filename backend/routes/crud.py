from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Response
from pydantic import ValidationError as PydanticValidationError

from backend import repositories as repo
from backend.auth import require_user
from backend.errors import ValidationError, error_fields
from backend.schemas import EntitySpec

logger = logging.getLogger(__name__)


def _validate(model, body) -> dict:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError(fields=error_fields(exc)) from exc


def build_crud_router(entity: EntitySpec) -> APIRouter:
    """List/create/read/update/delete endpoints for one entity, all behind the session gate."""
    router = APIRouter(prefix=f"/api/{entity.slug}", dependencies=[Depends(require_user)])
    non_nullable = entity.non_nullable_fields

    @router.get("")
    async def list_documents():
        return await repo.list_documents(entity)

    @router.post("", status_code=201)
    async def create_document(body: Any = Body(...)):
        model = _validate(entity.create_model, body)
        record = await repo.insert_document(entity, model.model_dump(by_alias=True))
        logger.debug("Created %s %s", entity.slug, record["id"])
        return record

    @router.get("/{doc_id}")
    async def get_document(doc_id: str):
        return await repo.get_document(entity, doc_id)

    @router.put("/{doc_id}")
    async def update_document(doc_id: str, body: Any = Body(...)):
        model = _validate(entity.patch_model, body)
        patch = model.model_dump(by_alias=True, exclude_unset=True)
        nulls = sorted(name for name, value in patch.items() if value is None and name in non_nullable)
        if nulls:
            raise ValidationError(fields=nulls)
        return await repo.update_document(entity, doc_id, patch)

    @router.delete("/{doc_id}", status_code=204)
    async def delete_document(doc_id: str):
        await repo.delete_document(entity, doc_id)
        return Response(status_code=204)

    return router
