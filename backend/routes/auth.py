from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.auth import require_user
from backend.schemas import AuthResponse, ChangePasswordPayload, PasswordPayload
from backend.services import auth_service

router = APIRouter(prefix="/api/auth")


@router.get("/status")
async def auth_status():
    return await auth_service.status()


@router.post("/setup", response_model=AuthResponse, status_code=201)
async def setup(payload: PasswordPayload):
    return await auth_service.setup(payload.password)


@router.post("/login", response_model=AuthResponse)
async def login(payload: PasswordPayload):
    return await auth_service.login(payload.password)


@router.post("/change-password")
async def change_password(payload: ChangePasswordPayload, user_id: str = Depends(require_user)):
    return await auth_service.change_password(user_id, payload.current_password, payload.new_password)


@router.delete("/delete-account")
async def delete_account(user_id: str = Depends(require_user)):
    return await auth_service.delete_account()
