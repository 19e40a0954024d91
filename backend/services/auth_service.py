from __future__ import annotations

import logging

from backend import repositories as repo
from backend.auth import create_token, hash_password, verify_password
from backend.errors import AlreadySetup, InvalidCredentials, NotFound, ValidationError

logger = logging.getLogger(__name__)


async def status() -> dict:
    return {"isSetup": await repo.count_users() > 0}


async def setup(password: str) -> dict:
    if not password:
        raise ValidationError("Password is required", fields=["password"])
    if await repo.count_users() > 0:
        logger.info("Setup rejected: a user already exists")
        raise AlreadySetup()
    user = await repo.create_user(hash_password(password))
    logger.info("Application set up")
    return {"id": user["id"], "token": create_token(user["id"])}


async def login(password: str) -> dict:
    if not password:
        raise ValidationError("Password is required", fields=["password"])
    user = await repo.get_user()
    if not user or not verify_password(password, user["password_hash"]):
        logger.info("Login failed")
        raise InvalidCredentials()
    return {"id": user["id"], "token": create_token(user["id"])}


async def change_password(user_id: str, current_password: str, new_password: str) -> dict:
    missing = [
        name
        for name, value in (("currentPassword", current_password), ("newPassword", new_password))
        if not value
    ]
    if missing:
        raise ValidationError("Please provide current and new password", fields=missing)
    user = await repo.get_user(user_id)
    if not user:
        raise NotFound("User not found")
    if not verify_password(current_password, user["password_hash"]):
        raise InvalidCredentials("Current password is incorrect")
    await repo.update_user_password(user_id, hash_password(new_password))
    logger.info("Password changed")
    return {"message": "Password updated successfully"}


async def delete_account() -> dict:
    await repo.wipe_everything()
    logger.warning("Account and all data deleted")
    return {"message": "Account and all data deleted successfully."}
