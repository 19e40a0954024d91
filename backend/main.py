from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.db_init import init_db
from backend.errors import LifeDashboardError, error_fields
from backend.routes import ai, auth, data, routine, transfer


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = FastAPI(title="Momentum Life Dashboard API", version="0.1.0")

    app.include_router(auth.router)
    app.include_router(routine.router)
    app.include_router(transfer.router)
    app.include_router(ai.router)
    app.include_router(data.router)

    @app.on_event("startup")
    async def _startup():
        await init_db()

    @app.exception_handler(LifeDashboardError)
    async def _domain_error_handler(request: Request, exc: LifeDashboardError):
        if exc.status_code >= 500:
            logging.getLogger("backend").error("%s on %s: %s", exc.__class__.__name__, request.url.path, exc.message)
        content = {"detail": exc.message}
        fields = getattr(exc, "fields", None)
        if fields:
            content["fields"] = fields
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        fields = error_fields(exc)
        return JSONResponse(
            status_code=400,
            content={"detail": f"Invalid data: {', '.join(fields)}", "fields": fields},
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("backend").exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
