import json
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from task_portal.app.middleware.access_log import AccessLogMiddleware
from task_portal.app.routes import auth, tasks
from task_portal.config import Settings, get_settings
from task_portal.infra.db.json_file import JsonFilePersistence
from task_portal.infra.db.persistence import StorePersistence, load_or_empty
from task_portal.infra.db.store import StoreGuard, StorePoisonedError
from task_portal.observability.logging import setup_logging
from task_portal.services.account_service import AccountService
from task_portal.services.task_service import TaskService

logger = logging.getLogger("task_portal.system")

# localhost on any port, plus the "null" origin browsers send for file:// pages
CORS_ORIGIN_REGEX = r"http://localhost.*|null"


def create_app(settings: Optional[Settings] = None, persistence: Optional[StorePersistence] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)
    logger.info("system.start", extra={"category": "system", "event": "system.start"})

    app = FastAPI(title="Task Portal")
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=CORS_ORIGIN_REGEX,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Accept", "Content-Type"],
        allow_credentials=True,
        max_age=3600,
    )
    app.add_middleware(AccessLogMiddleware)

    # --- store wiring ---
    persistence = persistence or JsonFilePersistence(settings.db_path)
    guard = StoreGuard(load_or_empty(persistence))
    app.state.settings = settings
    app.state.store_guard = guard
    app.state.task_service = TaskService(guard, persistence)
    app.state.account_service = AccountService(guard, persistence)

    app.include_router(tasks.router)
    app.include_router(auth.router)

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):
        # ascii escapes keep rejected lone surrogates renderable in the error detail
        body = json.dumps({"detail": jsonable_encoder(exc.errors())}, ensure_ascii=True)
        return Response(body, status_code=422, media_type="application/json")

    @app.exception_handler(StorePoisonedError)
    async def _store_poisoned(request: Request, exc: StorePoisonedError):
        request.state.store_poisoned = True
        logger.critical(
            "store.poisoned",
            extra={"category": "store", "event": "store.poisoned", "path": request.url.path},
        )
        return PlainTextResponse("Store unavailable", status_code=500)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run("task_portal.app.asgi:app", host=settings.host, port=settings.port)
