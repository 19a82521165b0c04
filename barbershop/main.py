# barbershop/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from . import config
from .data import bootstrap
from .db import Database
from .routers import admin_routes, appointments_routes, auth_routes, schedule_routes, services_routes, users_routes

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None, seed: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database()
        db.init()
        if seed:
            with db.session() as session:
                bootstrap(session)
        app.state.db = db
        logger.info("Barbershop booking API started")
        try:
            yield
        finally:
            db.dispose()

    app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

    @app.exception_handler(OperationalError)
    @app.exception_handler(PoolTimeoutError)
    async def store_unavailable(request: Request, exc: Exception):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"detail": "Service temporarily unavailable, please try again"},
        )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(users_routes.router)
    app.include_router(services_routes.router)
    app.include_router(schedule_routes.router)
    app.include_router(appointments_routes.router)
    app.include_router(admin_routes.router)
    return app


app = create_app()
