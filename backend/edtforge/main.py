import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edtforge.api.routes import (
    conflicts,
    generator,
    health,
    instructors,
    rooms,
    sessions,
    settings as settings_routes,
    subjects,
)
from edtforge.core.config import get_settings
from edtforge.core.exceptions import AppError
from edtforge.db.bootstrap import ensure_schema

settings = get_settings()
logger = logging.getLogger("edtforge")


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.setLevel(settings.log_level)
    ensure_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(subjects.router, prefix=f"{settings.api_prefix}/subjects", tags=["subjects"])
app.include_router(rooms.router, prefix=f"{settings.api_prefix}/rooms", tags=["rooms"])
app.include_router(instructors.router, prefix=f"{settings.api_prefix}/instructors", tags=["instructors"])
app.include_router(sessions.router, prefix=f"{settings.api_prefix}/sessions", tags=["sessions"])
app.include_router(conflicts.router, prefix=f"{settings.api_prefix}/conflicts", tags=["conflicts"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(generator.router, prefix=settings.api_prefix, tags=["generator"])
