# tourapi/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from tourapi.core.config import settings
from tourapi.core.errors import DomainError
from tourapi.db import base  # noqa: F401  (registra todos los modelos)
from tourapi.db.session import SessionLocal
from tourapi.api.v1.endpoints import (
    activity_questions, discussion_teams, discussions, health, notes, public_surveys, surveys, tours,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_V1_PREFIX = "/api/v1"

app = FastAPI(
    title=settings.APP_NAME,
    description="API de tours: puerta de solo lectura y motor de encuestas",
    version="1.0.0",
)

# CORS (en prod: restringe orígenes con CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Todos los errores salen como {"error": <detail>}
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Routers versionados
app.include_router(health.router,             prefix=API_V1_PREFIX)
app.include_router(tours.router,              prefix=API_V1_PREFIX)
app.include_router(notes.router,              prefix=API_V1_PREFIX)
app.include_router(activity_questions.router, prefix=API_V1_PREFIX)
app.include_router(discussions.router,        prefix=API_V1_PREFIX)
app.include_router(discussion_teams.router,   prefix=API_V1_PREFIX)
app.include_router(surveys.router,            prefix=API_V1_PREFIX)
app.include_router(public_surveys.router,     prefix=API_V1_PREFIX)


# Rutas básicas fuera de /api/v1
@app.get("/health")
def health_root():
    return {"status": "ok", "message": "API running"}


@app.get("/api/v1/health/db")
def health_db():
    with SessionLocal() as s:
        s.execute(text("SELECT 1"))
    return {"db": "ok"}


@app.get("/")
def root():
    return {
        "message": "Tour Insights API",
        "version": "1.0.0",
        "docs": "/docs",
        "api_v1": API_V1_PREFIX,
    }
