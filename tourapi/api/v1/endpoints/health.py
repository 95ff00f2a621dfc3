# tourapi/api/v1/endpoints/health.py
from fastapi import APIRouter

from tourapi.core.config import settings
from tourapi.db.session import check_db_connection

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    return {
        "status": "ok" if check_db_connection() else "degraded",
        "app": settings.APP_NAME,
        "env": settings.ENV,
    }
