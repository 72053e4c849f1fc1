import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from inventory_desk.config import Settings
from inventory_desk.deps import get_app_settings
from inventory_desk.schemas import Health

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


def database_status(engine) -> str:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        return "disconnected"
    return "connected"


@router.get("/health", response_model=Health)
def health(request: Request, settings: Settings = Depends(get_app_settings)):
    database = database_status(request.app.state.engine)
    return {
        "status": "ok" if database == "connected" else "degraded",
        "timestamp": datetime.now(timezone.utc),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": settings.env,
        "database": database,
    }
