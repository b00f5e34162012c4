from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salessync.core.config import APP_VERSION, ENV, INSTANCE_ID
from salessync.core.database import get_db, utcnow

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


def check_database(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database query failed")
        return False
    return True


@router.get("/health")
@router.get("/api/health")
def health(db: Session = Depends(get_db)):
    body = {
        "timestamp": utcnow().isoformat(),
        "version": APP_VERSION,
        "environment": ENV,
        "instance": INSTANCE_ID,
    }
    if check_database(db):
        return {"status": "healthy", "database": "connected", **body}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unhealthy", "database": "disconnected", **body},
    )


@router.get("/status")
def liveness():
    return {"status": "ok", "timestamp": utcnow().isoformat(), "version": APP_VERSION}
