from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from salessync.core.config import (
    LOGIN_ATTEMPT_WINDOW_MINUTES,
    LOGIN_LOCK_MINUTES,
    LOGIN_MAX_FAILED_ATTEMPTS,
)
from salessync.core.database import utcnow
from salessync.models.login_attempt import LoginAttempt

MAX_FAILED_ATTEMPTS = LOGIN_MAX_FAILED_ATTEMPTS
ATTEMPT_WINDOW = timedelta(minutes=LOGIN_ATTEMPT_WINDOW_MINUTES)
LOCK_DURATION = timedelta(minutes=LOGIN_LOCK_MINUTES)


def get_login_attempt(db: Session, email: str) -> Optional[LoginAttempt]:
    return db.query(LoginAttempt).filter(LoginAttempt.email == email).first()


def is_locked(attempt: LoginAttempt, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    if attempt.locked_until is None:
        return False
    return attempt.locked_until > now


def check_login_lock(db: Session, email: str) -> Tuple[bool, Optional[datetime]]:
    attempt = get_login_attempt(db, email)
    if attempt is not None and is_locked(attempt):
        return True, attempt.locked_until
    return False, None


def register_failed_login(db: Session, email: str) -> Tuple[LoginAttempt, bool]:
    now = utcnow()
    attempt = get_login_attempt(db, email)
    if attempt is None:
        attempt = LoginAttempt(
            email=email,
            failed_count=1,
            first_failed_at=now,
            last_failed_at=now,
        )
        db.add(attempt)
    else:
        if attempt.first_failed_at is None or (now - attempt.first_failed_at) > ATTEMPT_WINDOW:
            attempt.failed_count = 0
            attempt.first_failed_at = now
            attempt.locked_until = None
        attempt.failed_count += 1
        attempt.last_failed_at = now

    locked = False
    if attempt.failed_count >= MAX_FAILED_ATTEMPTS:
        attempt.locked_until = now + LOCK_DURATION
        locked = True

    return attempt, locked


def clear_login_attempts(db: Session, email: str) -> None:
    attempt = get_login_attempt(db, email)
    if attempt is None:
        return
    db.delete(attempt)
