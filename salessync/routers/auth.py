from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session, joinedload

from salessync.core import config
from salessync.core.database import get_db, utcnow
from salessync.core.token_store import TokenStore, get_token_store
from salessync.deps import get_current_user
from salessync.models.user import User
from salessync.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponseData,
    RefreshRequest,
    UserProfile,
)
from salessync.schemas.common import ok
from salessync.services.login_attempts import (
    check_login_lock,
    clear_login_attempts,
    register_failed_login,
)
from salessync.services.passwords import hash_password, verify_password
from salessync.services.security import (
    REFRESH_TOKEN_TYPE,
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    extract_user_id,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
TOO_MANY_ATTEMPTS = "Too many failed login attempts. Try again later."


def _too_many_attempts(locked_until) -> HTTPException:
    retry_after = max(1, math.ceil((locked_until - utcnow()).total_seconds())) if locked_until else 60
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=TOO_MANY_ATTEMPTS,
        headers={"Retry-After": str(retry_after)},
    )


def _issue_tokens(user: User, token_store: TokenStore) -> tuple[str, str]:
    access_token = create_access_token(user)
    refresh_token, token_id = create_refresh_token(user)
    token_store.save(
        user_id=user.id,
        token_id=token_id,
        ttl_seconds=config.JWT_REFRESH_EXPIRE_MINUTES * 60,
    )
    return access_token, refresh_token


@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store),
):
    email = payload.email.strip().lower()

    locked, locked_until = check_login_lock(db, email)
    if locked:
        logger.warning("Login blocked for locked account email=%s", email)
        raise _too_many_attempts(locked_until)

    user = db.query(User).options(joinedload(User.company)).filter(User.email == email).first()
    password_is_valid = user is not None and verify_password(payload.password, user.password_hash)
    account_is_active = (
        user is not None and user.is_active and user.company is not None and user.company.is_active
    )
    if not password_is_valid or not account_is_active:
        attempt, locked_after = register_failed_login(db, email)
        db.commit()
        logger.warning(
            "Login failed email=%s failed_count=%s client_ip=%s",
            email,
            attempt.failed_count,
            request.client.host if request.client else None,
        )
        if locked_after:
            raise _too_many_attempts(attempt.locked_until)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    clear_login_attempts(db, email)
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)

    access_token, refresh_token = _issue_tokens(user, token_store)
    logger.info("Login succeeded user_id=%s company_id=%s", user.id, user.company_id)
    return ok(
        LoginResponseData(
            token=access_token,
            refresh_token=refresh_token,
            user=UserProfile.model_validate(user),
        )
    )


@router.post("/refresh")
def refresh(
    payload: RefreshRequest,
    db: Session = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store),
):
    try:
        claims = decode_token(payload.refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    except TokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user_id = extract_user_id(claims)
    token_id = claims.get("jti")
    if user_id is None or not token_id or not token_store.exists(user_id=user_id, token_id=token_id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active or user.company is None or not user.company.is_active:
        token_store.revoke(user_id=user_id, token_id=token_id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return ok({"token": create_access_token(user)})


@router.post("/logout")
def logout(
    user: User = Depends(get_current_user),
    token_store: TokenStore = Depends(get_token_store),
):
    token_store.revoke_all(user_id=user.id)
    logger.info("Logout user_id=%s", user.id)
    return ok({"message": "Logged out successfully"})


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return ok(UserProfile.model_validate(user))


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store),
):
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    user.password_hash = hash_password(payload.new_password)
    db.commit()
    token_store.revoke_all(user_id=user.id)
    logger.info("Password changed user_id=%s", user.id)
    return ok({"message": "Password changed successfully"})
