from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from salessync.core import config
from salessync.core.roles import UserRole
from salessync.models.company import Company
from salessync.models.user import User
from salessync.services.passwords import hash_password
from salessync.utils.slug import normalize_slug

logger = logging.getLogger(__name__)


def upsert_super_admin(
    db: Session,
    *,
    email: str,
    password: str | None,
    company_name: str,
    first_name: str = "Platform",
    last_name: str = "Admin",
) -> tuple[User, bool]:
    """Create the platform super admin, or refresh it when it already exists.

    Returns ``(user, created)``.
    """
    email = email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        existing.role = UserRole.SUPER_ADMIN.value
        existing.is_active = True
        if password:
            existing.password_hash = hash_password(password)
        db.commit()
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValueError("A password is required to create the super admin")

    slug = normalize_slug(company_name) or "platform"
    company = db.query(Company).filter(Company.slug == slug).first()
    if company is None:
        company = Company(name=company_name, slug=slug, subscription_tier="enterprise")
        db.add(company)
        db.flush()

    user = User(
        company_id=company.id,
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=UserRole.SUPER_ADMIN.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


def bootstrap_super_admin(db: Session) -> User | None:
    """Startup hook: create the first super admin from BOOTSTRAP_* settings."""
    if not config.BOOTSTRAP_ADMIN_PASSWORD:
        return None

    has_super_admin = db.query(User.id).filter(User.role == UserRole.SUPER_ADMIN.value).first() is not None
    if has_super_admin and not config.BOOTSTRAP_ALLOW:
        logger.info("Bootstrap skipped, a super admin already exists")
        return None

    user, created = upsert_super_admin(
        db,
        email=config.BOOTSTRAP_ADMIN_EMAIL,
        password=config.BOOTSTRAP_ADMIN_PASSWORD,
        company_name=config.BOOTSTRAP_COMPANY_NAME,
    )
    logger.info("Bootstrap super admin %s email=%s", "created" if created else "updated", user.email)
    return user
