import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salessync.core.config import APP_VERSION, CORS_ALLOW_ORIGIN_REGEX, CORS_ORIGINS, DATABASE_URL
from salessync.core.database import Base, SessionLocal, engine
from salessync.core.errors import setup_exception_handlers
from salessync.core.logging_setup import configure_logging
from salessync.core.startup_checks import (
    ensure_migrations_applied,
    validate_database_environment,
    validate_jwt_secret,
)
from salessync.middleware.observability import ObservabilityMiddleware
from salessync.middleware.rate_limit import RateLimitMiddleware
from salessync.middleware.tenant_context import TenantContextMiddleware
import salessync.models  # noqa: F401  registers every table on Base.metadata

from salessync.routers.admin import router as admin_router
from salessync.routers.auth import router as auth_router
from salessync.routers.brands import router as brands_router
from salessync.routers.customers import router as customers_router
from salessync.routers.field_marketing import router as field_marketing_router
from salessync.routers.field_sales import router as field_sales_router
from salessync.routers.health import router as health_router
from salessync.routers.products import router as products_router
from salessync.routers.promotions import router as promotions_router
from salessync.routers.reporting import router as reporting_router
from salessync.routers.users import router as users_router
from salessync.routers.warehouses import router as warehouses_router
from salessync.services.bootstrap import bootstrap_super_admin

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="SalesSync API",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# last added runs first: observability wraps everything, the rate limiter
# sees the company id resolved by the tenant context
app.add_middleware(RateLimitMiddleware)
app.add_middleware(TenantContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

setup_exception_handlers(app)


def _bootstrap_initial_admin() -> None:
    db = SessionLocal()
    try:
        bootstrap_super_admin(db)
    except Exception:
        db.rollback()
        logger.exception("%s super admin bootstrap failed", STARTUP_PREFIX)
        raise
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        validate_jwt_secret()
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        _bootstrap_initial_admin()
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise
    logger.info("%s SalesSync API ready version=%s", STARTUP_PREFIX, APP_VERSION)


# Routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(users_router)
app.include_router(customers_router)
app.include_router(products_router)
app.include_router(brands_router)
app.include_router(warehouses_router)
app.include_router(field_sales_router)
app.include_router(field_marketing_router)
app.include_router(promotions_router)
app.include_router(reporting_router)


@app.get("/")
def root():
    return {"status": "ok", "service": "salessync-api", "version": APP_VERSION}
