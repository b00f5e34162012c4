import os

from dotenv import load_dotenv

# Load .env from the project root
load_dotenv()

TRUTHY = {"1", "true", "yes", "on"}

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salessync.db")
REDIS_URL = os.getenv("REDIS_URL", "").strip()
PORT = int(os.getenv("PORT", "3000"))
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
INSTANCE_ID = os.getenv("INSTANCE_ID", "unknown")

ENV = os.getenv("ENVIRONMENT", os.getenv("ENV", "dev"))
ENV_NORMALIZED = ENV.strip().lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_STAGE = ENV_NORMALIZED in {"stage", "staging"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
IS_TEST = ENV_NORMALIZED == "test"

# CORS
_cors_env = os.getenv("CORS_ORIGINS", os.getenv("CORS_ORIGIN", ""))
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and (IS_DEV or IS_TEST):
    CORS_ORIGINS = [
        "http://localhost:3001",
        "http://127.0.0.1:3001",
        "http://localhost:5173",
    ]

CORS_ALLOW_ORIGIN_REGEX = os.getenv("CORS_ALLOW_ORIGIN_REGEX", "").strip() or None

# Auth (JWT)
DEFAULT_JWT_SECRET = "dev-secret-change-me"
JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24)))
JWT_REFRESH_EXPIRE_MINUTES = int(os.getenv("JWT_REFRESH_EXPIRE_MINUTES", str(60 * 24 * 7)))
BCRYPT_SALT_ROUNDS = int(os.getenv("BCRYPT_SALT_ROUNDS", "12"))

# Rate limit (per company, or per client IP for anonymous calls)
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "1000"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))

# Requests slower than this are logged at WARNING
SLOW_REQUEST_MS = float(os.getenv("SLOW_REQUEST_MS", "1000"))

# Login brute-force protection
LOGIN_MAX_FAILED_ATTEMPTS = int(os.getenv("LOGIN_MAX_FAILED_ATTEMPTS", "5"))
LOGIN_ATTEMPT_WINDOW_MINUTES = int(os.getenv("LOGIN_ATTEMPT_WINDOW_MINUTES", "15"))
LOGIN_LOCK_MINUTES = int(os.getenv("LOGIN_LOCK_MINUTES", "15"))

# First super admin, created on startup when the password is set
BOOTSTRAP_ADMIN_EMAIL = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "admin@salessync.io").strip().lower()
BOOTSTRAP_ADMIN_PASSWORD = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "").strip()
BOOTSTRAP_COMPANY_NAME = os.getenv("BOOTSTRAP_COMPANY_NAME", "SalesSync").strip() or "SalesSync"
BOOTSTRAP_ALLOW = os.getenv("BOOTSTRAP_ALLOW", "").strip().lower() in TRUTHY
