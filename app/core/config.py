# app/core/config.py

import os
from dotenv import load_dotenv
from app.utils.logger import get_logger

logger = get_logger(__name__)

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./invomitra.db")

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = _env_flag("DB_ECHO_POOL", "false")

# ---- SSL ----
DB_SSL_VERIFY = _env_flag("DB_SSL_VERIFY", "true")
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")

# =====================================================
# SESSION TOKENS (external auth provider)
# =====================================================
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
if not AUTH_JWT_SECRET:
    raise ValueError("AUTH_JWT_SECRET must be set")

AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
# empty string disables the audience check
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")

# =====================================================
# PAYMENT GATEWAY (Razorpay)
# =====================================================
# Optional at startup; requests that need them fail with GATEWAY_NOT_CONFIGURED.
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET")
RAZORPAY_API_BASE = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1")

GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", 15))

# =====================================================
# FEATURE FLAGS
# =====================================================
# false = gateway under maintenance, checkout is refused
PAYMENTS_ENABLED = _env_flag("PAYMENTS_ENABLED", "true")
# false = invoice features are reachable without an active plan
SUBSCRIPTION_GATE_ENABLED = _env_flag("SUBSCRIPTION_GATE_ENABLED", "true")

# =====================================================
# EMAIL (Resend)
# =====================================================
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_API_BASE = os.getenv("RESEND_API_BASE", "https://api.resend.com")
EMAIL_FROM = os.getenv("EMAIL_FROM", "InvoMitra <onboarding@resend.dev>")

# =====================================================
# SCHEDULER
# =====================================================
ENABLE_SCHEDULER = _env_flag("ENABLE_SCHEDULER", "false")
