import logging
import sys
from logging.config import dictConfig
from app.core.config import (
    APP_ENV,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_WEBHOOK_SECRET,
    RESEND_API_KEY,
    AUTH_JWT_SECRET,
)

LOG_LEVEL = "DEBUG" if APP_ENV == "development" else "INFO"

REDACTED = "***"


class SecretRedactionFilter(logging.Filter):
    """Masks configured secret values in rendered log messages."""

    def __init__(self, secrets=()):
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True

        message = record.getMessage()
        redacted = message
        for secret in self._secrets:
            redacted = redacted.replace(secret, REDACTED)

        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def setup_logging():
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FILTERS
            # -----------------
            "filters": {
                "redact_secrets": {
                    "()": SecretRedactionFilter,
                    "secrets": [
                        RAZORPAY_KEY_SECRET,
                        RAZORPAY_WEBHOOK_SECRET,
                        RESEND_API_KEY,
                        AUTH_JWT_SECRET,
                    ],
                },
            },

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s | %(levelname)s | "
                        "%(name)s | %(message)s"
                    ),
                },
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | %(request_id)s | "
                        "%(client_addr)s | %(method)s | "
                        "%(path)s | %(status_code)s | "
                        "%(process_time_ms)sms"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                    "filters": ["redact_secrets"],
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                # Used by request_logging_middleware
                "access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                # gateway/email HTTP calls; request lines carry auth headers at DEBUG
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
                "apscheduler": {"level": "INFO"},
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": LOG_LEVEL,
                "handlers": ["console"],
            },
        }
    )
