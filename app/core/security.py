# app/core/security.py

import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional

from jose import jwt, JWTError

from app.core.config import (
    AUTH_JWT_SECRET,
    AUTH_JWT_ALGORITHM,
    AUTH_JWT_AUDIENCE,
)
from app.core.exceptions import AppException, failure_details
from app.constants.error_codes import ErrorCode, Guidance


# =====================================================
# SESSION USER
# =====================================================
@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str
    full_name: Optional[str] = None


def auth_failed(message: str) -> AppException:
    return AppException(
        401,
        message,
        ErrorCode.AUTH_FAILED,
        failure_details(Guidance.RELOGIN),
    )


# =====================================================
# DECODE + VALIDATE SESSION TOKEN
# =====================================================
def decode_session_token(token: str) -> SessionUser:
    """
    Validate a bearer token issued by the external auth provider.

    The provider signs HS256 tokens with a shared secret; ``sub`` is the
    user id and ``email`` is mandatory because subscriptions are keyed by it.
    """
    options = {"verify_aud": bool(AUTH_JWT_AUDIENCE)}

    try:
        payload = jwt.decode(
            token,
            AUTH_JWT_SECRET,
            algorithms=[AUTH_JWT_ALGORITHM],
            audience=AUTH_JWT_AUDIENCE or None,
            options=options,
        )
    except JWTError:
        raise auth_failed("Invalid or expired session")

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise auth_failed("User not authenticated or email not available")

    metadata = payload.get("user_metadata") or {}

    return SessionUser(
        id=str(user_id),
        email=email,
        full_name=metadata.get("full_name"),
    )


# =====================================================
# GATEWAY SIGNATURES (HMAC-SHA256, hex)
# =====================================================
def hmac_sha256_hex(secret: str, message: bytes | str) -> str:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: str,
    secret: str,
) -> bool:
    expected = hmac_sha256_hex(secret, f"{order_id}|{payment_id}")
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def verify_webhook_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    expected = hmac_sha256_hex(secret, raw_body)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
