from typing import Optional

from fastapi import Header, Request

from app.core.security import SessionUser, decode_session_token, auth_failed
from app.utils.logger import get_logger

logger = get_logger("auth.guard")


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> SessionUser:
    if not authorization:
        logger.warning("Missing authorization header")
        raise auth_failed("No authorization header provided")

    if not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise auth_failed("Invalid authorization header")

    token = authorization.split("Bearer ")[1].strip()
    user = decode_session_token(token)

    request.state.user = user
    return user
