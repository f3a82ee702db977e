import base64
from dataclasses import dataclass
from typing import Optional

import httpx

from app.core import config
from app.core.exceptions import AppException, failure_details
from app.constants.error_codes import ErrorCode, Guidance
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


class EmailSender:
    """Sends mail through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        sender: str = config.EMAIL_FROM,
        base_url: str = config.RESEND_API_BASE,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._sender = sender
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        attachments: list[EmailAttachment] | None = None,
    ) -> str:
        payload = {
            "from": self._sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "attachments": [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                    "content_type": a.content_type,
                }
                for a in attachments or []
            ],
        }

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                r = await client.post(
                    "/emails",
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.TransportError as exc:
            logger.error("Email provider unreachable", extra={"error": type(exc).__name__})
            raise AppException(
                503,
                "Email service is unreachable",
                ErrorCode.EMAIL_DELIVERY_FAILED,
                failure_details(Guidance.RETRY, retryable=True),
            )

        if r.status_code >= 400:
            logger.error("Email provider error", extra={"status": r.status_code})
            raise AppException(
                502,
                f"Email provider error: {r.status_code}",
                ErrorCode.EMAIL_DELIVERY_FAILED,
                failure_details(Guidance.RETRY, retryable=r.status_code >= 500),
            )

        try:
            message_id = r.json().get("id", "")
        except (ValueError, AttributeError):
            message_id = ""
        logger.info("Email sent", extra={"message_id": message_id})
        return message_id


def get_email_sender() -> EmailSender:
    if not config.RESEND_API_KEY:
        raise AppException(
            500,
            "Email delivery not configured",
            ErrorCode.EMAIL_NOT_CONFIGURED,
            failure_details(Guidance.CONTACT_SUPPORT),
        )
    return EmailSender(config.RESEND_API_KEY)
