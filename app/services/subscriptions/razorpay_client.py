import base64
import json
from typing import Any, Optional

import httpx

from app.core.config import (
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_API_BASE,
    GATEWAY_TIMEOUT_SECONDS,
)
from app.core.exceptions import AppException, failure_details
from app.constants.error_codes import ErrorCode, Guidance
from app.utils.logger import get_logger
from app.services.subscriptions.payment_errors import (
    GatewayErrorDescriptor,
    GatewayErrorKind,
    PaymentFailure,
    classify_failure,
    classify_http_failure,
)

logger = get_logger(__name__)


# =====================================================
# ERRORS
# =====================================================
class GatewayError(Exception):
    pass


class GatewayUnavailable(GatewayError):
    """Connection failure or timeout; safe to retry."""


class GatewayRejected(GatewayError):
    """Gateway answered with an error status or a body we cannot parse."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int],
        kind: GatewayErrorKind,
        descriptor: Optional[GatewayErrorDescriptor] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind
        self.descriptor = descriptor or GatewayErrorDescriptor()
        self.failure: PaymentFailure = classify_failure(self.descriptor)


# =====================================================
# CLIENT
# =====================================================
class RazorpayClient:
    """Thin async client over the two gateway endpoints the checkout needs."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        *,
        base_url: str = RAZORPAY_API_BASE,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _auth_header(self) -> str:
        token = base64.b64encode(f"{self.key_id}:{self.key_secret}".encode("utf-8"))
        return f"Basic {token.decode('ascii')}"

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    json=payload,
                    headers={"Authorization": self._auth_header()},
                )
        except httpx.TransportError as exc:
            logger.warning(
                "Gateway unreachable",
                extra={"path": path, "error": type(exc).__name__},
            )
            raise GatewayUnavailable(f"Unable to reach payment gateway: {type(exc).__name__}") from exc

        if response.is_error:
            descriptor = GatewayErrorDescriptor.from_mapping(_safe_json(response))
            kind = classify_http_failure(response.status_code, descriptor)
            logger.error(
                "Gateway API error",
                extra={
                    "path": path,
                    "status": response.status_code,
                    "gateway_code": descriptor.code,
                    "kind": kind.value,
                },
            )
            raise GatewayRejected(
                descriptor.description or f"Gateway returned HTTP {response.status_code}",
                status_code=response.status_code,
                kind=kind,
                descriptor=descriptor,
            )

        body = _safe_json(response)
        if not isinstance(body, dict):
            raise GatewayRejected(
                "Unparsable response from payment gateway",
                status_code=response.status_code,
                kind=GatewayErrorKind.gateway_error,
            )
        return body

    async def create_order(self, *, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        return await self._request(
            "POST",
            "/orders",
            {
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            },
        )

    async def fetch_payment(self, payment_id: str) -> dict:
        return await self._request("GET", f"/payments/{payment_id}")


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


# =====================================================
# DEPENDENCY
# =====================================================
def get_gateway_client() -> RazorpayClient:
    if not RAZORPAY_KEY_ID or not RAZORPAY_KEY_SECRET:
        logger.error(
            "Razorpay credentials missing",
            extra={
                "has_key_id": bool(RAZORPAY_KEY_ID),
                "has_key_secret": bool(RAZORPAY_KEY_SECRET),
            },
        )
        raise AppException(
            500,
            "Payment gateway credentials not configured",
            ErrorCode.GATEWAY_NOT_CONFIGURED,
            failure_details(Guidance.CONTACT_SUPPORT),
        )

    return RazorpayClient(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)


# =====================================================
# BOUNDARY MAPPING
# =====================================================
def gateway_exception(exc: GatewayError) -> AppException:
    """Map a gateway failure onto the API error taxonomy."""
    if isinstance(exc, GatewayUnavailable):
        return AppException(
            503,
            "Payment gateway is unreachable. Please try again shortly.",
            ErrorCode.GATEWAY_UNREACHABLE,
            failure_details(Guidance.RETRY, retryable=True),
        )

    if isinstance(exc, GatewayRejected):
        failure = exc.failure
        if failure.degraded_method:
            status_code = 422
        elif exc.kind == GatewayErrorKind.bad_request:
            status_code = 400
        else:
            status_code = 502

        return AppException(
            status_code,
            failure.message if failure.degraded_method or exc.kind == GatewayErrorKind.bad_request else str(exc),
            ErrorCode.GATEWAY_REJECTED,
            failure_details(
                failure.guidance,
                retryable=exc.kind == GatewayErrorKind.gateway_error,
                kind=exc.kind,
                failure_reason=failure.reason,
                gateway_status=exc.status_code,
                alternatives=failure.alternatives or None,
            ),
        )

    return AppException(
        502,
        "Payment gateway error",
        ErrorCode.GATEWAY_REJECTED,
        failure_details(Guidance.RETRY),
    )
