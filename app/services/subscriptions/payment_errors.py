"""
Classification of payment gateway failures.

Gateway error bodies and checkout-widget failure descriptors are parsed here,
once, into enums. Everything downstream branches on ``GatewayErrorKind`` and
``PaymentFailureReason`` instead of inspecting free text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from app.constants.error_codes import Guidance


class GatewayErrorKind(str, Enum):
    bad_request = "bad_request"
    gateway_error = "gateway_error"
    unknown = "unknown"


class PaymentFailureReason(str, Enum):
    third_party_method_degraded = "third_party_method_degraded"
    invalid_details = "invalid_details"
    generic = "generic"


# UPI apps known to fail upstream of the gateway, and what to offer instead
DEGRADED_METHOD_MARKERS = {
    "phonepe": ["Google Pay", "Paytm", "Amazon Pay", "BHIM UPI"],
}

BAD_REQUEST_CODE = "BAD_REQUEST_ERROR"
GATEWAY_ERROR_CODE = "GATEWAY_ERROR"
SERVER_ERROR_CODE = "SERVER_ERROR"


@dataclass(frozen=True)
class GatewayErrorDescriptor:
    code: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    reason: Optional[str] = None
    step: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Any) -> "GatewayErrorDescriptor":
        if not isinstance(data, Mapping):
            return cls()
        # gateway responses nest the descriptor under "error"
        if isinstance(data.get("error"), Mapping):
            data = data["error"]

        def _text(key: str) -> Optional[str]:
            value = data.get(key)
            return str(value) if value not in (None, "", "NA") else None

        return cls(
            code=_text("code"),
            description=_text("description"),
            source=_text("source"),
            reason=_text("reason"),
            step=_text("step"),
        )


@dataclass(frozen=True)
class PaymentFailure:
    reason: PaymentFailureReason
    guidance: Guidance
    message: str
    degraded_method: Optional[str] = None
    alternatives: list[str] = field(default_factory=list)


def detect_degraded_method(descriptor: GatewayErrorDescriptor) -> Optional[str]:
    haystacks = [
        (descriptor.description or "").lower(),
        (descriptor.reason or "").lower(),
        (descriptor.source or "").lower(),
    ]
    for marker in DEGRADED_METHOD_MARKERS:
        if any(marker in text for text in haystacks):
            return marker
    return None


def classify_http_failure(status_code: int, descriptor: GatewayErrorDescriptor) -> GatewayErrorKind:
    if status_code == 400 or descriptor.code == BAD_REQUEST_CODE:
        return GatewayErrorKind.bad_request
    if status_code >= 500 or descriptor.code in {GATEWAY_ERROR_CODE, SERVER_ERROR_CODE}:
        return GatewayErrorKind.gateway_error
    return GatewayErrorKind.unknown


def classify_failure(descriptor: GatewayErrorDescriptor) -> PaymentFailure:
    method = detect_degraded_method(descriptor)
    if method:
        return PaymentFailure(
            reason=PaymentFailureReason.third_party_method_degraded,
            guidance=Guidance.TRY_ANOTHER_METHOD,
            message=f"{method.title()} is facing issues. Please try with a different payment method.",
            degraded_method=method,
            alternatives=list(DEGRADED_METHOD_MARKERS[method]),
        )

    if descriptor.code == BAD_REQUEST_CODE:
        return PaymentFailure(
            reason=PaymentFailureReason.invalid_details,
            guidance=Guidance.FIX_DETAILS,
            message="Payment details are invalid. Please retry with the right details.",
        )

    return PaymentFailure(
        reason=PaymentFailureReason.generic,
        guidance=Guidance.RETRY,
        message="Your payment could not be completed. Please try again or use a different payment method.",
    )
