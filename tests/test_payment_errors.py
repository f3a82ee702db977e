from app.constants.error_codes import Guidance
from app.services.subscriptions.payment_errors import (
    GatewayErrorDescriptor,
    GatewayErrorKind,
    PaymentFailureReason,
    classify_failure,
    classify_http_failure,
)


def test_descriptor_unwraps_gateway_error_envelope():
    descriptor = GatewayErrorDescriptor.from_mapping(
        {
            "error": {
                "code": "BAD_REQUEST_ERROR",
                "description": "The amount must be atleast INR 1.00",
                "source": "NA",
                "reason": "input_validation_failed",
            }
        }
    )

    assert descriptor.code == "BAD_REQUEST_ERROR"
    assert descriptor.source is None
    assert descriptor.reason == "input_validation_failed"


def test_descriptor_from_garbage_is_empty():
    assert GatewayErrorDescriptor.from_mapping("<html>502</html>") == GatewayErrorDescriptor()
    assert GatewayErrorDescriptor.from_mapping(None) == GatewayErrorDescriptor()


def test_http_failure_kinds():
    empty = GatewayErrorDescriptor()

    assert classify_http_failure(400, empty) == GatewayErrorKind.bad_request
    assert classify_http_failure(404, GatewayErrorDescriptor(code="BAD_REQUEST_ERROR")) == GatewayErrorKind.bad_request
    assert classify_http_failure(502, empty) == GatewayErrorKind.gateway_error
    assert classify_http_failure(409, GatewayErrorDescriptor(code="GATEWAY_ERROR")) == GatewayErrorKind.gateway_error
    assert classify_http_failure(404, empty) == GatewayErrorKind.unknown


def test_phonepe_failure_offers_other_upi_apps():
    failure = classify_failure(
        GatewayErrorDescriptor(
            code="BAD_REQUEST_ERROR",
            description="Payment failed because PhonePe is facing technical issues",
        )
    )

    assert failure.reason == PaymentFailureReason.third_party_method_degraded
    assert failure.guidance == Guidance.TRY_ANOTHER_METHOD
    assert failure.degraded_method == "phonepe"
    assert failure.alternatives == ["Google Pay", "Paytm", "Amazon Pay", "BHIM UPI"]


def test_degraded_method_detected_in_reason_field():
    failure = classify_failure(GatewayErrorDescriptor(reason="phonepe_upstream_down"))
    assert failure.reason == PaymentFailureReason.third_party_method_degraded


def test_bad_request_without_marker_asks_to_fix_details():
    failure = classify_failure(GatewayErrorDescriptor(code="BAD_REQUEST_ERROR", description="Card expired"))

    assert failure.reason == PaymentFailureReason.invalid_details
    assert failure.guidance == Guidance.FIX_DETAILS
    assert failure.alternatives == []


def test_anything_else_is_generic_retry():
    failure = classify_failure(GatewayErrorDescriptor(code="SERVER_ERROR"))

    assert failure.reason == PaymentFailureReason.generic
    assert failure.guidance == Guidance.RETRY
