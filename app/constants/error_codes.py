from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- AUTH ----------------
    AUTH_FAILED = "AUTH_FAILED"

    # ---------------- PAYMENTS ----------------
    INVALID_PAYMENT_DETAILS = "INVALID_PAYMENT_DETAILS"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    GATEWAY_UNREACHABLE = "GATEWAY_UNREACHABLE"
    GATEWAY_REJECTED = "GATEWAY_REJECTED"
    GATEWAY_NOT_CONFIGURED = "GATEWAY_NOT_CONFIGURED"
    PAYMENT_NOT_CAPTURED = "PAYMENT_NOT_CAPTURED"
    PAYMENTS_DISABLED = "PAYMENTS_DISABLED"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"

    # ---------------- SUBSCRIPTIONS ----------------
    SUBSCRIPTION_REQUIRED = "SUBSCRIPTION_REQUIRED"

    # ---------------- INVOICES ----------------
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    INVOICE_NUMBER_EXISTS = "INVOICE_NUMBER_EXISTS"
    INVOICE_INVALID_STATE = "INVOICE_INVALID_STATE"

    # ---------------- CLIENTS ----------------
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"

    # ---------------- EMAIL ----------------
    EMAIL_NOT_CONFIGURED = "EMAIL_NOT_CONFIGURED"
    EMAIL_DELIVERY_FAILED = "EMAIL_DELIVERY_FAILED"


class Guidance(str, Enum):
    """What the caller should offer the user after a failure."""

    RELOGIN = "relogin"
    TRY_ANOTHER_METHOD = "try_another_method"
    RETRY = "retry"
    FIX_DETAILS = "fix_details"
    CONTACT_SUPPORT = "contact_support"
