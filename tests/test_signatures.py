import pytest

from app.core.security import (
    hmac_sha256_hex,
    verify_payment_signature,
    verify_webhook_signature,
)

SECRET = "test_key_secret"
ORDER_ID = "order_N5mK2cQ8ZxYt1A"
PAYMENT_ID = "pay_N5mL0aB7cDe9Fg"


def _mutate(value: str, index: int) -> str:
    replacement = "0" if value[index] != "0" else "1"
    return value[:index] + replacement + value[index + 1:]


@pytest.fixture
def signature() -> str:
    return hmac_sha256_hex(SECRET, f"{ORDER_ID}|{PAYMENT_ID}")


def test_known_vector():
    message = "The quick brown fox jumps over the lazy dog"
    assert hmac_sha256_hex("key", message) == (
        "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"
    )


def test_valid_signature_accepted(signature):
    assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, SECRET)


@pytest.mark.parametrize("index", range(len(ORDER_ID)))
def test_any_order_id_mutation_rejected(signature, index):
    assert not verify_payment_signature(_mutate(ORDER_ID, index), PAYMENT_ID, signature, SECRET)


@pytest.mark.parametrize("index", range(len(PAYMENT_ID)))
def test_any_payment_id_mutation_rejected(signature, index):
    assert not verify_payment_signature(ORDER_ID, _mutate(PAYMENT_ID, index), signature, SECRET)


@pytest.mark.parametrize("index", [0, 1, 31, 32, 62, 63])
def test_any_signature_mutation_rejected(signature, index):
    assert not verify_payment_signature(ORDER_ID, PAYMENT_ID, _mutate(signature, index), SECRET)


def test_signature_from_other_secret_rejected():
    forged = hmac_sha256_hex("some-other-secret", f"{ORDER_ID}|{PAYMENT_ID}")
    assert not verify_payment_signature(ORDER_ID, PAYMENT_ID, forged, SECRET)


def test_swapped_ids_rejected(signature):
    assert not verify_payment_signature(PAYMENT_ID, ORDER_ID, signature, SECRET)


def test_webhook_signature_covers_exact_bytes():
    body = b'{"event":"payment.captured","payload":{}}'
    sig = hmac_sha256_hex("whsec", body)

    assert verify_webhook_signature(body, sig, "whsec")
    assert not verify_webhook_signature(body + b" ", sig, "whsec")
    assert not verify_webhook_signature(body, sig, "other")
