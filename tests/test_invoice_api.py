import base64
import json
from decimal import Decimal

from sqlalchemy import select

from app.core import config
from app.models.support.activity_models import UserActivity
from conftest import activate


def invoice_payload(**overrides):
    payload = {
        "invoice_number": "INV-0001",
        "client_name": "Kaveri Traders",
        "client_email": "accounts@kaveri.example",
        "gst_type": "igst",
        "igst_rate": "18",
        "discount_amount": "100",
        "items": [
            {"description": "Design retainer", "hsn_sac_code": "998391", "quantity": 1, "unit_price": "1500"},
            {"description": "Hosting", "quantity": 1, "unit_price": "500"},
        ],
    }
    payload.update(overrides)
    return payload


def money(value) -> Decimal:
    return Decimal(str(value))


async def create(client, headers, **overrides):
    r = await client.post("/invoices/", json=invoice_payload(**overrides), headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["data"]


# =====================================================
# CREATE / READ
# =====================================================
async def test_two_item_igst_invoice_totals(client, subscribed_user, auth_headers):
    data = await create(client, auth_headers)

    assert data["status"] == "pending"
    assert money(data["subtotal"]) == Decimal("2000")
    assert money(data["igst_amount"]) == Decimal("360")
    assert money(data["cgst_amount"]) == money(data["sgst_amount"]) == 0
    assert money(data["tax_amount"]) == Decimal("360")
    assert money(data["total"]) == Decimal("2260")

    first, second = data["items"]
    assert (money(first["taxable_amount"]), money(first["igst_amount"])) == (Decimal("1500"), Decimal("270"))
    assert (money(second["taxable_amount"]), money(second["igst_amount"])) == (Decimal("500"), Decimal("90"))
    # stored line total is tax-exclusive; the display total adds tax back
    assert money(first["total"]) == Decimal("1500")
    assert money(first["display_total"]) == Decimal("1770")


async def test_cgst_sgst_invoice_uses_line_rates(client, subscribed_user, auth_headers):
    data = await create(
        client,
        auth_headers,
        gst_type="cgst_sgst",
        discount_amount="0",
        items=[
            {"description": "Consulting", "quantity": 2, "unit_price": "1000"},
            {"description": "Books", "quantity": 1, "unit_price": "1000", "cgst_rate": "2.5", "sgst_rate": "2.5"},
        ],
    )

    assert money(data["cgst_amount"]) == Decimal("230")
    assert money(data["sgst_amount"]) == Decimal("230")
    assert money(data["igst_amount"]) == 0
    assert money(data["total"]) == Decimal("3460")


async def test_invoice_number_generated_when_blank(client, subscribed_user, auth_headers):
    data = await create(client, auth_headers, invoice_number="  ")

    assert data["invoice_number"].startswith("INV-")
    assert len(data["invoice_number"]) == 10


async def test_duplicate_invoice_number_conflicts(client, subscribed_user, auth_headers):
    await create(client, auth_headers)

    r = await client.post("/invoices/", json=invoice_payload(), headers=auth_headers)

    assert r.status_code == 409
    assert r.json()["error_code"] == "INVOICE_NUMBER_EXISTS"


async def test_invoice_requires_items(client, subscribed_user, auth_headers):
    r = await client.post("/invoices/", json=invoice_payload(items=[]), headers=auth_headers)

    assert r.status_code == 422
    assert r.json()["error_code"] == "VALIDATION_ERROR"


async def test_upi_details_produce_qr(client, subscribed_user, auth_headers):
    data = await create(client, auth_headers, upi_id="kaveri@upi", payment_amount="2260")

    assert data["payment_qr"].startswith("data:image/svg+xml;base64,")
    svg = base64.b64decode(data["payment_qr"].split(",", 1)[1])
    assert b"<svg" in svg


async def test_client_snapshot_copied_onto_invoice(client, subscribed_user, auth_headers):
    r = await client.post(
        "/clients/",
        json={"name": "Nila Foods", "email": "billing@nila.example", "gstin": "29ABCDE1234F1Z5"},
        headers=auth_headers,
    )
    client_id = r.json()["data"]["id"]

    data = await create(client, auth_headers, client_id=client_id, client_name="ignored")

    assert data["client_id"] == client_id
    assert data["client_name"] == "Nila Foods"
    assert data["client_gstin"] == "29ABCDE1234F1Z5"


async def test_list_filters_by_status(client, subscribed_user, auth_headers):
    first = await create(client, auth_headers, invoice_number="INV-A")
    await create(client, auth_headers, invoice_number="INV-B")
    await client.patch(f"/invoices/{first['id']}/status", json={"status": "paid"}, headers=auth_headers)

    r = await client.get("/invoices/", params={"status": "paid"}, headers=auth_headers)

    data = r.json()["data"]
    assert data["total"] == 1
    assert [i["invoice_number"] for i in data["items"]] == ["INV-A"]


# =====================================================
# UPDATE / STATUS / DELETE
# =====================================================
async def test_update_replaces_items_and_keeps_status(client, subscribed_user, auth_headers):
    created = await create(client, auth_headers)
    await client.patch(f"/invoices/{created['id']}/status", json={"status": "paid"}, headers=auth_headers)

    r = await client.put(
        f"/invoices/{created['id']}",
        json=invoice_payload(discount_amount="0", items=[{"description": "Audit", "quantity": 2, "unit_price": "250"}]),
        headers=auth_headers,
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert len(data["items"]) == 1
    assert data["items"][0]["description"] == "Audit"
    assert money(data["subtotal"]) == Decimal("500")
    assert money(data["total"]) == Decimal("590")
    assert data["status"] == "paid"


async def test_status_transitions(client, subscribed_user, auth_headers):
    created = await create(client, auth_headers)
    url = f"/invoices/{created['id']}/status"

    r = await client.patch(url, json={"status": "overdue"}, headers=auth_headers)
    assert r.json()["data"]["status"] == "overdue"

    r = await client.patch(url, json={"status": "paid"}, headers=auth_headers)
    assert r.json()["data"]["status"] == "paid"

    r = await client.patch(url, json={"status": "pending"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error_code"] == "INVOICE_INVALID_STATE"


async def test_delete_invoice(client, subscribed_user, auth_headers, session_factory):
    created = await create(client, auth_headers)

    r = await client.delete(f"/invoices/{created['id']}", headers=auth_headers)
    assert r.status_code == 200

    r = await client.get(f"/invoices/{created['id']}", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error_code"] == "INVOICE_NOT_FOUND"

    async with session_factory() as session:
        messages = (await session.execute(select(UserActivity.message))).scalars().all()
    assert any("deleted invoice INV-0001" in m for m in messages)


async def test_other_users_invoice_is_not_found(client, subscribed_user, auth_headers, other_user, other_auth_headers, session_factory):
    created = await create(client, auth_headers)
    await activate(session_factory, other_user)

    r = await client.get(f"/invoices/{created['id']}", headers=other_auth_headers)

    assert r.status_code == 404


# =====================================================
# SUBSCRIPTION GATE
# =====================================================
async def test_invoices_require_active_subscription(client, auth_headers):
    r = await client.get("/invoices/", headers=auth_headers)

    assert r.status_code == 403
    assert r.json()["error_code"] == "SUBSCRIPTION_REQUIRED"


async def test_expired_subscription_is_gated(client, user, auth_headers, session_factory):
    await activate(session_factory, user, days=-1)

    r = await client.get("/invoices/", headers=auth_headers)

    assert r.status_code == 403


async def test_gate_can_be_switched_off(client, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "SUBSCRIPTION_GATE_ENABLED", False)

    r = await client.get("/invoices/", headers=auth_headers)

    assert r.status_code == 200
    assert r.json()["data"]["total"] == 0


# =====================================================
# PREVIEW
# =====================================================
async def test_preview_needs_no_subscription(client, auth_headers):
    r = await client.post(
        "/invoices/preview-totals",
        json={
            "currency": "INR",
            "gst_type": "igst",
            "discount_amount": 100,
            "items": [{"quantity": 1, "unit_price": 1500}, {"quantity": 1, "unit_price": 500}],
        },
        headers=auth_headers,
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert money(data["total"]) == Decimal("2260")
    assert data["formatted_total"] == "₹2,260.00"
    assert money(data["items"][0]["display_total"]) == Decimal("1770")


async def test_preview_treats_garbage_as_zero(client, auth_headers):
    r = await client.post(
        "/invoices/preview-totals",
        json={
            "gst_type": "cgst_sgst",
            "discount_amount": "lots",
            "items": [
                {"quantity": "two", "unit_price": 100},
                {"quantity": 1, "unit_price": None},
                {"quantity": 1, "unit_price": "100"},
            ],
        },
        headers=auth_headers,
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert money(data["subtotal"]) == Decimal("100")
    assert money(data["total_cgst"]) == Decimal("9")
    assert money(data["total"]) == Decimal("118")


async def test_preview_ignores_absurd_magnitudes(client, auth_headers):
    r = await client.post(
        "/invoices/preview-totals",
        json={
            "gst_type": "igst",
            "discount_amount": "1e999999",
            "items": [
                {"quantity": 10, "unit_price": "1e999999"},
                {"quantity": "1e200000", "unit_price": 1},
                {"quantity": 1, "unit_price": "100"},
            ],
        },
        headers=auth_headers,
    )

    assert r.status_code == 200
    data = r.json()["data"]
    assert money(data["subtotal"]) == Decimal("100")
    assert money(data["discount_amount"]) == 0
    assert money(data["total"]) == Decimal("118")


async def test_invoice_rejects_unstorable_unit_price(client, subscribed_user, auth_headers):
    items = [{"description": "Everything", "quantity": 10, "unit_price": "1e999999"}]

    r = await client.post("/invoices/", json=invoice_payload(items=items), headers=auth_headers)

    assert r.status_code == 422
    assert r.json()["error_code"] == "VALIDATION_ERROR"


async def test_invoice_rejects_totals_beyond_column_range(client, subscribed_user, auth_headers):
    items = [{"description": "Bulk", "quantity": 1_000_000, "unit_price": "9999999999.99"}]

    r = await client.post("/invoices/", json=invoice_payload(items=items), headers=auth_headers)

    assert r.status_code == 422
    assert r.json()["error_code"] == "VALIDATION_ERROR"

    r = await client.get("/invoices/", headers=auth_headers)
    assert r.json()["data"]["total"] == 0


# =====================================================
# PDF / EMAIL
# =====================================================
async def test_pdf_download(client, subscribed_user, auth_headers):
    created = await create(client, auth_headers, upi_id="kaveri@upi", payment_amount="2260")

    r = await client.get(f"/invoices/{created['id']}/pdf", headers=auth_headers)

    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert 'filename="invoice-INV-0001.pdf"' in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


async def test_email_sends_pdf_attachment(client, subscribed_user, auth_headers, mailer):
    created = await create(client, auth_headers)

    r = await client.post(
        f"/invoices/{created['id']}/email",
        json={"to": "accounts@kaveri.example", "message": "Thanks for the prompt payment"},
        headers=auth_headers,
    )

    assert r.status_code == 200
    assert r.json()["data"]["message_id"] == "email_1"

    [request] = mailer.requests
    assert request.url.path.endswith("/emails")
    assert request.headers["Authorization"] == "Bearer re_test_key"
    sent = json.loads(request.content)
    assert sent["to"] == ["accounts@kaveri.example"]
    assert sent["subject"] == "Invoice INV-0001"
    assert "Thanks for the prompt payment" in sent["html"]
    [attachment] = sent["attachments"]
    assert attachment["filename"] == "invoice-INV-0001.pdf"
    assert base64.b64decode(attachment["content"]).startswith(b"%PDF")


async def test_email_provider_failure(client, subscribed_user, auth_headers, mailer):
    created = await create(client, auth_headers)
    mailer.status_code = 500

    r = await client.post(f"/invoices/{created['id']}/email", json={"to": "a@b.example"}, headers=auth_headers)

    assert r.status_code == 502
    assert r.json()["error_code"] == "EMAIL_DELIVERY_FAILED"
    assert r.json()["details"]["retryable"] is True


# =====================================================
# CLIENTS
# =====================================================
async def test_client_crud(client, subscribed_user, auth_headers):
    r = await client.post("/clients/", json={"name": "Nila Foods", "phone": "9800000000"}, headers=auth_headers)
    assert r.status_code == 200
    client_id = r.json()["data"]["id"]

    r = await client.patch(f"/clients/{client_id}", json={"address": "12 MG Road"}, headers=auth_headers)
    assert r.json()["data"]["address"] == "12 MG Road"

    r = await client.get("/clients/", params={"name": "nila"}, headers=auth_headers)
    assert r.json()["data"]["total"] == 1

    r = await client.delete(f"/clients/{client_id}", headers=auth_headers)
    assert r.status_code == 200

    r = await client.get(f"/clients/{client_id}", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error_code"] == "CLIENT_NOT_FOUND"
