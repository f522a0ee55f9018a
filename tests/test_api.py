from decimal import Decimal
from urllib.parse import quote, urlsplit

import pytest
from fastapi.testclient import TestClient

from conftest import make_image
from paycore.main import create_app
from paycore.modules.scanning import EICAR_SIGNATURE

ADMIN = {"X-Admin-Role": "admin"}


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as client:
        yield client


def manager(token: str) -> dict[str, str]:
    return {"X-Admin-Role": "finance_manager", "Authorization": f"Bearer {token}"}


def upload(client, content=None, name="receipt.jpg", order_id=55, **form):
    files = {"file": (name, content or make_image(pad_to=4096), "image/jpeg")}
    return client.post("/api/proofs", files=files, data={"order_id": str(order_id), **form})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["backend"] == "memory"


def test_phone_validation(client):
    body = client.post("/api/phones/validate", json={"phone": "+92 300 1234567"}).json()

    assert body == {"phone": "+92 300 1234567", "valid": True, "normalized": "03001234567", "network": "JAZZ"}


def test_wallet_checkout_and_transaction_lookup(client, admin_token):
    response = client.post(
        "/api/payments/wallet",
        json={"gateway": "jazzcash", "order_id": 55, "amount": "1000", "phone": "03001234567"},
    )

    assert response.status_code == 201
    transaction = response.json()
    assert transaction["status"] == "completed"
    assert Decimal(transaction["amount"]) == Decimal("1000")

    listed = client.get("/api/payments/transactions", params={"order_id": 55}, headers=manager(admin_token))
    assert listed.json()["total"] == 1
    fetched = client.get(f"/api/payments/transactions/{transaction['transaction_id']}", headers=ADMIN)
    assert fetched.json()["transaction_id"] == transaction["transaction_id"]


@pytest.mark.parametrize(
    "payload, status, code",
    [
        ({"gateway": "jazzcash", "order_id": 1, "amount": "10", "phone": "12345"}, 400, "INVALID_PHONE"),
        ({"gateway": "jazzcash", "order_id": 1, "amount": "-1", "phone": "03001234567"}, 400, "INVALID_AMOUNT"),
    ],
)
def test_validation_errors_map_to_400(client, payload, status, code):
    response = client.post("/api/payments/wallet", json=payload)

    assert response.status_code == status
    error = response.json()["error"]
    assert error["code"] == code
    assert error["kind"] == "validation"
    assert error["retryable"] is False


def test_unknown_transaction_is_404(client):
    response = client.get("/api/payments/transactions/TXN_nope", headers=ADMIN)

    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"


def test_authentication_and_role_errors(client, container):
    missing = client.get("/api/wallet", headers={"X-Admin-Role": "finance_manager"})
    forbidden = client.get("/api/wallet", headers={"X-Admin-Role": "customer"})
    garbage = client.get("/api/wallet", headers={"Authorization": "Bearer not-a-token"})
    support = container.tokens.issue("support-1", "support_admin")
    wrong_role = client.get("/api/wallet", headers={"Authorization": f"Bearer {support}"})

    assert missing.status_code == 401
    assert missing.headers["www-authenticate"] == "Bearer"
    assert forbidden.status_code == 403
    assert garbage.status_code == 401
    assert wrong_role.status_code == 403


def test_wallet_endpoints(client, admin_token):
    headers = manager(admin_token)
    client.post("/api/wallet/deposit", json={"amount": "5000"}, headers=headers)

    overdraw = client.post("/api/wallet/withdraw", json={"amount": "6000"}, headers=headers)
    paid = client.post("/api/wallet/pay", json={"amount": "250.50", "payee": "Electric Co"}, headers=headers)
    snapshot = client.get("/api/wallet", headers=headers).json()

    assert overdraw.status_code == 400
    assert overdraw.json()["error"]["code"] == "INSUFFICIENT_BALANCE"
    assert paid.status_code == 201
    assert Decimal(snapshot["balance"]) == Decimal("4749.50")
    assert [entry["type"] for entry in snapshot["transactions"]] == ["payment", "deposit"]


def test_upload_access_and_signed_download(client, admin_token):
    created = upload(client, user_id="cashier-7")
    assert created.status_code == 201
    proof = created.json()
    assert proof["status"] == "uploaded"

    denied = client.get(f"/api/proofs/{proof['file_name']}/access", headers={"X-Admin-Role": "customer"})
    assert denied.status_code == 403

    access = client.get(f"/api/proofs/{proof['file_name']}/access", headers=manager(admin_token))
    assert access.status_code == 200
    assert access.headers["x-frame-options"] == "DENY"
    assert access.headers["cache-control"].startswith("private")

    signed = urlsplit(access.json()["full_image"]["url"])
    download = client.get(f"{signed.path}?{signed.query}")
    assert download.status_code == 200
    assert download.headers["content-type"] == "image/jpeg"
    assert download.content[:2] == b"\xff\xd8"

    tampered = client.get(f"{signed.path}?{signed.query[:-4]}beef")
    assert tampered.status_code == 403

    audit = client.get("/api/audit", params={"subject": proof["file_name"]}, headers=ADMIN).json()
    assert {entry["outcome"] for entry in audit["entries"]} == {"success", "denied"}


def test_small_upload_rejected(client):
    response = upload(client, content=b"\x00" * 10)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "FILE_TOO_SMALL"


def test_infected_upload_lands_in_quarantine(client, admin_token):
    response = upload(client, content=make_image(pad_to=2048) + EICAR_SIGNATURE, order_id=77)

    assert response.status_code == 403
    quarantine_id = response.json()["error"]["details"]["quarantine_id"]

    stats = client.get("/api/quarantine/stats", headers=ADMIN).json()
    assert stats["active"] == 1
    reviewed = client.post(
        f"/api/quarantine/{quarantine_id}/review",
        json={"action": "delete"},
        headers=manager(admin_token),
    )
    assert reviewed.json()["status"] == "deleted"
    again = client.post(f"/api/quarantine/{quarantine_id}/review", json={"action": "delete"}, headers=ADMIN)
    assert again.status_code == 409


def test_audit_export_csv(client):
    upload(client)

    response = client.get("/api/audit/export", params={"format": "csv"}, headers=ADMIN)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].endswith('.csv"')
    assert response.text.splitlines()[0].startswith("id,timestamp,action")


def test_vendor_and_recurring_flow(client, admin_token):
    headers = manager(admin_token)
    client.post("/api/wallet/deposit", json={"amount": "1000"}, headers=headers)
    vendor = client.post(
        "/api/vendors",
        json={"name": "Karachi Dairy Supply", "email": "orders@kds.pk", "phone": "03001234567"},
        headers=headers,
    ).json()

    plan = client.post(
        "/api/recurring",
        json={"name": "Milk", "vendor_id": vendor["id"], "amount": "300", "frequency": "weekly"},
        headers=headers,
    )
    assert plan.status_code == 201
    assert plan.json()["created_by"] == "finance_manager"

    batch = client.post("/api/recurring/process", headers=headers).json()
    assert (batch["processed"], batch["successful"]) == (1, 1)

    paused = client.post(f"/api/recurring/{plan.json()['id']}/pause", headers=headers)
    assert paused.json()["status"] == "paused"
    assert client.post(f"/api/recurring/{plan.json()['id']}/pause", headers=headers).status_code == 409

    analytics = client.get("/api/recurring/analytics", headers=ADMIN).json()
    assert analytics["completed_payments"] == 1
    assert Decimal(client.get(f"/api/vendors/{vendor['id']}", headers=ADMIN).json()["total_paid"]) == Decimal("300")


def test_signed_download_with_non_ascii_name(client, admin_token):
    proof = upload(client, name="رسید.jpg").json()
    access = client.get(f"/api/proofs/{proof['file_name']}/access", headers=manager(admin_token))
    signed = urlsplit(access.json()["full_image"]["url"])

    download = client.get(f"{signed.path}?{signed.query}")

    assert download.status_code == 200
    assert download.headers["content-disposition"].endswith("filename*=UTF-8''" + quote("رسید.jpg", safe=""))


def test_payment_methods_follow_gateway_switches(client, admin_token):
    headers = manager(admin_token)

    disabled = client.post("/api/payments/gateways/sadapay/disable", headers=headers)
    public = client.get("/api/payments/methods").json()
    managed = client.get("/api/payments/gateways", headers=headers).json()
    refused = client.post(
        "/api/payments/wallet",
        json={"gateway": "sadapay", "order_id": 80, "amount": "10", "phone": "03001234567"},
    )

    assert disabled.json() == {"name": "sadapay", "display_name": "SadaPay", "kind": "wallet", "enabled": False}
    assert "sadapay" not in [method["name"] for method in public]
    assert public[0]["name"] == "card"
    assert {method["name"]: method["enabled"] for method in managed}["sadapay"] is False
    assert refused.status_code == 400
    assert refused.json()["error"]["code"] == "GATEWAY_DISABLED"

    client.post("/api/payments/gateways/sadapay/enable", headers=headers)
    assert "sadapay" in [method["name"] for method in client.get("/api/payments/methods").json()]


def test_gateway_switches_require_a_manager(client, admin_token):
    anonymous = client.post("/api/payments/gateways/jazzcash/disable")
    unknown = client.post("/api/payments/gateways/paypal/disable", headers=manager(admin_token))

    assert anonymous.status_code == 403
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "GATEWAY_NOT_FOUND"


def test_vendor_bill_flow(client, admin_token):
    headers = manager(admin_token)
    client.post("/api/wallet/deposit", json={"amount": "2000"}, headers=headers)
    vendor = client.post(
        "/api/vendors",
        json={"name": "Lahore Packaging Co", "email": "billing@lpc.pk", "phone": "03451234567"},
        headers=headers,
    ).json()

    bill = client.post(
        f"/api/vendors/{vendor['id']}/bills",
        json={"amount": "1000", "tax_amount": "170", "description": "Cartons"},
        headers=headers,
    )
    assert bill.status_code == 201
    assert bill.json()["created_by"] == "finance_manager"
    assert Decimal(client.get(f"/api/vendors/{vendor['id']}", headers=ADMIN).json()["total_owed"]) == Decimal("1170")

    pending = client.get("/api/vendors/bills/pending", headers=headers).json()
    assert [item["id"] for item in pending] == [bill.json()["id"]]

    paid = client.post(f"/api/vendors/bills/{bill.json()['id']}/payments", json={}, headers=headers)
    assert paid.status_code == 201
    assert paid.json()["bill"]["status"] == "paid"
    assert Decimal(paid.json()["amount"]) == Decimal("1170")

    again = client.post(f"/api/vendors/bills/{bill.json()['id']}/payments", json={"amount": "1"}, headers=headers)
    assert again.status_code == 409
    assert client.get("/api/vendors/bills/pending", headers=headers).json() == []
    assert client.get("/api/vendors/bills/999", headers=headers).status_code == 404
