"""HTTP surface for mentor wallets."""

from decimal import Decimal

import pytest

from app.core.enums import TransactionType
from app.models.wallet import Wallet, WalletTransaction


@pytest.fixture
def funded_wallet(db, test_mentor):
    wallet = Wallet(mentor_id=test_mentor.id, balance=Decimal("300.00"))
    db.add(wallet)
    db.flush()
    db.add(
        WalletTransaction(
            wallet_id=wallet.id,
            type=TransactionType.CREDIT.value,
            amount=Decimal("300.00"),
            description="Session payment",
        )
    )
    db.commit()
    return wallet


def test_withdraw(client, funded_wallet, auth_headers_mentor):
    response = client.post(
        "/api/v1/wallet/withdraw",
        json={"amount": "120.25", "account_details": {"bank_name": "SBI", "ifsc_code": "SBIN0001"}},
        headers=auth_headers_mentor,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    assert body["new_balance"] == 179.75
    assert body["withdrawal_amount"] == 120.25
    assert body["transaction_id"]


def test_withdraw_more_than_balance(client, funded_wallet, auth_headers_mentor):
    response = client.post(
        "/api/v1/wallet/withdraw", json={"amount": "300.01"}, headers=auth_headers_mentor
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INSUFFICIENT_BALANCE"


def test_withdraw_without_wallet(client, auth_headers_mentor):
    response = client.post("/api/v1/wallet/withdraw", json={"amount": "1"}, headers=auth_headers_mentor)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "WALLET_NOT_FOUND"


def test_student_cannot_withdraw(client, auth_headers_student):
    response = client.post("/api/v1/wallet/withdraw", json={"amount": "1"}, headers=auth_headers_student)

    assert response.status_code == 403


def test_summary_and_transactions(client, funded_wallet, auth_headers_mentor):
    client.post("/api/v1/wallet/withdraw", json={"amount": "100"}, headers=auth_headers_mentor)

    summary = client.get("/api/v1/wallet", headers=auth_headers_mentor).json()["data"]
    entries = client.get("/api/v1/wallet/transactions", headers=auth_headers_mentor).json()["data"]

    assert summary["balance"] == 200.0
    assert summary["reconciled"] is True
    assert [e["type"] for e in entries] == ["debit", "credit"]
