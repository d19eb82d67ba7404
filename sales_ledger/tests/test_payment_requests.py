"""
Integration tests for the self-service payment request.

The request emails the configured recipient first, then records a
PAYMENT_REQUEST on the caller's current account.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from sales_ledger.app.core.config import get_settings, settings
from sales_ledger.app.core.exceptions import PersistenceError
from sales_ledger.app.domain.ledger.recorder import TransactionRecorder
from sales_ledger.app.main import app
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.tests.helpers import CUSTOMER_SUB

RECIPIENT = "finance@lender.example"


@pytest.fixture(autouse=True)
def payment_recipient(apply_overrides):
    configured = settings.model_copy(update={"payment_request_recipient": RECIPIENT})
    app.dependency_overrides[get_settings] = lambda: configured


async def count_rows(db_session):
    result = await db_session.execute(select(func.count()).select_from(CurrentAccountTransaction))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_payment_request_emails_and_records(client, customer_headers, email_service):
    response = await client.post(
        "/v1/current-account/payment-requests",
        json={"amount": "1500.00"},
        headers=customer_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["transaction_id"]
    assert body["warning"] is None

    assert len(email_service.sent) == 1
    mail = email_service.sent[0]
    assert mail["to"] == RECIPIENT
    assert "£1,500.00" in mail["subject"]
    assert CUSTOMER_SUB in mail["body"]

    listing = await client.get("/v1/current-account/transactions", headers=customer_headers)
    item = listing.json()["items"][0]
    assert item["id"] == body["transaction_id"]
    assert item["type"] == "PAYMENT_REQUEST"
    assert item["created_by_admin"] is None
    assert Decimal(item["amount"]) == Decimal("1500.00")


@pytest.mark.asyncio
async def test_email_failure_records_nothing(client, customer_headers, email_service, db_session):
    email_service.fail = True

    response = await client.post(
        "/v1/current-account/payment-requests",
        json={"amount": "100.00"},
        headers=customer_headers,
    )
    assert response.status_code == 502
    assert response.json()["error_code"] == "ERR_UPSTREAM_004"
    assert await count_rows(db_session) == 0


@pytest.mark.asyncio
async def test_record_failure_after_email_is_a_warning(client, customer_headers, email_service, db_session, mocker):
    mocker.patch.object(
        TransactionRecorder, "record",
        side_effect=PersistenceError("Failed to persist CurrentAccountTransaction")
    )

    response = await client.post(
        "/v1/current-account/payment-requests",
        json={"amount": "100.00"},
        headers=customer_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["transaction_id"] is None
    assert "not recorded" in body["warning"]
    assert len(email_service.sent) == 1
    assert await count_rows(db_session) == 0


@pytest.mark.asyncio
async def test_missing_recipient_fails_without_email(client, customer_headers, email_service, db_session):
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(
        update={"payment_request_recipient": ""}
    )

    response = await client.post(
        "/v1/current-account/payment-requests",
        json={"amount": "100.00"},
        headers=customer_headers,
    )
    assert response.status_code == 502
    assert email_service.sent == []
    assert await count_rows(db_session) == 0


@pytest.mark.asyncio
async def test_non_positive_amount_is_rejected(client, customer_headers, email_service):
    response = await client.post(
        "/v1/current-account/payment-requests",
        json={"amount": "0"},
        headers=customer_headers,
    )
    assert response.status_code == 422
    assert email_service.sent == []
