"""
Integration tests for admin-only actions.

Cash receipts, account status maintenance, payment requests on behalf
of a customer and the directory user listing.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from sales_ledger.app.core.exceptions import DirectoryError
from sales_ledger.app.models.account_status import AccountStatus
from sales_ledger.app.models.current_account_transaction import CurrentAccountTransaction
from sales_ledger.app.models.ledger_entry import LedgerEntry
from sales_ledger.app.models.user import DirectoryUser
from sales_ledger.app.services.directory import SqlDirectory
from sales_ledger.tests.helpers import ADMIN_SUB, CUSTOMER_SUB


async def count_rows(db_session, model):
    result = await db_session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


# Cash receipts

@pytest.mark.asyncio
async def test_admin_adds_cash_receipt(client, admin_headers, customer_headers, db_session):
    response = await client.post(
        "/v1/admin/cash-receipts",
        json={"target_owner": CUSTOMER_SUB, "amount": "250.00"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["owner"] == CUSTOMER_SUB
    assert body["type"] == "CASH_RECEIPT"
    assert body["created_by_admin"] == ADMIN_SUB
    assert Decimal(body["amount"]) == Decimal("250.00")

    # Only the current account is written
    assert await count_rows(db_session, CurrentAccountTransaction) == 1
    assert await count_rows(db_session, LedgerEntry) == 0

    listing = await client.get("/v1/current-account/transactions", headers=customer_headers)
    assert [item["id"] for item in listing.json()["items"]] == [body["id"]]


@pytest.mark.asyncio
async def test_non_admin_cash_receipt_is_forbidden(client, customer_headers, db_session):
    response = await client.post(
        "/v1/admin/cash-receipts",
        json={"target_owner": CUSTOMER_SUB, "amount": "250.00"},
        headers=customer_headers,
    )
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"
    assert await count_rows(db_session, CurrentAccountTransaction) == 0


@pytest.mark.asyncio
async def test_cash_receipt_rejects_non_positive_amount(client, admin_headers, db_session):
    response = await client.post(
        "/v1/admin/cash-receipts",
        json={"target_owner": CUSTOMER_SUB, "amount": "0"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert await count_rows(db_session, CurrentAccountTransaction) == 0


# Account statuses

@pytest.mark.asyncio
async def test_create_then_update_account_status(client, admin_headers, customer_headers, db_session):
    response = await client.post(
        "/v1/admin/account-statuses",
        json={"owner": CUSTOMER_SUB, "initial_unapproved_invoice_value": "500.00"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["id"] == CUSTOMER_SUB
    assert created["created_by_admin"] == ADMIN_SUB

    response = await client.put(
        f"/v1/admin/account-statuses/{CUSTOMER_SUB}",
        json={"total_unapproved_invoice_value": "125.00"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert Decimal(response.json()["total_unapproved_invoice_value"]) == Decimal("125.00")

    listing = await client.get("/v1/account-statuses", headers=customer_headers)
    items = listing.json()["items"]
    assert len(items) == 1
    assert Decimal(items[0]["total_unapproved_invoice_value"]) == Decimal("125.00")
    assert await count_rows(db_session, AccountStatus) == 1

    response = await client.get(f"/v1/account-statuses/{CUSTOMER_SUB}", headers=customer_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_account_status_conflicts(client, admin_headers):
    payload = {"owner": CUSTOMER_SUB, "initial_unapproved_invoice_value": "0"}
    first = await client.post("/v1/admin/account-statuses", json=payload, headers=admin_headers)
    assert first.status_code == 201

    second = await client.post(
        "/v1/admin/account-statuses",
        json={"owner": CUSTOMER_SUB, "initial_unapproved_invoice_value": "900.00"},
        headers=admin_headers,
    )
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_CONFLICT_001"

    response = await client.get(f"/v1/account-statuses/{CUSTOMER_SUB}", headers=admin_headers)
    assert Decimal(response.json()["total_unapproved_invoice_value"]) == Decimal("0")


@pytest.mark.asyncio
async def test_update_of_missing_account_status_is_not_found(client, admin_headers):
    response = await client.put(
        "/v1/admin/account-statuses/nobody",
        json={"total_unapproved_invoice_value": "10.00"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_customer_cannot_change_account_status(client, customer_headers, db_session):
    response = await client.post(
        "/v1/admin/account-statuses",
        json={"owner": CUSTOMER_SUB, "initial_unapproved_invoice_value": "0"},
        headers=customer_headers,
    )
    assert response.status_code == 403

    response = await client.put(
        f"/v1/admin/account-statuses/{CUSTOMER_SUB}",
        json={"total_unapproved_invoice_value": "0"},
        headers=customer_headers,
    )
    assert response.status_code == 403
    assert await count_rows(db_session, AccountStatus) == 0


@pytest.mark.asyncio
async def test_negative_unapproved_value_is_rejected(client, admin_headers):
    response = await client.post(
        "/v1/admin/account-statuses",
        json={"owner": CUSTOMER_SUB, "initial_unapproved_invoice_value": "-1"},
        headers=admin_headers,
    )
    assert response.status_code == 422


# Payment requests on behalf of a customer

@pytest.mark.asyncio
async def test_admin_requests_payment_for_user(client, admin_headers, customer_headers, email_service):
    response = await client.post(
        "/v1/admin/payment-requests",
        json={"target_owner": CUSTOMER_SUB, "amount": "300.00", "description": "Advance"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["transaction_id"]
    assert email_service.sent == []

    listing = await client.get("/v1/current-account/transactions", headers=customer_headers)
    item = listing.json()["items"][0]
    assert item["id"] == body["transaction_id"]
    assert item["type"] == "PAYMENT_REQUEST"
    assert item["created_by_admin"] == ADMIN_SUB
    assert item["description"] == "Advance"


@pytest.mark.asyncio
async def test_non_admin_payment_request_for_user_is_forbidden(client, customer_headers, db_session):
    response = await client.post(
        "/v1/admin/payment-requests",
        json={"target_owner": CUSTOMER_SUB, "amount": "300.00"},
        headers=customer_headers,
    )
    assert response.status_code == 403
    assert await count_rows(db_session, CurrentAccountTransaction) == 0


# Directory users

@pytest.fixture
async def directory_users(db_session):
    db_session.add_all([
        DirectoryUser(
            sub=ADMIN_SUB, username="admin", email="admin@example.com",
            groups=["Admin"], attributes={"name": "Ledger Admin"},
        ),
        DirectoryUser(
            sub=CUSTOMER_SUB, username="acme-ltd", email="accounts@acme.example",
            groups=[], attributes={"custom:company": "Acme Ltd"},
        ),
        DirectoryUser(
            sub="customer-sub-0003", username="zenith", email=None,
            groups=None, attributes=None, enabled=False, status="FORCE_CHANGE_PASSWORD",
        ),
    ])
    await db_session.commit()


@pytest.mark.asyncio
async def test_admin_lists_users_with_groups(client, admin_headers, directory_users):
    response = await client.get("/v1/admin/users", headers=admin_headers)
    assert response.status_code == 200
    users = response.json()["users"]

    assert [user["username"] for user in users] == ["acme-ltd", "admin", "zenith"]
    by_name = {user["username"]: user for user in users}
    assert by_name["admin"]["groups"] == ["Admin"]
    assert by_name["acme-ltd"]["groups"] == []
    assert by_name["zenith"]["enabled"] is False
    assert by_name["zenith"]["status"] == "FORCE_CHANGE_PASSWORD"

    attributes = {a["name"]: a["value"] for a in by_name["acme-ltd"]["attributes"]}
    assert attributes["custom:company"] == "Acme Ltd"
    assert attributes["email"] == "accounts@acme.example"
    assert attributes["sub"] == CUSTOMER_SUB


@pytest.mark.asyncio
async def test_user_listing_pages(client, admin_headers, directory_users):
    first = await client.get("/v1/admin/users", params={"page_size": 2}, headers=admin_headers)
    page = first.json()
    assert len(page["users"]) == 2
    assert page["next_token"]

    second = await client.get(
        "/v1/admin/users",
        params={"page_size": 2, "page_token": page["next_token"]},
        headers=admin_headers,
    )
    rest = second.json()
    assert [user["username"] for user in rest["users"]] == ["zenith"]
    assert rest["next_token"] is None


@pytest.mark.asyncio
async def test_group_lookup_failure_degrades_to_empty_groups(client, admin_headers, directory_users, mocker):
    mocker.patch.object(
        SqlDirectory, "groups_for_user", side_effect=DirectoryError("directory unavailable")
    )

    response = await client.get("/v1/admin/users", headers=admin_headers)
    assert response.status_code == 200
    users = response.json()["users"]
    assert len(users) == 3
    assert all(user["groups"] == [] for user in users)


@pytest.mark.asyncio
async def test_non_admin_cannot_list_users(client, customer_headers, directory_users):
    response = await client.get("/v1/admin/users", headers=customer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_directory_listing_failure_is_upstream_error(client, admin_headers, directory_users, mocker):
    mocker.patch.object(
        SqlDirectory, "list_users", side_effect=DirectoryError("Failed to list users from the directory")
    )

    response = await client.get("/v1/admin/users", headers=admin_headers)
    assert response.status_code == 502
    assert response.json()["error_code"] == "ERR_UPSTREAM_003"


@pytest.mark.asyncio
async def test_failed_group_lookup_rolls_back_session(db_session, mocker):
    mocker.patch.object(
        db_session, "execute", side_effect=OperationalError("SELECT", {}, Exception("database is locked"))
    )
    rollback = mocker.spy(db_session, "rollback")

    with pytest.raises(DirectoryError):
        await SqlDirectory(db_session).groups_for_user(CUSTOMER_SUB)

    assert rollback.call_count == 1


@pytest.mark.asyncio
async def test_failed_group_lookup_leaves_session_usable(db_session, directory_users, mocker):
    directory = SqlDirectory(db_session)
    mocker.patch.object(
        db_session, "execute", side_effect=OperationalError("SELECT", {}, Exception("database is locked"))
    )

    with pytest.raises(DirectoryError):
        await directory.groups_for_user(ADMIN_SUB)

    mocker.stopall()
    assert await directory.groups_for_user(ADMIN_SUB) == {"Admin"}
