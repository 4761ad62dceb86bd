from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import FeeAuditLog
from tests.helpers import auth_headers, charge_event, signed_request


@pytest.mark.asyncio
async def test_admin_assesses_fee(client: AsyncClient, db_session: AsyncSession, admin_headers) -> None:
    payload = {
        "student_id": "student-9",
        "student_name": "Chioma Eze",
        "class_name": "Basic 6",
        "fee_type": "Tuition Fee",
        "term": "1st Term",
        "academic_year": "2023/2024",
        "due_date": "2023-09-15",
        "total_amount": "75000",
    }

    response = await client.post("/api/v1/fees", json=payload, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "unpaid"
    assert Decimal(data["amount_paid"]) == Decimal("0")
    assert Decimal(data["balance"]) == Decimal("75000")
    assert Decimal(data["total_amount"]) == Decimal("75000")

    logs = (await db_session.execute(select(FeeAuditLog))).scalars().all()
    assert len(logs) == 1
    assert logs[0].action_type == "CREATE"
    assert logs[0].changed_by == "admin-1"


@pytest.mark.asyncio
async def test_non_admin_cannot_assess_fee(client: AsyncClient) -> None:
    payload = {"student_id": "s", "student_name": "S", "fee_type": "Tuition Fee", "total_amount": "100"}
    response = await client.post("/api/v1/fees", json=payload, headers=auth_headers("teacher-1", "teacher"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_fee_amount_must_be_positive(client: AsyncClient, admin_headers) -> None:
    payload = {"student_id": "s", "student_name": "S", "fee_type": "Tuition Fee", "total_amount": "0"}
    response = await client.post("/api/v1/fees", json=payload, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_student_sees_own_fees_only(client: AsyncClient, student_headers, make_fee) -> None:
    own = await make_fee(student_id="student-1")
    other = await make_fee(student_id="student-2", student_name="Tunde Bello")

    response = await client.get("/api/v1/fees/student/student-1", headers=student_headers)
    assert response.status_code == 200
    assert [f["id"] for f in response.json()] == [str(own.id)]

    forbidden = await client.get("/api/v1/fees/student/student-2", headers=student_headers)
    assert forbidden.status_code == 403

    forbidden_detail = await client.get(f"/api/v1/fees/{other.id}", headers=student_headers)
    assert forbidden_detail.status_code == 403


@pytest.mark.asyncio
async def test_parent_can_view_any_fee(client: AsyncClient, make_fee) -> None:
    fee = await make_fee(student_id="student-2")
    response = await client.get(f"/api/v1/fees/{fee.id}", headers=auth_headers("parent-1", "parent"))
    assert response.status_code == 200
    assert response.json()["student_id"] == "student-2"


@pytest.mark.asyncio
async def test_unknown_fee_not_found(client: AsyncClient, admin_headers) -> None:
    response = await client.get("/api/v1/fees/7c9e6679-7425-40de-944b-e07fc1f90ae7", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Fee record not found"


@pytest.mark.asyncio
async def test_unpaid_listing_excludes_paid(client: AsyncClient, admin_headers, make_fee) -> None:
    unpaid = await make_fee(total_amount=Decimal("100"))
    partial = await make_fee(total_amount=Decimal("100"), amount_paid=Decimal("40"))
    await make_fee(total_amount=Decimal("100"), amount_paid=Decimal("100"))

    response = await client.get("/api/v1/fees/unpaid", headers=admin_headers)
    assert response.status_code == 200
    assert {f["id"] for f in response.json()} == {str(unpaid.id), str(partial.id)}


@pytest.mark.asyncio
async def test_payment_history_after_webhook(client: AsyncClient, student_headers, make_fee) -> None:
    fee = await make_fee(total_amount=Decimal("10000"), student_id="student-1")
    body, headers = signed_request(charge_event(fee.id, reference="REF_HISTORY_1", amount=450000))
    await client.post("/api/v1/paystack/webhook", content=body, headers=headers)

    response = await client.get("/api/v1/fees/payments/student-1", headers=student_headers)
    assert response.status_code == 200
    history = response.json()
    assert len(history) == 1
    assert history[0]["transaction_reference"] == "REF_HISTORY_1"
    assert Decimal(history[0]["amount"]) == Decimal("4500")
    assert history[0]["metadata"]["customer_email"] == "parent@example.com"
