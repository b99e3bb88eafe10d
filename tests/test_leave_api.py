from datetime import date, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import auth_headers, create_balance


def _leave_body(leave_type_id, start: date, days: int, **extra) -> dict:
    body = {
        "leave_type_id": str(leave_type_id),
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=days - 1)).isoformat(),
        "reason": "Family trip",
    }
    body.update(extra)
    return body


@pytest.mark.asyncio
async def test_apply_approve_and_balance_flow(
    client: AsyncClient, alice_user, manager_user, hr_user, alice, casual, next_week: date
) -> None:
    alice_id, casual_id, year = alice.id, casual.id, next_week.year
    employee = auth_headers(alice_user)
    manager = auth_headers(manager_user)

    allocated = await client.post(
        "/api/v1/leave-balances",
        json={"employee_id": str(alice_id), "leave_type_id": str(casual_id), "year": year, "allocated_days": 5},
        headers=auth_headers(hr_user),
    )
    assert allocated.status_code == 201
    assert allocated.json()["remaining_days"] == 5

    applied = await client.post("/api/v1/leaves", json=_leave_body(casual_id, next_week, 3), headers=employee)
    assert applied.status_code == 201
    leave = applied.json()
    assert leave["status"] == "pending"
    assert leave["days"] == 3

    forbidden = await client.post(f"/api/v1/leaves/{leave['id']}/approve", headers=employee)
    assert forbidden.status_code == 403

    approved = await client.post(
        f"/api/v1/leaves/{leave['id']}/approve", json={"comments": "Approved"}, headers=manager
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    again = await client.post(f"/api/v1/leaves/{leave['id']}/approve", headers=manager)
    assert again.status_code == 409

    balances = await client.get("/api/v1/leave-balances/my", params={"year": year}, headers=employee)
    assert balances.status_code == 200
    [row] = balances.json()
    assert (row["used_days"], row["remaining_days"]) == (3, 2)

    refused = await client.post("/api/v1/leaves", json=_leave_body(casual_id, next_week, 3), headers=employee)
    assert refused.status_code == 422
    assert refused.json()["detail"] == [
        {"field": "leave_type_id", "message": "Not enough leave balance. Available: 2 days, Requested: 3 days."}
    ]

    detail = await client.get(f"/api/v1/leaves/{leave['id']}", headers=employee)
    assert detail.status_code == 200
    assert [a["comments"] for a in detail.json()["approvals"]] == ["Approved"]


@pytest.mark.asyncio
async def test_validate_endpoint_reports_field_errors(client: AsyncClient, alice_user, casual) -> None:
    casual_id = casual.id
    yesterday = date.today() - timedelta(days=1)
    response = await client.post(
        "/api/v1/leaves/validate",
        json={"leave_type_id": str(casual_id), "start_date": yesterday.isoformat(), "end_date": yesterday.isoformat()},
        headers=auth_headers(alice_user),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["days"] == 1
    assert [e["field"] for e in data["errors"]] == ["start_date", "reason", "leave_type_id"]


@pytest.mark.asyncio
async def test_reject_and_cancel_over_http(
    client: AsyncClient, db_session: AsyncSession, alice_user, manager_user, alice, casual, next_week: date
) -> None:
    alice_id, casual_id = alice.id, casual.id
    await create_balance(db_session, alice_id, casual_id, next_week.year, 10)
    employee = auth_headers(alice_user)
    manager = auth_headers(manager_user)

    first = (await client.post("/api/v1/leaves", json=_leave_body(casual_id, next_week, 2), headers=employee)).json()
    second = (await client.post("/api/v1/leaves", json=_leave_body(casual_id, next_week, 1), headers=employee)).json()

    no_reason = await client.post(f"/api/v1/leaves/{first['id']}/reject", json={}, headers=manager)
    assert no_reason.status_code == 422

    rejected = await client.post(
        f"/api/v1/leaves/{first['id']}/reject", json={"rejection_reason": "Team offsite"}, headers=manager
    )
    assert rejected.status_code == 200
    assert rejected.json()["rejection_reason"] == "Team offsite"

    not_owner = await client.post(f"/api/v1/leaves/{second['id']}/cancel", headers=manager)
    assert not_owner.status_code == 403
    cancelled = await client.post(f"/api/v1/leaves/{second['id']}/cancel", headers=employee)
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    listed = await client.get("/api/v1/leaves", params={"status": "cancelled"}, headers=employee)
    assert [a["id"] for a in listed.json()] == [second["id"]]

    balances = await client.get("/api/v1/leave-balances/my", params={"year": next_week.year}, headers=employee)
    assert balances.json()[0]["used_days"] == 0


@pytest.mark.asyncio
async def test_bulk_allocate_and_rollover_endpoints(client: AsyncClient, hr_user, alice, bob, casual) -> None:
    alice_id, bob_id, casual_id = alice.id, bob.id, casual.id
    headers = auth_headers(hr_user)

    bulk = await client.post(
        "/api/v1/leave-balances/bulk",
        json={
            "employee_ids": [str(alice_id), str(bob_id)],
            "leave_type_id": str(casual_id),
            "year": 2030,
            "allocated_days": 10,
        },
        headers=headers,
    )
    assert bulk.status_code == 200
    assert bulk.json() == {"created": 2, "updated": 0, "skipped": 0}

    rollover = await client.post(
        "/api/v1/leave-balances/rollover", json={"from_year": 2030, "to_year": 2031}, headers=headers
    )
    assert rollover.status_code == 200
    assert rollover.json()["created"] == 2

    listed = await client.get("/api/v1/leave-balances", params={"year": 2031}, headers=headers)
    assert sorted(r["allocated_days"] for r in listed.json()) == [12, 12]

    same_year = await client.post(
        "/api/v1/leave-balances/rollover", json={"from_year": 2031, "to_year": 2031}, headers=headers
    )
    assert same_year.status_code == 422


@pytest.mark.asyncio
async def test_employee_sees_only_own_balances(
    client: AsyncClient, db_session: AsyncSession, alice_user, alice, bob, casual
) -> None:
    alice_id, bob_id, casual_id = alice.id, bob.id, casual.id
    await create_balance(db_session, alice_id, casual_id, 2030, 4)
    await create_balance(db_session, bob_id, casual_id, 2030, 6)

    response = await client.get("/api/v1/leave-balances", params={"year": 2030}, headers=auth_headers(alice_user))
    assert response.status_code == 200
    assert [r["employee_id"] for r in response.json()] == [str(alice_id)]

    allocate = await client.post(
        "/api/v1/leave-balances",
        json={"employee_id": str(alice_id), "leave_type_id": str(casual_id), "year": 2030, "allocated_days": 50},
        headers=auth_headers(alice_user),
    )
    assert allocate.status_code == 403


@pytest.mark.asyncio
async def test_employee_records(client: AsyncClient, hr_user, alice_user) -> None:
    created = await client.post(
        "/api/v1/employees",
        json={"employee_code": "emp-077", "first_name": "Carol", "last_name": "White"},
        headers=auth_headers(hr_user),
    )
    assert created.status_code == 201
    assert created.json()["employee_code"] == "EMP-077"
    assert created.json()["full_name"] == "Carol White"

    duplicate = await client.post(
        "/api/v1/employees",
        json={"employee_code": "EMP-077", "first_name": "Other"},
        headers=auth_headers(hr_user),
    )
    assert duplicate.status_code == 409

    found = await client.get("/api/v1/employees", params={"search": "carol"}, headers=auth_headers(hr_user))
    assert [e["employee_code"] for e in found.json()] == ["EMP-077"]

    denied = await client.get("/api/v1/employees", headers=auth_headers(alice_user))
    assert denied.status_code == 403
