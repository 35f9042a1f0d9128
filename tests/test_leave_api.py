"""Leave API tests — auth, role gating, ActionResult envelopes and problem bodies."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select

from leaveledger.common.constants import UserRole
from leaveledger.leave.models import LeaveBalance
from tests.conftest import (
    _auth_headers_for,
    _seed_balance,
    _seed_leave_type,
    _seed_user,
    create_access_token,
)

BASE = "/api/v1/leave"


async def _setup(db, test_org, test_employee):
    """Leave type + 2024 balance for test_employee, and a manager with a session."""
    _, emp = test_employee
    lt = await _seed_leave_type(db, test_org.id)
    await _seed_balance(db, emp.id, lt.id, used=Decimal("5"))
    mgr_user, _ = await _seed_user(db, test_org.id, role=UserRole.manager, first_name="Max")
    mgr_headers = await _auth_headers_for(db, mgr_user.id)
    await db.commit()
    return emp, lt, mgr_headers


def _payload(lt, start="2024-03-04", end="2024-03-06", reason="Family event"):
    return {
        "leave_type_id": str(lt.id),
        "start_date": start,
        "end_date": end,
        "reason": reason,
    }


# ── Health / auth ───────────────────────────────────────────────────


async def test_health_check(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_missing_token_returns_401_problem(client):
    resp = await client.get(f"{BASE}/types")
    assert resp.status_code == 401
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Not authenticated"


async def test_token_without_session_rejected(client, db, test_employee):
    user, _ = test_employee
    await db.commit()
    token = create_access_token(user.id)
    resp = await client.get(f"{BASE}/types", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_expired_token_rejected(client, db, test_employee):
    user, _ = test_employee
    await db.commit()
    token = create_access_token(user.id, expired=True)
    resp = await client.get(f"{BASE}/types", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has expired."


async def test_user_without_organization_rejected(client, db, test_org):
    user, _ = await _seed_user(db, test_org.id, first_name="Ghost", with_employee=False)
    user.organization_id = None
    headers = await _auth_headers_for(db, user.id)
    await db.commit()
    resp = await client.get(f"{BASE}/types", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"] == "User profile not found"


# ── Requests ────────────────────────────────────────────────────────


async def test_create_approve_flow(client, db, test_org, test_employee, auth_headers):
    emp, lt, mgr_headers = await _setup(db, test_org, test_employee)

    resp = await client.post(f"{BASE}/requests", json=_payload(lt), headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["error"] is None
    request_id = body["data"]["id"]
    assert body["data"]["status"] == "pending"
    assert Decimal(body["data"]["days_requested"]) == Decimal("3")
    assert body["data"]["employee"]["id"] == str(emp.id)

    resp = await client.put(f"{BASE}/requests/{request_id}/approve", headers=mgr_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "approved"

    resp = await client.get(
        f"{BASE}/balances/{lt.id}", params={"year": 2024}, headers=auth_headers,
    )
    bal = resp.json()["data"]
    assert Decimal(bal["used_days"]) == Decimal("8")
    assert Decimal(bal["pending_days"]) == Decimal("0")
    assert Decimal(bal["available"]) == Decimal("12")


async def test_employee_cannot_approve(client, db, test_org, test_employee, auth_headers):
    _, lt, _ = await _setup(db, test_org, test_employee)
    resp = await client.post(f"{BASE}/requests", json=_payload(lt), headers=auth_headers)
    request_id = resp.json()["data"]["id"]

    resp = await client.put(f"{BASE}/requests/{request_id}/approve", headers=auth_headers)
    assert resp.status_code == 403
    assert resp.json()["success"] is False


async def test_insufficient_balance_is_422_and_writes_nothing(
    client, db, test_org, test_employee, auth_headers,
):
    emp, lt, _ = await _setup(db, test_org, test_employee)

    resp = await client.post(
        f"{BASE}/requests",
        json=_payload(lt, start="2024-05-01", end="2024-05-31"),
        headers=auth_headers,
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["error"].startswith("Insufficient leave balance")
    assert "days" in body["errors"]

    row = (
        await db.execute(
            select(LeaveBalance)
            .where(LeaveBalance.employee_id == emp.id)
            .execution_options(populate_existing=True)
        )
    ).scalars().one()
    assert row.pending_days == Decimal("0")
    assert row.version == 1


async def test_end_before_start_is_422(client, db, test_org, test_employee, auth_headers):
    _, lt, _ = await _setup(db, test_org, test_employee)
    resp = await client.post(
        f"{BASE}/requests",
        json=_payload(lt, start="2024-03-06", end="2024-03-04"),
        headers=auth_headers,
    )
    assert resp.status_code == 422
    assert resp.json()["errors"] == {"end_date": ["End date cannot be before start date"]}


async def test_malformed_body_is_problem_detail(client, auth_headers):
    resp = await client.post(
        f"{BASE}/requests",
        json={"start_date": "not-a-date"},
        headers=auth_headers,
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert "start_date" in body["errors"]


async def test_reject_edit_cancel(client, db, test_org, test_employee, auth_headers):
    _, lt, mgr_headers = await _setup(db, test_org, test_employee)

    created = await client.post(f"{BASE}/requests", json=_payload(lt), headers=auth_headers)
    request_id = created.json()["data"]["id"]

    resp = await client.put(
        f"{BASE}/requests/{request_id}/reject",
        json={"reason": "Audit week"},
        headers=mgr_headers,
    )
    assert resp.json()["data"]["status"] == "rejected"
    assert resp.json()["data"]["rejection_reason"] == "Audit week"

    resp = await client.patch(
        f"{BASE}/requests/{request_id}",
        json={"status": "pending", "end_date": "2024-03-07"},
        headers=mgr_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "pending"
    assert Decimal(data["days_requested"]) == Decimal("4")
    assert data["rejection_reason"] is None

    resp = await client.put(
        f"{BASE}/requests/{request_id}/cancel",
        json={"reason": "Trip postponed"},
        headers=auth_headers,
    )
    assert resp.json()["data"]["status"] == "cancelled"

    resp = await client.put(f"{BASE}/requests/{request_id}/cancel", headers=auth_headers)
    assert resp.status_code == 422

    resp = await client.get(
        f"{BASE}/balances/{lt.id}", params={"year": 2024}, headers=auth_headers,
    )
    assert Decimal(resp.json()["data"]["pending_days"]) == Decimal("0")


async def test_list_requests_scopes(client, db, test_org, test_employee, auth_headers):
    _, lt, mgr_headers = await _setup(db, test_org, test_employee)
    await client.post(f"{BASE}/requests", json=_payload(lt), headers=auth_headers)
    await client.post(
        f"{BASE}/requests",
        json=_payload(lt, start="2024-06-03", end="2024-06-03"),
        headers=mgr_headers,
    )

    resp = await client.get(f"{BASE}/requests", headers=auth_headers)
    page = resp.json()["data"]
    assert page["meta"]["total"] == 1

    resp = await client.get(
        f"{BASE}/requests", params={"scope": "all", "page_size": 1}, headers=mgr_headers,
    )
    page = resp.json()["data"]
    assert page["meta"]["total"] == 2
    assert page["meta"]["has_next"] is True
    assert len(page["data"]) == 1

    resp = await client.get(f"{BASE}/requests", params={"scope": "all"}, headers=auth_headers)
    assert resp.status_code == 403


async def test_span_beyond_column_range_is_422(client, db, test_org, test_employee, auth_headers):
    _, lt, _ = await _setup(db, test_org, test_employee)
    resp = await client.post(
        f"{BASE}/requests",
        json=_payload(lt, start="2000-01-01", end="2030-12-31"),
        headers=auth_headers,
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert "days" in body["errors"]


async def test_overlapping_request_is_422(client, db, test_org, test_employee, auth_headers):
    _, lt, _ = await _setup(db, test_org, test_employee)
    await client.post(f"{BASE}/requests", json=_payload(lt), headers=auth_headers)

    resp = await client.post(
        f"{BASE}/requests",
        json=_payload(lt, start="2024-03-05", end="2024-03-05"),
        headers=auth_headers,
    )
    assert resp.status_code == 422
    assert "dates" in resp.json()["errors"]


async def test_sort_on_relationship_is_ignored(client, db, test_org, test_employee, auth_headers):
    _, lt, _ = await _setup(db, test_org, test_employee)
    await client.post(f"{BASE}/requests", json=_payload(lt), headers=auth_headers)

    for sort in ("balance_year", "-employee"):
        resp = await client.get(f"{BASE}/requests", params={"sort": sort}, headers=auth_headers)
        assert resp.status_code == 200, sort
        assert resp.json()["data"]["meta"]["total"] == 1


async def test_get_balances_lists_active_types(client, db, test_org, test_employee, auth_headers):
    await _setup(db, test_org, test_employee)
    await _seed_leave_type(db, test_org.id, code="SL", name="Sick Leave", max_days_per_year=Decimal("8"))
    await db.commit()

    resp = await client.get(f"{BASE}/balances", params={"year": 2024}, headers=auth_headers)
    assert resp.status_code == 200
    by_code = {b["leave_type"]["code"]: b for b in resp.json()["data"]}
    assert by_code["AL"]["persisted"] is True
    assert by_code["SL"]["persisted"] is False
    assert Decimal(by_code["SL"]["available"]) == Decimal("8")


# ── Leave types ─────────────────────────────────────────────────────


async def test_leave_type_admin_requires_hr(client, db, test_org, test_employee, auth_headers):
    _, _, mgr_headers = await _setup(db, test_org, test_employee)
    payload = {"name": "Sick Leave", "code": "sl", "max_days_per_year": "8"}

    resp = await client.post(f"{BASE}/types", json=payload, headers=mgr_headers)
    assert resp.status_code == 403

    hr_user, _ = await _seed_user(db, test_org.id, role=UserRole.hr_admin, first_name="Hana")
    hr_headers = await _auth_headers_for(db, hr_user.id)
    await db.commit()

    resp = await client.post(f"{BASE}/types", json=payload, headers=hr_headers)
    assert resp.status_code == 201
    created = resp.json()["data"]
    assert created["code"] == "SL"

    resp = await client.post(f"{BASE}/types", json=payload, headers=hr_headers)
    assert resp.status_code == 409

    resp = await client.put(f"{BASE}/types/{created['id']}/deactivate", headers=hr_headers)
    assert resp.json()["data"]["is_active"] is False

    resp = await client.get(f"{BASE}/types", params={"is_active": True}, headers=auth_headers)
    assert [t["code"] for t in resp.json()["data"]] == ["AL"]

    resp = await client.delete(f"{BASE}/types/{created['id']}", headers=hr_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "error": None, "data": None}


async def test_allotment_beyond_column_range_is_422(client, db, test_org, test_employee):
    _, lt, _ = await _setup(db, test_org, test_employee)
    hr_user, _ = await _seed_user(db, test_org.id, role=UserRole.hr_admin, first_name="Hana")
    hr_headers = await _auth_headers_for(db, hr_user.id)
    await db.commit()

    resp = await client.post(
        f"{BASE}/types",
        json={"name": "Sabbatical", "code": "SAB", "max_days_per_year": "10000"},
        headers=hr_headers,
    )
    assert resp.status_code == 422
    assert "max_days_per_year" in resp.json()["errors"]

    resp = await client.patch(
        f"{BASE}/types/{lt.id}", json={"max_days_per_year": "10000"}, headers=hr_headers,
    )
    assert resp.status_code == 422
