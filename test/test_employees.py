from datetime import date
from unittest.mock import AsyncMock

import pytest

from hrms_server.core.config import settings
from hrms_server.core.database import employee_repository

BASE_URL = "/api/employees"


@pytest.fixture
def new_employee():
    """Sample hiring payload"""
    return {
        "employee_id": "EMP500",
        "employee_name": "Meera Nair",
        "email": "meera.nair@example.com",
        "department_id": "Engineering",
        "designation": "Software Engineer",
        "doj": "2024-04-01",
        "shift_time": {"start_at": "09:00", "end_at": "18:00"},
    }


@pytest.fixture
async def staff(make_employee):
    return await make_employee(
        employee_id="EMP200",
        employee_name="Sam Staff",
        email="sam.staff@example.com",
        department_id="Sales",
        manager_id="MGR001",
    )


# Listing

@pytest.mark.asyncio
async def test_list_requires_authentication(client):
    response = await client.get(f"{BASE_URL}/")

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_list_paginates(client, admin_headers, make_employee):
    for _ in range(4):
        await make_employee()

    response = await client.get(f"{BASE_URL}/", params={"page": 1, "limit": 2}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    # Four staff plus the admin fixture
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}


@pytest.mark.asyncio
async def test_list_newest_first(client, admin_headers, make_employee):
    await make_employee(employee_id="OLD001")
    await make_employee(employee_id="NEW001")

    response = await client.get(f"{BASE_URL}/", headers=admin_headers)

    ids = [e["employee_id"] for e in response.json()["data"]]
    assert ids.index("NEW001") < ids.index("OLD001")


@pytest.mark.asyncio
async def test_list_filters(client, admin_headers, make_employee):
    await make_employee(department_id="Sales")
    await make_employee(department_id="Sales", employee_status="Terminated")
    await make_employee(department_id="Finance")

    by_department = await client.get(f"{BASE_URL}/", params={"department": "Sales"}, headers=admin_headers)
    by_status = await client.get(
        f"{BASE_URL}/", params={"department": "Sales", "status": "Working"}, headers=admin_headers
    )

    assert by_department.json()["pagination"]["total"] == 2
    assert by_status.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_list_sort_by_name(client, admin_headers, make_employee):
    await make_employee(employee_name="Zara")
    await make_employee(employee_name="Aarav")

    response = await client.get(
        f"{BASE_URL}/", params={"sort_by": "employee_name", "sort_order": "asc"}, headers=admin_headers
    )

    names = [e["employee_name"] for e in response.json()["data"]]
    assert names == sorted(names)


@pytest.mark.asyncio
async def test_list_rejects_unknown_sort_field(client, admin_headers):
    response = await client.get(f"{BASE_URL}/", params={"sort_by": "login_password"}, headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_rejects_bad_limit(client, admin_headers):
    too_small = await client.get(f"{BASE_URL}/", params={"limit": 0}, headers=admin_headers)
    too_large = await client.get(f"{BASE_URL}/", params={"limit": 101}, headers=admin_headers)

    assert too_small.status_code == 400
    assert too_large.status_code == 400


# Create

@pytest.mark.asyncio
async def test_create_employee(client, admin_headers, new_employee):
    response = await client.post(f"{BASE_URL}/", json=new_employee, headers=admin_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["employee_id"] == "EMP500"
    assert data["doj"] == "2024-04-01"
    assert data["role"] == "Employee"
    assert data["employee_status"] == "Working"
    assert data["account_status"] == "Active"
    assert data["is_working"] is True
    assert data["leave_balance"]["bereavement_leave"] == "5"
    assert data["leave_balance"]["casual_leave"] == "0"
    assert data["shift_time"] == {"start_at": "09:00", "end_at": "18:00"}
    assert "login_password" not in data


@pytest.mark.asyncio
async def test_created_employee_can_login_with_default_password(client, admin_headers, new_employee):
    await client.post(f"{BASE_URL}/", json=new_employee, headers=admin_headers)

    response = await client.post(
        "/api/employees/auth/login", json={"identifier": "EMP500", "password": "12345"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_create_duplicate_employee_id(client, admin_headers, new_employee, staff):
    response = await client.post(
        f"{BASE_URL}/", json={**new_employee, "employee_id": staff.employee_id}, headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_duplicate_email(client, admin_headers, new_employee, staff):
    response = await client.post(
        f"{BASE_URL}/", json={**new_employee, "email": staff.email}, headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_duplicate_email_in_other_case(client, admin_headers, new_employee, staff):
    response = await client.post(
        f"{BASE_URL}/", json={**new_employee, "email": staff.email.upper()}, headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_conflict_found_on_insert(client, admin_headers, new_employee, staff, monkeypatch):
    # Another request inserted the same code between the existence check and the insert
    monkeypatch.setattr(employee_repository, "exists", AsyncMock(return_value=False))

    response = await client.post(
        f"{BASE_URL}/", json={**new_employee, "employee_id": staff.employee_id}, headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["error"] == "Employee with this ID or email already exists"


@pytest.mark.asyncio
async def test_created_employee_logs_in_with_mixed_case_email(client, admin_headers, new_employee):
    await client.post(
        f"{BASE_URL}/", json={**new_employee, "email": "Meera.Nair@Example.COM"}, headers=admin_headers
    )

    response = await client.post(
        "/api/employees/auth/login",
        json={"email": "Meera.Nair@Example.COM", "password": settings.DEFAULT_LOGIN_PASSWORD},
    )

    assert response.status_code == 200
    assert response.json()["data"]["employee"]["employee_id"] == "EMP500"


@pytest.mark.asyncio
async def test_create_missing_required_field(client, admin_headers, new_employee):
    del new_employee["email"]

    response = await client.post(f"{BASE_URL}/", json=new_employee, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "email is required"


@pytest.mark.asyncio
async def test_create_requires_admin(client, staff, headers_for, new_employee):
    response = await client.post(f"{BASE_URL}/", json=new_employee, headers=headers_for(staff))

    assert response.status_code == 403


# Read

@pytest.mark.asyncio
async def test_get_employee(client, admin_headers, staff):
    response = await client.get(f"{BASE_URL}/{staff.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "sam.staff@example.com"


@pytest.mark.asyncio
async def test_get_missing_employee(client, admin_headers):
    response = await client.get(f"{BASE_URL}/9999", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Employee not found"}


@pytest.mark.asyncio
async def test_get_employee_by_code(client, admin_headers, staff):
    found = await client.get(f"{BASE_URL}/code/EMP200", headers=admin_headers)
    missing = await client.get(f"{BASE_URL}/code/NOPE", headers=admin_headers)

    assert found.json()["data"]["id"] == staff.id
    assert missing.status_code == 404


# Update

@pytest.mark.asyncio
async def test_employee_updates_own_profile(client, staff, headers_for):
    response = await client.put(
        f"{BASE_URL}/{staff.id}",
        json={"contact_no": "9876543210", "blood_group": "O+"},
        headers=headers_for(staff),
    )

    assert response.status_code == 200
    assert response.json()["data"]["contact_no"] == "9876543210"


@pytest.mark.asyncio
async def test_employee_cannot_change_admin_fields(client, staff, headers_for):
    response = await client.put(f"{BASE_URL}/{staff.id}", json={"role": "CEO"}, headers=headers_for(staff))

    assert response.status_code == 403
    assert "role" in response.json()["error"]


@pytest.mark.asyncio
async def test_employee_cannot_update_others(client, staff, admin, headers_for):
    response = await client.put(
        f"{BASE_URL}/{admin.id}", json={"contact_no": "000"}, headers=headers_for(staff)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_updates_employee(client, admin_headers, staff):
    response = await client.put(
        f"{BASE_URL}/{staff.id}",
        json={"role": "Manager", "designation": "Team Lead", "is_probation": True},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["role"] == "Manager"
    assert data["designation"] == "Team Lead"
    assert data["is_probation"] is True


@pytest.mark.asyncio
async def test_update_ignores_non_editable_fields(client, admin_headers, staff):
    response = await client.put(
        f"{BASE_URL}/{staff.id}",
        json={"employee_id": "HACKED", "email": "hacked@example.com", "login_password": "x", "team": "Alpha"},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert data["employee_id"] == "EMP200"
    assert data["email"] == "sam.staff@example.com"
    assert data["team"] == "Alpha"


@pytest.mark.asyncio
async def test_update_with_nothing_editable(client, admin_headers, staff):
    response = await client.put(f"{BASE_URL}/{staff.id}", json={"employee_id": "HACKED"}, headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_merges_leave_balance(client, admin_headers, staff):
    response = await client.put(
        f"{BASE_URL}/{staff.id}",
        json={"leave_balance": {"casual_leave": "12"}},
        headers=admin_headers,
    )

    balance = response.json()["data"]["leave_balance"]
    assert balance["casual_leave"] == "12"
    assert balance["bereavement_leave"] == "5"


@pytest.mark.asyncio
async def test_update_merges_shift_time(client, admin_headers, make_employee, fetch_employee):
    shifted = await make_employee(employee_id="EMP210", shift_time={"start_at": "09:00", "end_at": "18:00"})

    response = await client.put(
        f"{BASE_URL}/{shifted.id}",
        json={"shift_time": {"start_at": "10:00"}},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["shift_time"] == {"start_at": "10:00", "end_at": "18:00"}
    assert (await fetch_employee("EMP210")).shift_time == {"start_at": "10:00", "end_at": "18:00"}


@pytest.mark.asyncio
async def test_update_missing_employee(client, admin_headers):
    response = await client.put(f"{BASE_URL}/9999", json={"team": "Alpha"}, headers=admin_headers)

    assert response.status_code == 404


# Terminate

@pytest.mark.asyncio
async def test_terminate_employee(client, admin_headers, staff):
    response = await client.delete(f"{BASE_URL}/{staff.id}", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["employee_status"] == "Terminated"
    assert data["account_status"] == "Inactive"
    assert data["is_working"] is False
    assert data["dor"] == date.today().isoformat()

    # Soft delete: the record is still there
    still_there = await client.get(f"{BASE_URL}/{staff.id}", headers=admin_headers)
    assert still_there.status_code == 200


@pytest.mark.asyncio
async def test_terminated_employee_cannot_login(client, admin_headers, staff):
    await client.delete(f"{BASE_URL}/{staff.id}", headers=admin_headers)

    response = await client.post(
        "/api/employees/auth/login", json={"identifier": "EMP200", "password": "secret123"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_terminated_employee_token_rejected(client, admin_headers, staff, headers_for):
    await client.delete(f"{BASE_URL}/{staff.id}", headers=admin_headers)

    response = await client.get("/api/employees/auth/me", headers=headers_for(staff))

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_terminate_requires_admin(client, staff, headers_for, admin):
    response = await client.delete(f"{BASE_URL}/{admin.id}", headers=headers_for(staff))

    assert response.status_code == 403


# Lookups

@pytest.mark.asyncio
async def test_search(client, admin_headers, make_employee):
    await make_employee(employee_name="Priya Sharma")
    await make_employee(employee_name="Priyanka Rao")
    await make_employee(employee_name="Priya Gone", is_working=False)
    await make_employee(employee_name="Rahul Verma")

    response = await client.get(f"{BASE_URL}/search", params={"q": "priya"}, headers=admin_headers)

    names = [e["employee_name"] for e in response.json()["data"]]
    assert names == ["Priya Sharma", "Priyanka Rao"]


@pytest.mark.asyncio
async def test_search_limit(client, admin_headers, make_employee):
    for i in range(5):
        await make_employee(employee_name=f"Dev {i}")

    response = await client.get(f"{BASE_URL}/search", params={"q": "Dev", "limit": 3}, headers=admin_headers)

    assert len(response.json()["data"]) == 3


@pytest.mark.asyncio
async def test_search_requires_term(client, admin_headers):
    response = await client.get(f"{BASE_URL}/search", headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_stats(client, admin_headers, make_employee):
    await make_employee(is_probation=True)
    await make_employee(employee_status="Terminated", account_status="Inactive", is_working=False)

    response = await client.get(f"{BASE_URL}/stats", headers=admin_headers)

    assert response.json()["data"] == {"total": 3, "active": 2, "terminated": 1, "probation": 1}


@pytest.mark.asyncio
async def test_department_stats(client, admin_headers, make_employee):
    await make_employee(department_id="Sales")
    await make_employee(department_id="Sales")
    await make_employee(department_id="Finance")

    response = await client.get(f"{BASE_URL}/stats/department", headers=admin_headers)

    counts = {row["department"]: row["count"] for row in response.json()["data"]}
    assert counts["Sales"] == 2
    assert counts["Finance"] == 1


@pytest.mark.asyncio
async def test_by_manager_lists_active_reports(client, admin_headers, make_employee):
    await make_employee(employee_name="Active Report", manager_id="MGR9")
    await make_employee(employee_name="Former Report", manager_id="MGR9", is_working=False)
    await make_employee(employee_name="Elsewhere", manager_id="MGR1")

    response = await client.get(f"{BASE_URL}/by-manager/MGR9", headers=admin_headers)

    assert [e["employee_name"] for e in response.json()["data"]] == ["Active Report"]


@pytest.mark.asyncio
async def test_by_department_and_team_lead(client, admin_headers, make_employee):
    await make_employee(department_id="Ops", team_lead_id="TL1")
    await make_employee(department_id="Ops", team_lead_id="TL2", account_status="Inactive")

    by_department = await client.get(f"{BASE_URL}/by-department/Ops", headers=admin_headers)
    by_team_lead = await client.get(f"{BASE_URL}/by-team-lead/TL1", headers=admin_headers)

    assert len(by_department.json()["data"]) == 1
    assert len(by_team_lead.json()["data"]) == 1


# Leave balance

@pytest.mark.asyncio
async def test_subtract_leave(client, admin_headers, make_employee):
    employee = await make_employee(leave_balance={"casual_leave": "10", "bereavement_leave": "5"})

    response = await client.patch(
        f"{BASE_URL}/{employee.id}/leave-balance",
        json={"leave_type": "casual_leave", "days": 3},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["casual_leave"] == "7"


@pytest.mark.asyncio
async def test_subtract_leave_never_negative(client, admin_headers, make_employee):
    employee = await make_employee(leave_balance={"medical_leave": "2"})

    response = await client.patch(
        f"{BASE_URL}/{employee.id}/leave-balance",
        json={"leave_type": "medical_leave", "days": 5, "operation": "subtract"},
        headers=admin_headers,
    )

    assert response.json()["data"]["medical_leave"] == "0"


@pytest.mark.asyncio
async def test_add_leave_persists(client, admin_headers, staff):
    await client.patch(
        f"{BASE_URL}/{staff.id}/leave-balance",
        json={"leave_type": "earned_leave", "days": 4, "operation": "add"},
        headers=admin_headers,
    )

    response = await client.get(f"{BASE_URL}/{staff.id}", headers=admin_headers)

    assert response.json()["data"]["leave_balance"]["earned_leave"] == "4"


@pytest.mark.asyncio
async def test_unknown_leave_type(client, admin_headers, staff):
    response = await client.patch(
        f"{BASE_URL}/{staff.id}/leave-balance",
        json={"leave_type": "holiday_leave", "days": 1},
        headers=admin_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_leave_balance_requires_admin(client, staff, headers_for):
    response = await client.patch(
        f"{BASE_URL}/{staff.id}/leave-balance",
        json={"leave_type": "casual_leave", "days": 1},
        headers=headers_for(staff),
    )

    assert response.status_code == 403
