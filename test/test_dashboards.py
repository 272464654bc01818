import pytest

from hrms_client.dashboard_view import render_dashboard
from hrms_server.models.model import Employee, default_leave_balance
from hrms_server.services.dashboards import build_dashboard, menu_for_role, view_for_role


def employee(role, **fields):
    return Employee(
        id=1,
        employee_id="EMP001",
        employee_name="John Doe",
        designation="Software Developer",
        department_id="Engineering",
        role=role,
        employment_type="Permanent",
        leave_balance=fields.pop("leave_balance", default_leave_balance()),
        **fields,
    )


def menu_names(role):
    return [item["name"] for item in menu_for_role(role)]


@pytest.mark.parametrize("role, view", [
    ("HR-Admin", "hr_admin"),
    ("CEO", "ceo"),
    ("Super-Admin", "ceo"),
    ("Manager", "manager"),
    ("Employee", "employee"),
    ("Intern", "employee"),
    ("", "employee"),
    (None, "employee"),
])
def test_view_for_role(role, view):
    assert view_for_role(role) == view


def test_employee_menu():
    assert menu_names("Employee") == ["Dashboard", "Profile", "Leave Management", "Attendance"]


def test_manager_menu():
    names = menu_names("Manager")

    assert "Team Management" in names
    assert "Performance Reviews" in names
    assert "Employee Directory" not in names


def test_hr_admin_menu():
    names = menu_names("HR-Admin")

    assert {"Team Management", "Employee Directory", "Payroll", "Reports & Analytics"} <= set(names)
    assert "Company Overview" not in names


def test_ceo_menu_has_everything():
    names = menu_names("CEO")

    assert names[-2:] == ["Company Overview", "Strategic Reports"]
    assert len(names) == 12


def test_super_admin_menu_is_base_only():
    assert menu_names("Super-Admin") == menu_names("Employee")


def test_build_employee_dashboard():
    payload = build_dashboard(employee("Employee", leave_balance={"casual_leave": "15", "medical_leave": "10"}))

    assert payload["view"] == "employee"
    assert payload["employee"]["employee_name"] == "John Doe"
    content = payload["content"]
    assert content["stats"][0] == {"title": "Leave Balance", "value": "25 days"}
    assert content["attendance"]["total_hours"] == "09:18"
    assert content["leave_balance"]["casual_leave"] == "15"
    assert len(content["announcements"]) == 3


def test_build_hr_admin_dashboard():
    content = build_dashboard(employee("HR-Admin"))["content"]

    assert content["stats"][0]["value"] == "156"
    assert {d["name"]: d["count"] for d in content["department_stats"]}["Engineering"] == 45
    assert "attendance" not in content


def test_build_ceo_dashboard():
    payload = build_dashboard(employee("Super-Admin"))

    assert payload["view"] == "ceo"
    titles = [i["title"] for i in payload["content"]["initiatives"]]
    assert "Digital Transformation" in titles


def test_build_manager_dashboard():
    content = build_dashboard(employee("Manager"))["content"]

    assert content["stats"][0] == {"title": "Team Size", "value": "12", "change": "+2", "change_type": "positive"}
    assert content["stats"][3]["change_type"] == "negative"
    assert len(content["team_members"]) == 4


@pytest.mark.parametrize("role, heading", [
    ("Employee", "Today's Attendance"),
    ("HR-Admin", "Departments"),
    ("CEO", "Strategic Initiatives"),
    ("Manager", "Team"),
])
def test_render_dashboard(role, heading):
    text = render_dashboard(build_dashboard(employee(role)))

    assert "Welcome back, John Doe (EMP001)" in text
    assert heading in text
    assert "Recent Activity" in text


@pytest.mark.asyncio
async def test_dashboard_endpoint(client, make_employee, headers_for):
    manager = await make_employee(role="Manager")

    response = await client.get("/api/dashboard", headers=headers_for(manager))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["view"] == "manager"
    assert data["employee"]["employee_id"] == manager.employee_id
    assert any(item["name"] == "Team Management" for item in data["menu"])


@pytest.mark.asyncio
async def test_dashboard_endpoint_employee_view(client, make_employee, headers_for):
    staff = await make_employee()

    response = await client.get("/api/dashboard", headers=headers_for(staff))

    content = response.json()["data"]["content"]
    assert content["attendance"]["in_time"] == "09:13"
    assert content["leave_balance"]["bereavement_leave"] == "5"


@pytest.mark.asyncio
async def test_dashboard_requires_login(client):
    response = await client.get("/api/dashboard")

    assert response.status_code == 401
