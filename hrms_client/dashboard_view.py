# hrms_client/dashboard_view.py
from typing import Any, Dict, Iterable, List

TITLES = {
    "hr_admin": "HR Admin Dashboard",
    "ceo": "Executive Dashboard",
    "manager": "Manager Dashboard",
    "employee": "Employee Dashboard",
}


def _section(title: str, lines: Iterable[str]) -> List[str]:
    lines = list(lines)
    if not lines:
        return []
    return ["", title, "-" * len(title), *lines]


def _stats(cards: List[Dict[str, Any]]) -> List[str]:
    lines = []
    for card in cards:
        line = f"  {card['title']}: {card['value']}"
        if card.get("change"):
            line += f" ({card['change']})"
        lines.append(line)
    return lines


def _activities(items: List[Dict[str, Any]]) -> List[str]:
    return [f"  [{item['status']}] {item['action']} - {item['time']}" for item in items]


def render_attendance(attendance: Dict[str, Any]) -> List[str]:
    lines = [
        f"  Status: {attendance['status']}",
        f"  In: {attendance['in_time']}   Out: {attendance['out_time']}",
        f"  Total hours: {attendance['total_hours']}",
    ]
    if attendance.get("punches"):
        punches = ", ".join(f"{p['time']} {p['type']}" for p in attendance["punches"])
        lines.append(f"  Punches: {punches}")
    return lines


def render_dashboard(payload: Dict[str, Any]) -> str:
    """Text rendering of a GET /api/dashboard payload"""
    view = payload.get("view", "employee")
    employee = payload.get("employee", {})
    content = payload.get("content", {})

    lines = [
        TITLES.get(view, "Dashboard"),
        "=" * len(TITLES.get(view, "Dashboard")),
        f"Welcome back, {employee.get('employee_name', '')} ({employee.get('employee_id', '')})",
        f"{employee.get('designation') or employee.get('role', '')}",
    ]

    lines += _section("Menu", (f"  {item['name']}" for item in payload.get("menu", [])))
    lines += _section("Overview", _stats(content.get("stats", [])))

    if view == "employee":
        if content.get("attendance"):
            lines += _section("Today's Attendance", render_attendance(content["attendance"]))
        lines += _section(
            "Leave Balance",
            (f"  {name.replace('_', ' ').title()}: {days}" for name, days in content.get("leave_balance", {}).items()),
        )
        lines += _section(
            "Announcements",
            (f"  {a['date']} {a['title']}: {a['message']}" for a in content.get("announcements", [])),
        )
    elif view == "hr_admin":
        lines += _section(
            "Departments",
            (f"  {d['name']}: {d['count']} ({d['growth']})" for d in content.get("department_stats", [])),
        )
    elif view == "ceo":
        lines += _section(
            "Department Performance",
            (f"  {d['name']}: {d['revenue']} {d['growth']}, {d['employees']} employees"
             for d in content.get("department_performance", [])),
        )
        lines += _section(
            "Strategic Initiatives",
            (f"  {i['title']} - {i['status']} ({i['progress']}%)" for i in content.get("initiatives", [])),
        )
    elif view == "manager":
        lines += _section(
            "Team",
            (f"  {m['name']}, {m['role']} - {m['performance']} [{m['status']}]" for m in content.get("team_members", [])),
        )

    lines += _section("Recent Activity", _activities(content.get("recent_activities", [])))
    return "\n".join(lines)


def render_employee(employee: Dict[str, Any]) -> str:
    fields = (
        ("ID", "id"),
        ("Employee ID", "employee_id"),
        ("Name", "employee_name"),
        ("Email", "email"),
        ("Department", "department_id"),
        ("Designation", "designation"),
        ("Role", "role"),
        ("Status", "employee_status"),
        ("Account", "account_status"),
        ("Joined", "doj"),
    )
    return "\n".join(f"{label:<12} {employee.get(key) if employee.get(key) is not None else ''}" for label, key in fields)


def render_employee_table(employees: List[Dict[str, Any]]) -> str:
    if not employees:
        return "No employees found"
    rows = [f"{'ID':>5}  {'Employee ID':<12} {'Name':<25} {'Department':<12} {'Role':<12} Status"]
    for e in employees:
        rows.append(
            f"{e['id']:>5}  {e['employee_id']:<12} {e['employee_name'][:25]:<25} "
            f"{e.get('department_id') or '':<12} {e.get('role') or '':<12} {e.get('employee_status') or ''}"
        )
    return "\n".join(rows)
