# hrms_server/services/dashboards.py
import logging
from typing import Any, Dict, List

from hrms_server.core.security import Role
from hrms_server.models.model import Employee
from hrms_server.services.attendance import summarize_attendance

logger = logging.getLogger(__name__)

HR_ADMIN_VIEW = "hr_admin"
CEO_VIEW = "ceo"
MANAGER_VIEW = "manager"
EMPLOYEE_VIEW = "employee"

VIEW_BY_ROLE = {
    Role.HR_ADMIN.value: HR_ADMIN_VIEW,
    Role.CEO.value: CEO_VIEW,
    Role.SUPER_ADMIN.value: CEO_VIEW,
    Role.MANAGER.value: MANAGER_VIEW,
}

MANAGER_MENU_ROLES = {Role.MANAGER.value, Role.HR_ADMIN.value, Role.CEO.value}
HR_MENU_ROLES = {Role.HR_ADMIN.value, Role.CEO.value}

BASE_MENU = [
    {"name": "Dashboard", "href": "/dashboard"},
    {"name": "Profile", "href": "/dashboard/profile"},
    {"name": "Leave Management", "href": "/dashboard/leave"},
    {"name": "Attendance", "href": "/dashboard/attendance"},
]

MANAGER_MENU = [
    {"name": "Team Management", "href": "/dashboard/team"},
    {"name": "Performance Reviews", "href": "/dashboard/performance"},
]

HR_MENU = [
    {"name": "Employee Directory", "href": "/dashboard/employees"},
    {"name": "Recruitment", "href": "/dashboard/recruitment"},
    {"name": "Payroll", "href": "/dashboard/payroll"},
    {"name": "Reports & Analytics", "href": "/dashboard/reports"},
]

CEO_MENU = [
    {"name": "Company Overview", "href": "/dashboard/company"},
    {"name": "Strategic Reports", "href": "/dashboard/strategic"},
]

# Sample punches shown until attendance is sourced from the device feed
SAMPLE_ATTENDANCE = {
    "status": "Present",
    "in_time": "09:13 (IN 1)",
    "out_time": "18:31 (OUT 1)",
    "punch_records": "09:13 (IN 1), 12:30 (OUT 1), 13:30 (IN 2), 18:31 (OUT 2)",
}

ANNOUNCEMENTS = [
    {
        "title": "Company Holiday Schedule",
        "message": "Office will be closed from Dec 24-26 for Christmas holidays",
        "date": "2024-12-20",
        "priority": "high",
    },
    {
        "title": "New Health Insurance Benefits",
        "message": "Updated health insurance coverage effective from January 1st",
        "date": "2024-12-18",
        "priority": "medium",
    },
    {
        "title": "Team Building Event",
        "message": "Annual team building event scheduled for January 15th",
        "date": "2024-12-15",
        "priority": "low",
    },
]


def _stat(title: str, value: str, change: str = None) -> Dict[str, Any]:
    card = {"title": title, "value": value}
    if change is not None:
        card["change"] = change
        card["change_type"] = "negative" if change.startswith("-") else "positive"
    return card


def _activity(action: str, time: str, status: str) -> Dict[str, str]:
    return {"action": action, "time": time, "status": status}


def view_for_role(role: str) -> str:
    return VIEW_BY_ROLE.get(role or "", EMPLOYEE_VIEW)


def menu_for_role(role: str) -> List[Dict[str, str]]:
    """Sidebar entries visible to a role"""
    menu = list(BASE_MENU)
    if role in MANAGER_MENU_ROLES:
        menu.extend(MANAGER_MENU)
    if role in HR_MENU_ROLES:
        menu.extend(HR_MENU)
    if role == Role.CEO.value:
        menu.extend(CEO_MENU)
    return menu


def hr_admin_content() -> Dict[str, Any]:
    return {
        "stats": [
            _stat("Total Employees", "156", "+12"),
            _stat("Active Recruitments", "8", "+3"),
            _stat("Pending Approvals", "23", "-5"),
            _stat("Departments", "12", "+1"),
        ],
        "recent_activities": [
            _activity("New employee onboarding completed", "1 hour ago", "completed"),
            _activity("Leave request requires approval", "2 hours ago", "pending"),
            _activity("Performance review scheduled", "1 day ago", "completed"),
            _activity("Payroll processing started", "2 days ago", "completed"),
        ],
        "department_stats": [
            {"name": "Engineering", "count": 45, "growth": "+8%"},
            {"name": "Sales", "count": 32, "growth": "+12%"},
            {"name": "Marketing", "count": 28, "growth": "+5%"},
            {"name": "HR", "count": 15, "growth": "+2%"},
            {"name": "Finance", "count": 18, "growth": "+3%"},
            {"name": "Operations", "count": 18, "growth": "+7%"},
        ],
    }


def ceo_content() -> Dict[str, Any]:
    return {
        "stats": [
            _stat("Total Revenue", "$2.4M", "+12.5%"),
            _stat("Total Employees", "156", "+8.2%"),
            _stat("Active Projects", "24", "+15.3%"),
            _stat("Market Share", "18.7%", "+2.1%"),
        ],
        "department_performance": [
            {"name": "Engineering", "revenue": "$850K", "growth": "+18%", "employees": 45},
            {"name": "Sales", "revenue": "$720K", "growth": "+22%", "employees": 32},
            {"name": "Marketing", "revenue": "$420K", "growth": "+15%", "employees": 28},
            {"name": "Operations", "revenue": "$310K", "growth": "+12%", "employees": 18},
        ],
        "initiatives": [
            {"title": "Market Expansion - Asia Pacific", "status": "In Progress", "progress": 65},
            {"title": "Product Innovation Pipeline", "status": "Planning", "progress": 30},
            {"title": "Digital Transformation", "status": "Completed", "progress": 100},
        ],
        "recent_activities": [
            _activity("Q4 Financial Results Approved", "2 hours ago", "completed"),
            _activity("New Board Member Nomination", "1 day ago", "pending"),
            _activity("Strategic Plan Review Meeting", "3 days ago", "completed"),
        ],
    }


def manager_content() -> Dict[str, Any]:
    return {
        "stats": [
            _stat("Team Size", "12", "+2"),
            _stat("Active Projects", "8", "+1"),
            _stat("Team Performance", "4.3/5.0", "+0.2"),
            _stat("Pending Reviews", "5", "-2"),
        ],
        "team_members": [
            {"name": "John Smith", "role": "Senior Developer", "performance": 4.5, "status": "active"},
            {"name": "Sarah Johnson", "role": "UI/UX Designer", "performance": 4.2, "status": "active"},
            {"name": "Mike Davis", "role": "Frontend Developer", "performance": 3.8, "status": "review"},
            {"name": "Emily Wilson", "role": "Backend Developer", "performance": 4.7, "status": "active"},
        ],
        "recent_activities": [
            _activity("Performance review completed for John Smith", "2 hours ago", "completed"),
            _activity("New project assigned to team", "1 day ago", "completed"),
            _activity("Team meeting scheduled for tomorrow", "3 days ago", "pending"),
        ],
    }


def employee_content(employee: Employee) -> Dict[str, Any]:
    leave_balance = dict(employee.leave_balance or {})
    available = 0
    for value in leave_balance.values():
        try:
            available += int(value)
        except (TypeError, ValueError):
            continue

    return {
        "stats": [
            _stat("Leave Balance", f"{available} days"),
            _stat("This Month Attendance", "22/23 days"),
            _stat("Performance Rating", "4.2/5.0"),
            _stat("Team Members", "8 people"),
        ],
        "attendance": summarize_attendance(
            SAMPLE_ATTENDANCE["punch_records"],
            status=SAMPLE_ATTENDANCE["status"],
            in_time=SAMPLE_ATTENDANCE["in_time"],
            out_time=SAMPLE_ATTENDANCE["out_time"],
        ),
        "leave_balance": leave_balance,
        "announcements": list(ANNOUNCEMENTS),
        "recent_activities": [
            _activity("Leave request submitted", "2 hours ago", "pending"),
            _activity("Timesheet updated", "1 day ago", "completed"),
            _activity("Performance review completed", "3 days ago", "completed"),
        ],
    }


def employee_summary(employee: Employee) -> Dict[str, Any]:
    return {
        "id": employee.id,
        "employee_id": employee.employee_id,
        "employee_name": employee.employee_name,
        "designation": employee.designation,
        "department_id": employee.department_id,
        "role": employee.role,
        "employment_type": employee.employment_type,
    }


def build_dashboard(employee: Employee) -> Dict[str, Any]:
    view = view_for_role(employee.role)
    if view == HR_ADMIN_VIEW:
        content = hr_admin_content()
    elif view == CEO_VIEW:
        content = ceo_content()
    elif view == MANAGER_VIEW:
        content = manager_content()
    else:
        content = employee_content(employee)

    logger.debug(f"Dashboard view '{view}' built for {employee.employee_id}")
    return {
        "view": view,
        "employee": employee_summary(employee),
        "menu": menu_for_role(employee.role),
        "content": content,
    }
