"""Reset the database and load the DataVista demo dataset.

Demo logins:
    admin@datavista.com / admin123        (ADMIN)
    employee@datavista.com / employee123  (EMPLOYEE, linked to Sarah Johnson)
"""
import argparse
import asyncio
import logging
import sys
from datetime import date, datetime
from typing import Any, Dict, List

from datavista.core.config import configure_logging, get_settings
from datavista.core.database import Database, Repository
from datavista.core.security import CredentialService
from datavista.models.model import AttendanceRecord, AttendanceStatus, Employee, Role, Task, User

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"email": "admin@datavista.com", "password": "admin123", "role": Role.ADMIN},
    {"email": "employee@datavista.com", "password": "employee123", "role": Role.EMPLOYEE},
]

LINKED_USER_EMAIL = "employee@datavista.com"


def _task(title: str, description: str, completed: bool, priority: str, due: str) -> Dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "completed": completed,
        "priority": priority,
        "due_date": datetime.fromisoformat(due),
    }


def _day(day: str, status: AttendanceStatus, check_in: str = None, check_out: str = None,
         notes: str = None) -> Dict[str, Any]:
    return {
        "date": date.fromisoformat(day),
        "status": status,
        "check_in": datetime.fromisoformat(f"{day}T{check_in}") if check_in else None,
        "check_out": datetime.fromisoformat(f"{day}T{check_out}") if check_out else None,
        "notes": notes,
    }


PRESENT = AttendanceStatus.PRESENT

DEMO_EMPLOYEES: List[Dict[str, Any]] = [
    {
        "user_email": LINKED_USER_EMAIL,
        "name": "Sarah Johnson",
        "email": "sarah.johnson@datavista.com",
        "age": 28,
        "class_": "Senior",
        "subjects": ["TypeScript", "React", "Node.js", "GraphQL"],
        "department": "Engineering",
        "position": "Senior Software Engineer",
        "avatar": "https://i.pravatar.cc/150?img=1",
        "phone": "+1-555-0101",
        "address": "123 Tech Street, San Francisco, CA",
        "salary": 125000,
        "tasks": [
            _task("Implement authentication system",
                  "Set up JWT-based authentication with role-based access control", True, "high", "2024-11-15"),
            _task("Code review PR #456",
                  "Review and approve pending pull request for new features", False, "medium", "2024-12-10"),
            _task("Optimize database queries",
                  "Improve performance by adding indexes and optimizing queries", False, "high", "2024-12-05"),
        ],
        "attendance": [
            _day("2024-11-25", PRESENT, "09:00:00", "17:30:00"),
            _day("2024-11-26", PRESENT, "08:45:00", "17:15:00"),
            _day("2024-11-27", AttendanceStatus.LATE, "10:30:00", "18:00:00", "Medical appointment in morning"),
        ],
    },
    {
        "name": "Michael Chen",
        "email": "michael.chen@datavista.com",
        "age": 35,
        "class_": "Principal",
        "subjects": ["Product Strategy", "Agile", "Leadership", "Analytics"],
        "department": "Product",
        "position": "Product Manager",
        "avatar": "https://i.pravatar.cc/150?img=2",
        "phone": "+1-555-0102",
        "address": "456 Innovation Ave, San Francisco, CA",
        "salary": 140000,
        "tasks": [
            _task("Q1 Product Roadmap", "Define and prioritize features for Q1 2025", False, "high", "2024-12-15"),
            _task("Stakeholder Presentation", "Present new features to executive team", True, "high", "2024-11-20"),
        ],
        "attendance": [
            _day("2024-11-25", PRESENT, "09:15:00", "18:00:00"),
            _day("2024-11-26", AttendanceStatus.LEAVE, notes="Planned vacation"),
        ],
    },
    {
        "name": "Emily Rodriguez",
        "email": "emily.rodriguez@datavista.com",
        "age": 26,
        "class_": "Mid-Level",
        "subjects": ["UI Design", "UX Research", "Figma", "Prototyping"],
        "department": "Design",
        "position": "UX Designer",
        "avatar": "https://i.pravatar.cc/150?img=3",
        "phone": "+1-555-0103",
        "address": "789 Creative Blvd, San Francisco, CA",
        "salary": 95000,
        "flagged": True,
        "tasks": [
            _task("Dashboard Redesign", "Create modern wireframes for analytics dashboard", False, "medium", "2024-12-20"),
            _task("User Research Study", "Conduct interviews with 10 users about new features", False, "high", "2024-12-08"),
        ],
        "attendance": [
            _day("2024-11-25", PRESENT, "09:00:00", "17:00:00"),
        ],
    },
    {
        "name": "David Park",
        "email": "david.park@datavista.com",
        "age": 32,
        "class_": "Senior",
        "subjects": ["Python", "Machine Learning", "Statistics", "TensorFlow"],
        "department": "Data Science",
        "position": "Data Scientist",
        "avatar": "https://i.pravatar.cc/150?img=4",
        "phone": "+1-555-0104",
        "address": "321 Data Drive, San Francisco, CA",
        "salary": 135000,
        "tasks": [
            _task("ML Model Training", "Improve prediction model accuracy to 95%+", False, "high", "2024-12-12"),
            _task("Monthly Analytics Report", "Generate and present November analytics", True, "medium", "2024-11-30"),
        ],
        "attendance": [
            _day("2024-11-25", PRESENT, "08:30:00", "17:45:00"),
            _day("2024-11-26", PRESENT, "09:00:00", "18:00:00"),
        ],
    },
    {
        "name": "Jessica Williams",
        "email": "jessica.williams@datavista.com",
        "age": 30,
        "class_": "Senior",
        "subjects": ["Marketing Strategy", "SEO", "Content Marketing", "Analytics"],
        "department": "Marketing",
        "position": "Marketing Director",
        "avatar": "https://i.pravatar.cc/150?img=5",
        "phone": "+1-555-0105",
        "address": "654 Marketing Lane, San Francisco, CA",
        "salary": 115000,
        "tasks": [
            _task("Q4 Campaign Launch", "Coordinate and execute end-of-year marketing campaign", False, "high", "2024-12-18"),
            _task("Social Media Strategy", "Develop 2025 social media content calendar", False, "low", "2024-12-22"),
        ],
        "attendance": [
            _day("2024-11-25", PRESENT, "09:00:00", "17:30:00"),
            _day("2024-11-26", AttendanceStatus.ABSENT, notes="Sick leave"),
        ],
    },
    {
        "name": "Alex Thompson",
        "email": "alex.thompson@datavista.com",
        "age": 24,
        "class_": "Junior",
        "subjects": ["JavaScript", "HTML", "CSS", "React"],
        "department": "Engineering",
        "position": "Frontend Developer",
        "avatar": "https://i.pravatar.cc/150?img=6",
        "phone": "+1-555-0106",
        "address": "987 Code Street, San Francisco, CA",
        "salary": 85000,
        "tasks": [
            _task("Build responsive components",
                  "Create reusable UI components for the design system", False, "medium", "2024-12-14"),
        ],
        "attendance": [
            _day("2024-11-25", PRESENT, "09:00:00", "17:00:00"),
        ],
    },
]


async def seed(database: Database, credentials: CredentialService) -> Dict[str, int]:
    """Wipe every table and insert the demo dataset; returns row counts per table"""
    users = Repository(User)
    employees = Repository(Employee)
    tasks = Repository(Task)
    attendance = Repository(AttendanceRecord)

    hashed = {}
    for demo_user in DEMO_USERS:
        hashed[demo_user["email"]] = await asyncio.to_thread(credentials.hash_password, demo_user["password"])

    async with database.session() as session:
        for repository in (attendance, tasks, employees, users):
            await repository.delete_where(session)

        user_ids = {}
        for demo_user in DEMO_USERS:
            user = await users.create(session, {
                "email": demo_user["email"],
                "password": hashed[demo_user["email"]],
                "role": demo_user["role"],
            })
            user_ids[user.email] = user.id

        for demo_employee in DEMO_EMPLOYEES:
            data = dict(demo_employee)
            employee_tasks = data.pop("tasks")
            employee_attendance = data.pop("attendance")
            user_email = data.pop("user_email", None)
            if user_email:
                data["user_id"] = user_ids[user_email]

            employee = await employees.create(session, data)
            for task in employee_tasks:
                await tasks.create(session, {**task, "employee_id": employee.id})
            for record in employee_attendance:
                await attendance.create(session, {**record, "employee_id": employee.id})

        counts = {
            "users": await users.count(session),
            "employees": await employees.count(session),
            "tasks": await tasks.count(session),
            "attendance_records": await attendance.count(session),
        }

    logger.info(
        f"Seeded {counts['users']} users, {counts['employees']} employees, "
        f"{counts['tasks']} tasks and {counts['attendance_records']} attendance records"
    )
    return counts


async def run_seed() -> int:
    settings = get_settings()
    database = Database.from_settings(settings)
    try:
        await database.init_db()
        await seed(database, CredentialService.from_settings(settings))
    except Exception as e:
        logger.exception(f"Error seeding database: {str(e)}")
        return 1
    finally:
        await database.close()

    for demo_user in DEMO_USERS:
        logger.info(f"{demo_user['role'].value}: {demo_user['email']} / {demo_user['password']}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Reset the database and load the DataVista demo data")
    parser.parse_args()

    configure_logging(get_settings())
    sys.exit(asyncio.run(run_seed()))


if __name__ == "__main__":
    main()
