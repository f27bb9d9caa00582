"""Staff roster (employee records, not login accounts)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Employee, Profile
from ktv_shared.serializers import serialize_employee
from ktv_shared.validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    validate_division,
    validate_phone,
)

logger = get_logger(__name__)


def generate_employee_id(session: Session, name: str, division: str) -> str:
    """
    Next roster id for a division, e.g. ``KAS-003``.

    The number continues after the highest id already issued with the prefix.
    """
    if not name or not name.strip():
        raise ValidationError("Name is required")
    validate_division(division)
    prefix = f"{division[:3]}-"

    existing = session.execute(
        select(Employee.employee_id).where(Employee.employee_id.like(f"{prefix}%"))
    ).scalars().all()
    highest = 0
    for employee_id in existing:
        suffix = employee_id[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:03d}"


def _load(session: Session, employee_pk: int) -> Employee:
    employee = session.get(Employee, employee_pk)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


def _check_user(session: Session, user_id: int | None) -> None:
    if user_id is not None and session.get(Profile, user_id) is None:
        raise ValidationError("Linked user not found")


def list_employees(search: str | None = None, division: str | None = None) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(Employee).order_by(Employee.division, Employee.name)
        if division:
            stmt = stmt.where(Employee.division == division.upper())
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Employee.name.ilike(pattern),
                    Employee.employee_id.ilike(pattern),
                    Employee.phone.ilike(pattern),
                )
            )
        return [serialize_employee(e) for e in session.execute(stmt).scalars().all()]


def get_employee(employee_pk: int) -> dict[str, Any]:
    with get_session() as session:
        return serialize_employee(_load(session, employee_pk))


def create_employee(data: dict[str, Any]) -> dict[str, Any]:
    division = data["division"].upper()
    validate_division(division)
    validate_phone(data.get("phone"))

    with get_session() as session:
        _check_user(session, data.get("user_id"))
        employee_id = data.get("employee_id") or generate_employee_id(
            session, data["name"], division
        )
        taken = session.execute(
            select(func.count(Employee.id)).where(Employee.employee_id == employee_id)
        ).scalar_one()
        if taken:
            raise ConflictError(f"Employee id {employee_id} already exists")

        employee = Employee(
            employee_id=employee_id,
            name=data["name"].strip(),
            division=division,
            phone=data.get("phone") or None,
            user_id=data.get("user_id"),
        )
        session.add(employee)
        session.flush()
        logger.info(f"Created employee {employee.employee_id} ({division})")
        return serialize_employee(employee)


def update_employee(employee_pk: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        employee = _load(session, employee_pk)
        if data.get("division"):
            division = data["division"].upper()
            validate_division(division)
            employee.division = division
        if "phone" in data:
            validate_phone(data["phone"])
            employee.phone = data["phone"] or None
        if data.get("name"):
            employee.name = data["name"].strip()
        if "user_id" in data:
            _check_user(session, data["user_id"])
            employee.user_id = data["user_id"]
        session.flush()
        logger.info(f"Updated employee {employee.employee_id}")
        return serialize_employee(employee)


def delete_employee(employee_pk: int) -> None:
    with get_session() as session:
        employee = _load(session, employee_pk)
        session.delete(employee)
        logger.info(f"Deleted employee {employee.employee_id}")
