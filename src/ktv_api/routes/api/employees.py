"""
Employees API - staff records and user-role management.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import management_required
from ktv_shared.schemas import AssignRoleRequest, EmployeeRequest, EmployeeUpdateRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import employee_service, role_service

employees_bp = Blueprint("employees", __name__)


@employees_bp.get("/employees")
@management_required
def list_employees():
    """Query params: search (name or employee id), division"""
    employees = employee_service.list_employees(
        search=request.args.get("search"),
        division=request.args.get("division"),
    )
    return jsonify(success_response(employees))


@employees_bp.get("/employees/<int:employee_pk>")
@management_required
def get_employee(employee_pk: int):
    return jsonify(success_response(employee_service.get_employee(employee_pk)))


@employees_bp.post("/employees")
@management_required
def create_employee():
    data = EmployeeRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(employee_service.create_employee(data.model_dump()))), HTTPStatus.CREATED


@employees_bp.put("/employees/<int:employee_pk>")
@management_required
def update_employee(employee_pk: int):
    data = EmployeeUpdateRequest(**(request.get_json(silent=True) or {}))
    return jsonify(
        success_response(employee_service.update_employee(employee_pk, data.model_dump(exclude_unset=True)))
    )


@employees_bp.delete("/employees/<int:employee_pk>")
@management_required
def delete_employee(employee_pk: int):
    employee_service.delete_employee(employee_pk)
    return jsonify(success_response({"id": employee_pk}))


# ==================== USER ROLES ====================


@employees_bp.get("/user-roles")
@management_required
def list_user_roles():
    return jsonify(success_response(role_service.list_users_with_roles()))


@employees_bp.post("/user-roles")
@management_required
def assign_role():
    data = AssignRoleRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(role_service.assign_role(data.user_id, data.role))), HTTPStatus.CREATED


@employees_bp.delete("/user-roles/<int:user_role_id>")
@management_required
def remove_role(user_role_id: int):
    role_service.remove_role(user_role_id)
    return jsonify(success_response({"id": user_role_id}))
