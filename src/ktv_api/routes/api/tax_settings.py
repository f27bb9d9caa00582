"""Tax settings API."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import login_required, management_required
from ktv_shared.schemas import TaxSettingRequest, TaxSettingUpdateRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import tax_service

tax_settings_bp = Blueprint("tax_settings", __name__)


@tax_settings_bp.get("/tax-settings")
@login_required
def list_tax_settings():
    return jsonify(
        success_response(
            {
                "settings": tax_service.list_tax_settings(),
                "active_rate": float(tax_service.get_active_tax_rate()),
            }
        )
    )


@tax_settings_bp.post("/tax-settings")
@management_required
def create_tax_setting():
    data = TaxSettingRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(tax_service.create_tax_setting(data.model_dump()))), HTTPStatus.CREATED


@tax_settings_bp.put("/tax-settings/<int:setting_id>")
@management_required
def update_tax_setting(setting_id: int):
    data = TaxSettingUpdateRequest(**(request.get_json(silent=True) or {}))
    return jsonify(
        success_response(tax_service.update_tax_setting(setting_id, data.model_dump(exclude_unset=True)))
    )
