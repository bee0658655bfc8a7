# Overview: Flask API routes for fee settings; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth
from ..services import settings_service
from ..services.tenant_service import TenantAccessError, resolve_franchise_id
from ..models import AdminSettings
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_admin_settings, ValidationError


SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields={"admin_fee_percent", "fixed_deduction"},
)

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_auth
def get_settings_route():
    """Fee settings of the franchise (configured defaults when none are stored)."""
    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404

    try:
        payload = settings_service.settings_payload(franchise_id)
    except Exception:
        current_app.logger.exception("Failed to load settings for franchise %s", franchise_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(payload), 200


@settings_bp.put("")
@require_auth
def update_settings_route():
    """
    Update admin_fee_percent and/or fixed_deduction.

    Every sale of the franchise is re-valued with the new terms on the next read.
    """
    payload = request.get_json(silent=True) or {}

    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        patch = validate_payload(model=AdminSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)
        enforce_rules_admin_settings(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError as e:
        return jsonify({"error": str(e)}), 404

    try:
        row = settings_service.update_admin_settings(franchise_id, patch)
    except Exception:
        current_app.logger.exception("Failed to update settings for franchise %s", franchise_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(row.to_dict()), 200
