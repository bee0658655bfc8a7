# Overview: Flask API routes for expenditure operations; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..services import expenditure_service
from ..services.expenditure_service import ExpenditureError
from ..services.tenant_service import TenantAccessError, resolve_franchise_id
from ..models import Expenditure
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_expenditure, ValidationError
from ..decorators import require_auth

EXPENDITURE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "description", "expenditure_date"},
    required_on_create={"amount", "description"},
)

expenditures_bp = Blueprint("expenditures", __name__, url_prefix="/api/expenditures")


def _franchise_id() -> int:
    return resolve_franchise_id(request.args.get("franchise_id", type=int))


@expenditures_bp.get("")
@require_auth
def list_expenditures_route():
    """
    Expenditure log.

    Query params:
    - month: "YYYY-MM" or "all" (default all)
    - page, per_page
    """
    try:
        result = expenditure_service.list_expenditures(
            _franchise_id(),
            month=request.args.get("month"),
            page=request.args.get("page", 1, type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except (ValidationError, ExpenditureError) as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    return result


@expenditures_bp.get("/months")
@require_auth
def available_months_route():
    try:
        franchise_id = _franchise_id()
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    return {"months": expenditure_service.available_months(franchise_id)}


@expenditures_bp.post("")
@require_auth
def create_expenditure_route():
    payload = request.get_json(silent=True) or {}
    tz_name = current_app.config["DISPLAY_TIMEZONE"]

    try:
        franchise_id = _franchise_id()
        patch = validate_payload(
            model=Expenditure, payload=payload, policy=EXPENDITURE_POLICY, partial=False, tz_name=tz_name
        )
        enforce_rules_expenditure(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    try:
        row = expenditure_service.create_expenditure(
            franchise_id,
            amount=patch["amount"],
            description=patch["description"],
            expenditure_date=patch.get("expenditure_date"),
        )
    except ExpenditureError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create expenditure")
        return {"error": "Internal server error"}, 500

    return row.to_dict(), 201


@expenditures_bp.put("/<int:expenditure_id>")
@require_auth
def update_expenditure_route(expenditure_id: int):
    payload = request.get_json(silent=True) or {}
    tz_name = current_app.config["DISPLAY_TIMEZONE"]

    try:
        franchise_id = _franchise_id()
        patch = validate_payload(
            model=Expenditure, payload=payload, policy=EXPENDITURE_POLICY, partial=True, tz_name=tz_name
        )
        enforce_rules_expenditure(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    try:
        row = expenditure_service.update_expenditure(franchise_id, expenditure_id, patch)
    except ExpenditureError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Expenditure not found"}, 404

    return row.to_dict(), 200


@expenditures_bp.delete("/<int:expenditure_id>")
@require_auth
def delete_expenditure_route(expenditure_id: int):
    try:
        expenditure_service.delete_expenditure(_franchise_id(), expenditure_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Expenditure not found"}, 404

    return {"ok": True}, 200
