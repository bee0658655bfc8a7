# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales log routes.

Every sale in a response carries discount_amount, total_sales_after_discount,
total_admin_fee and net_profit computed from the franchise's current fee
settings.
"""
from flask import Blueprint, request, current_app

from ..services import sales_service
from ..services.sales_service import SaleError
from ..services.tenant_service import TenantAccessError, resolve_franchise_id
from ..models import Sale
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_sale, ValidationError
from ..decorators import require_auth

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "discount_type", "discount_value", "created_at"},
    required_on_create={"product_id", "quantity"},
)

SALE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "discount_type", "discount_value", "created_at"},
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _franchise_id() -> int:
    return resolve_franchise_id(request.args.get("franchise_id", type=int))


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales log page.

    Query params:
    - month: "YYYY-MM" (default: current month) or "all"
    - page: int (default 1)
    - per_page: int (default ITEMS_PER_PAGE)
    """
    try:
        result = sales_service.sales_page(
            _franchise_id(),
            month=request.args.get("month"),
            page=request.args.get("page", 1, type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except (ValidationError, SaleError) as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    return result


@sales_bp.get("/months")
@require_auth
def month_options_route():
    """Month filter options: the current month and the eleven before it."""
    return {"months": sales_service.month_options()}


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(_franchise_id(), sale_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Sale not found"}, 404

    return sale.to_dict()


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Record a sale.

    Request body:
    {
        "product_id": 1,
        "quantity": 2,
        "discount_type": "percentage",   // none | percentage | fixed
        "discount_value": 10,
        "created_at": "2026-01-17"       // optional business date
    }
    """
    payload = request.get_json(silent=True) or {}
    tz_name = current_app.config["DISPLAY_TIMEZONE"]

    try:
        franchise_id = _franchise_id()
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False, tz_name=tz_name)
        enforce_rules_sale(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    try:
        sale = sales_service.record_sale(
            franchise_id,
            product_id=patch["product_id"],
            quantity=patch["quantity"],
            discount_type=patch.get("discount_type"),
            discount_value=patch.get("discount_value"),
            created_at=patch.get("created_at"),
        )
    except SaleError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Product not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return {"error": "Internal server error"}, 500

    return sale.to_dict(), 201


@sales_bp.put("/<int:sale_id>")
@require_auth
def update_sale_route(sale_id: int):
    """Edit quantity, discount or business date; the product snapshot is kept."""
    payload = request.get_json(silent=True) or {}
    tz_name = current_app.config["DISPLAY_TIMEZONE"]

    try:
        franchise_id = _franchise_id()
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_UPDATE_POLICY, partial=True, tz_name=tz_name)
        enforce_rules_sale(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    try:
        sale = sales_service.update_sale(franchise_id, sale_id, patch)
    except SaleError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Sale not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to update sale %s", sale_id)
        return {"error": "Internal server error"}, 500

    return sale.to_dict(), 200


@sales_bp.delete("/<int:sale_id>")
@require_auth
def delete_sale_route(sale_id: int):
    try:
        sales_service.delete_sale(_franchise_id(), sale_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Sale not found"}, 404
    except Exception:
        current_app.logger.exception("Failed to delete sale %s", sale_id)
        return {"error": "Internal server error"}, 500

    return {"ok": True}, 200
