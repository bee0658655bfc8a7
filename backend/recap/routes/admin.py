# Overview: Flask API routes for super-admin operations; parses input and returns JSON responses.

"""
Super-admin routes.

Provides endpoints for:
- Franchise management (provision, rename, activate, revenue-share rate,
  password reset, delete)
- Revenue-share payments (recalculate, list, mark paid/unpaid, delete)
- Cross-franchise views (dashboard, sales, products, expenditures,
  product performance)

All endpoints require authentication and the super_admin role.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import ROLE_SUPER_ADMIN
from ..services import franchise_service, profit_sharing_service, reporting_service, permission_service
from ..services.auth_service import PasswordValidationError
from ..services.franchise_service import FranchiseError
from ..services.profit_sharing_service import ProfitSharingError
from ..decorators import require_auth, require_role
from ..time_utils import current_month, parse_business_date

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _audit(event_type: str, reason: str, franchise_id: int | None = None) -> None:
    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type=event_type,
        success=True,
        resource=request.path,
        action=request.method,
        reason=reason,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        franchise_id=franchise_id,
    )


def _franchise_error(e: FranchiseError):
    status = 404 if str(e) == "Franchise not found" else 400
    return jsonify({"error": str(e)}), status


def _this_year() -> int:
    return current_month(current_app.config["DISPLAY_TIMEZONE"])[0]


# =============================================================================
# FRANCHISE MANAGEMENT
# =============================================================================

@admin_bp.get("/franchises")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def list_franchises():
    """
    List franchises.

    Query params:
    - active_only: bool (default false)
    - search: matches franchise name or owner email
    """
    active_only = request.args.get("active_only", "false").lower() == "true"
    franchises = franchise_service.list_franchises(
        active_only=active_only,
        search=request.args.get("search"),
    )
    result = [f.to_dict() for f in franchises]
    return jsonify({"franchises": result, "count": len(result)})


@admin_bp.post("/franchises")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def create_franchise():
    """
    Provision a franchise with its owner account and default settings.

    Request body:
    {
        "email": "owner@example.com",
        "password": "Str0ng!pass",
        "name": "Franchise Name",
        "profit_sharing_percent": 10     // optional
    }
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    name = data.get("name")

    if not all([email, password, name]):
        return jsonify({"error": "email, password and name are required"}), 400

    try:
        franchise = franchise_service.create_franchise_account(
            email=email,
            password=password,
            name=name,
            profit_sharing_percent=data.get("profit_sharing_percent"),
        )
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except FranchiseError as e:
        if "already registered" in str(e):
            return jsonify({"error": str(e)}), 409
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create franchise")
        return jsonify({"error": "Internal server error"}), 500

    _audit("FRANCHISE_CREATED", f"Created franchise {franchise.name}", franchise_id=franchise.id)
    return jsonify({"franchise": franchise.to_dict()}), 201


@admin_bp.get("/franchises/<int:franchise_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def get_franchise(franchise_id: int):
    try:
        franchise = franchise_service.get_franchise(franchise_id)
    except FranchiseError as e:
        return _franchise_error(e)
    return jsonify({"franchise": franchise.to_dict()})


@admin_bp.put("/franchises/<int:franchise_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def update_franchise(franchise_id: int):
    data = request.get_json(silent=True) or {}
    try:
        franchise = franchise_service.update_franchise(franchise_id, data.get("name"))
    except FranchiseError as e:
        return _franchise_error(e)
    return jsonify({"franchise": franchise.to_dict()})


@admin_bp.put("/franchises/<int:franchise_id>/status")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def set_franchise_status(franchise_id: int):
    """Activate or deactivate a franchise. Body: {"is_active": bool}"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("is_active"), bool):
        return jsonify({"error": "is_active must be a boolean"}), 400

    try:
        franchise = franchise_service.set_franchise_active(franchise_id, data["is_active"])
    except FranchiseError as e:
        return _franchise_error(e)

    _audit(
        "FRANCHISE_ACTIVATED" if franchise.is_active else "FRANCHISE_DEACTIVATED",
        f"Franchise {franchise.id}",
        franchise_id=franchise.id,
    )
    return jsonify({"franchise": franchise.to_dict()})


@admin_bp.put("/franchises/<int:franchise_id>/profit-sharing")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def set_profit_sharing(franchise_id: int):
    """
    Set the revenue-share rate. Stored payments of the franchise are revalued.

    Body: {"profit_sharing_percent": 10}
    """
    data = request.get_json(silent=True) or {}
    if data.get("profit_sharing_percent") is None or isinstance(data.get("profit_sharing_percent"), bool):
        return jsonify({"error": "profit_sharing_percent is required"}), 400

    try:
        franchise = franchise_service.set_profit_sharing_percent(franchise_id, data["profit_sharing_percent"])
    except FranchiseError as e:
        return _franchise_error(e)
    return jsonify({"franchise": franchise.to_dict()})


@admin_bp.put("/franchises/<int:franchise_id>/password")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def reset_franchise_password(franchise_id: int):
    """Reset the owner's password; all of its sessions are revoked."""
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    if not password:
        return jsonify({"error": "password is required"}), 400

    try:
        franchise = franchise_service.change_franchise_password(franchise_id, password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except FranchiseError as e:
        return _franchise_error(e)

    _audit("PASSWORD_RESET", f"Password reset for franchise {franchise.id}", franchise_id=franchise.id)
    return jsonify({"message": "Password updated"})


@admin_bp.delete("/franchises/<int:franchise_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def delete_franchise(franchise_id: int):
    try:
        franchise_service.delete_franchise(franchise_id)
    except FranchiseError as e:
        return _franchise_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete franchise")
        return jsonify({"error": "Internal server error"}), 500

    _audit("FRANCHISE_DELETED", f"Deleted franchise {franchise_id}")
    return jsonify({"ok": True})


# =============================================================================
# REVENUE-SHARE PAYMENTS
# =============================================================================

@admin_bp.post("/payments/recalculate")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def recalculate_payments():
    """Body: {"month": 1-12, "year": 2026}"""
    data = request.get_json(silent=True) or {}
    month = data.get("month")
    year = data.get("year")
    if not isinstance(month, int) or not isinstance(year, int) or isinstance(month, bool) or isinstance(year, bool):
        return jsonify({"error": "month and year must be integers"}), 400

    try:
        payments = profit_sharing_service.recalculate_period(month, year)
    except ProfitSharingError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"count": len(payments), **profit_sharing_service.list_payments(month, year)})


@admin_bp.get("/payments")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def list_payments():
    """Query params: month, year (default: current), search"""
    this_year, this_month = current_month(current_app.config["DISPLAY_TIMEZONE"])
    try:
        result = profit_sharing_service.list_payments(
            request.args.get("month", this_month, type=int),
            request.args.get("year", this_year, type=int),
            search=request.args.get("search"),
        )
    except ProfitSharingError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result)


@admin_bp.put("/payments/<int:payment_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def update_payment(payment_id: int):
    """
    Body: {"payment_status": "paid" | "unpaid", "paid_at": "2026-01-17", "notes": "..."}
    """
    data = request.get_json(silent=True) or {}

    try:
        paid_at = parse_business_date(data.get("paid_at"), current_app.config["DISPLAY_TIMEZONE"])
    except (TypeError, ValueError, AttributeError):
        return jsonify({"error": "paid_at must be an ISO-8601 date or datetime"}), 400

    kwargs = {}
    if "notes" in data:
        kwargs["notes"] = data["notes"]

    try:
        payment = profit_sharing_service.update_payment_status(
            payment_id, data.get("payment_status"), paid_at=paid_at, **kwargs
        )
    except ProfitSharingError as e:
        status = 404 if str(e) == "Payment not found" else 400
        return jsonify({"error": str(e)}), status

    return jsonify({"payment": payment.to_dict()})


@admin_bp.delete("/payments/<int:payment_id>")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def delete_payment(payment_id: int):
    try:
        profit_sharing_service.delete_payment(payment_id)
    except ProfitSharingError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})


# =============================================================================
# CROSS-FRANCHISE VIEWS
# =============================================================================

@admin_bp.get("/dashboard")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def dashboard():
    """Query params: year (default current), top_n (default 5, 0 = all)"""
    top_n = request.args.get("top_n", 5, type=int)
    try:
        report = reporting_service.admin_dashboard(
            request.args.get("year", _this_year(), type=int),
            top_n=None if top_n == 0 else top_n,
        )
    except reporting_service.ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)


@admin_bp.get("/sales")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def global_sales():
    """Query params: year (default current), month (optional), franchise_id (optional)"""
    try:
        report = reporting_service.global_sales_report(
            request.args.get("year", _this_year(), type=int),
            month=request.args.get("month", type=int),
            franchise_id=request.args.get("franchise_id", type=int),
        )
    except reporting_service.ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)


@admin_bp.get("/products")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def global_products():
    return jsonify(reporting_service.global_products(
        franchise_id=request.args.get("franchise_id", type=int),
        search=request.args.get("search"),
        page=request.args.get("page", 1, type=int),
        per_page=request.args.get("per_page", type=int),
    ))


@admin_bp.get("/expenditures")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def global_expenditures():
    try:
        report = reporting_service.global_expenditures(
            month=request.args.get("month"),
            franchise_id=request.args.get("franchise_id", type=int),
            page=request.args.get("page", 1, type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except reporting_service.ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)


@admin_bp.get("/product-performance")
@require_auth
@require_role(ROLE_SUPER_ADMIN)
def product_performance():
    """Query params: year, month (default current), franchise_id, search, page, per_page, top_n"""
    this_year, this_month = current_month(current_app.config["DISPLAY_TIMEZONE"])
    try:
        report = reporting_service.product_performance(
            request.args.get("year", this_year, type=int),
            request.args.get("month", this_month, type=int),
            franchise_id=request.args.get("franchise_id", type=int),
            search=request.args.get("search"),
            page=request.args.get("page", 1, type=int),
            per_page=request.args.get("per_page", 25, type=int),
            top_n=request.args.get("top_n", 10, type=int),
        )
    except reporting_service.ReportError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)
