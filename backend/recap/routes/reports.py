from flask import Blueprint, jsonify, request, current_app

from recap.decorators import require_auth
from recap.services import reporting_service
from recap.services.tenant_service import TenantAccessError, resolve_franchise_id
from recap.time_utils import current_month
from recap.validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _year_arg() -> int:
    year = request.args.get("year", type=int)
    if year is None:
        year = current_month(current_app.config["DISPLAY_TIMEZONE"])[0]
    return year


@reports_bp.get("/financial")
@require_auth
def financial_report():
    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        report = reporting_service.financial_report(franchise_id, _year_arg())
        return jsonify(report), 200
    except (ValidationError, reporting_service.ReportError) as exc:
        return jsonify({"error": str(exc)}), 400
    except TenantAccessError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to build financial report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/real-profit")
@require_auth
def real_profit_report():
    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        report = reporting_service.real_profit_report(
            franchise_id,
            _year_arg(),
            month=request.args.get("month", type=int),
        )
        return jsonify(report), 200
    except (ValidationError, reporting_service.ReportError) as exc:
        return jsonify({"error": str(exc)}), 400
    except TenantAccessError as exc:
        return jsonify({"error": str(exc)}), 404
    except Exception:
        current_app.logger.exception("Failed to build real profit report")
        return jsonify({"error": "Internal server error"}), 500
