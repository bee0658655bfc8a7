# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes with multi-tenant support.

MULTI-TENANT: Franchise users always act on their own franchise. A super
admin passes ?franchise_id= to act on a specific one.

SECURITY: All routes require authentication.
"""
from flask import Blueprint, request, current_app

from ..services import products_service
from ..services.tenant_service import TenantAccessError, resolve_franchise_id
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "hpp", "price"},
    required_on_create={"name", "code", "hpp", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products of the franchise.

    Query params:
    - search: str (optional) - matches name or code
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    return products_service.list_products(
        franchise_id=franchise_id,
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        product = products_service.get_product(franchise_id, product_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    return product.to_dict()


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Create a new product in the caller's franchise.

    Product codes are unique per franchise (409 on duplicate).
    """
    payload = request.get_json(silent=True) or {}

    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    try:
        created = products_service.create_product(franchise_id=franchise_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """
    Update a product.

    Past sales keep the price and hpp they were recorded with.
    """
    payload = request.get_json(silent=True) or {}

    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError as e:
        return {"error": str(e)}, 404

    try:
        updated = products_service.update_product(franchise_id=franchise_id, product_id=product_id, patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """
    Delete a product. Sales of it stay in every report.
    """
    try:
        franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
        products_service.delete_product(franchise_id=franchise_id, product_id=product_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except TenantAccessError:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
