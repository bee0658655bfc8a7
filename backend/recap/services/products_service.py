# backend/recap/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: Every operation takes an explicit franchise_id.
- list_products filters to that franchise
- update_product and delete_product verify the row belongs to it
- list_all_products is the super admin's cross-franchise view
"""
from __future__ import annotations
from ..extensions import db
from ..models import Product, Sale, Franchise
from ..validation import ConflictError
from .tenant_service import require_row_in_franchise

PRODUCT_MUTABLE_FIELDS = {"name", "code", "hpp", "price"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _search_filter(query, search: str | None):
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(Product.name.ilike(like), Product.code.ilike(like)))
    return query


def _page(base_query, page: int | None, per_page: int | None, serialize) -> dict:
    # If no pagination requested, return all items
    if page is None:
        rows = base_query.all()
        return {
            "items": [serialize(r) for r in rows],
            "count": len(rows),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serialize(r) for r in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_products(
    franchise_id: int,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Tenant-scoped product listing with optional search and pagination.

    Args:
        franchise_id: Owning franchise (required)
        search: Case-insensitive match on name or code
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = _search_filter(
        db.session.query(Product).filter(Product.franchise_id == franchise_id),
        search,
    ).order_by(Product.name.asc(), Product.id.asc())

    return _page(base_query, page, per_page, lambda p: p.to_dict())


def list_all_products(
    franchise_id: int | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Cross-franchise catalog for the super admin, annotated with franchise name."""
    query = db.session.query(Product, Franchise.name).join(Franchise, Product.franchise_id == Franchise.id)
    if franchise_id is not None:
        query = query.filter(Product.franchise_id == franchise_id)
    query = _search_filter(query, search).order_by(Franchise.name.asc(), Product.name.asc(), Product.id.asc())

    def serialize(row):
        product, franchise_name = row
        data = product.to_dict()
        data["franchise_name"] = franchise_name
        return data

    return _page(query, page, per_page, serialize)


def get_product(franchise_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    return require_row_in_franchise(product, franchise_id, "Product")


def _ensure_code_free(franchise_id: int, code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter_by(franchise_id=franchise_id, code=code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Product code already exists")


def create_product(*, franchise_id: int, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises ConflictError if the code is already used in this franchise.
    """
    _ensure_code_free(franchise_id, patch["code"])

    product = Product(franchise_id=franchise_id)
    apply_product_patch(product, patch)

    db.session.add(product)
    db.session.commit()
    return product.to_dict()


def update_product(*, franchise_id: int, product_id: int, patch: dict) -> dict:
    """
    Update catalog fields. Past sales keep their snapshots; only sales
    recorded afterwards see the new price/hpp.
    """
    product = get_product(franchise_id, product_id)

    if "code" in patch and patch["code"] != product.code:
        _ensure_code_free(franchise_id, patch["code"], exclude_id=product.id)

    apply_product_patch(product, patch)
    db.session.commit()
    return product.to_dict()


def delete_product(*, franchise_id: int, product_id: int) -> None:
    """
    Delete a product. Its sales stay, detached (product_id NULL) but intact.
    """
    product = get_product(franchise_id, product_id)

    db.session.query(Sale).filter(Sale.product_id == product.id).update(
        {Sale.product_id: None}, synchronize_session=False
    )
    db.session.delete(product)
    db.session.commit()
