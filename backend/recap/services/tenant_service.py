"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant validation logic for reuse across routes.
Every tenant-owned query is scoped by an explicit franchise_id argument;
this module decides which franchise_id a request is allowed to use.

SECURITY INVARIANTS:
1. Franchise users are pinned to the franchise captured in their session
2. A franchise_id supplied by a franchise user must equal its own
3. Super admins must name the franchise they act on, and it must exist
4. Cross-tenant access attempts are logged as security events

USAGE:
    from recap.services.tenant_service import resolve_franchise_id

    franchise_id = resolve_franchise_id(request.args.get("franchise_id", type=int))
"""

from flask import g, has_request_context, request
from ..extensions import db
from ..models import Franchise, ROLE_SUPER_ADMIN
from ..validation import ValidationError
from .permission_service import log_security_event


class TenantAccessError(Exception):
    """Raised when cross-tenant access is attempted."""
    pass


def get_current_franchise_id() -> int:
    """
    Get current tenant's franchise_id from Flask g context.

    Raises TenantAccessError if no franchise context is set (e.g. a super
    admin request that did not name a franchise).
    """
    franchise_id = getattr(g, 'franchise_id', None)
    if franchise_id is None:
        raise TenantAccessError("Tenant context not established")
    return franchise_id


def require_franchise_exists(franchise_id: int) -> Franchise:
    franchise = db.session.query(Franchise).filter_by(id=franchise_id).first()
    if not franchise:
        raise TenantAccessError("Franchise not found")
    return franchise


def resolve_franchise_id(requested_id: int | None) -> int:
    """
    Decide which franchise the current request acts on.

    - franchise users: their own franchise; naming another one is denied
    - super admins: the requested franchise, which must exist

    Raises ValidationError when a super admin names no franchise and
    TenantAccessError when the franchise is missing or not the caller's.
    """
    if getattr(g, 'role', None) == ROLE_SUPER_ADMIN:
        if requested_id is None:
            raise ValidationError("franchise_id is required")
        require_franchise_exists(requested_id)
        return requested_id

    own_id = get_current_franchise_id()
    if requested_id is not None and requested_id != own_id:
        _log_cross_tenant_attempt(
            f"Franchise {own_id} requested data of franchise {requested_id}",
            franchise_id=own_id,
        )
        raise TenantAccessError("Franchise not found")  # Don't reveal it exists
    return own_id


def require_row_in_franchise(row, franchise_id: int, label: str):
    """
    Return row if it belongs to franchise_id, else raise as if it did not exist.
    """
    if row is None:
        raise TenantAccessError(f"{label} not found")
    if row.franchise_id != franchise_id:
        _log_cross_tenant_attempt(
            f"{label} {row.id} belongs to franchise {row.franchise_id}, not {franchise_id}",
            franchise_id=franchise_id,
        )
        raise TenantAccessError(f"{label} not found")
    return row


def _log_cross_tenant_attempt(reason: str, franchise_id: int | None = None) -> None:
    """
    Log a cross-tenant access attempt as a security event.

    SECURITY: Critical audit trail for detecting unauthorized access attempts.
    """
    user = getattr(g, 'current_user', None)
    in_request = has_request_context()

    log_security_event(
        user_id=user.id if user is not None else None,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        resource=request.path if in_request else None,
        action=request.method if in_request else None,
        reason=reason,
        ip_address=request.remote_addr if in_request else None,
        user_agent=request.headers.get("User-Agent") if in_request else None,
        franchise_id=franchise_id,
    )
