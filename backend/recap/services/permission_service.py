# Overview: Service-layer operations for roles and the security audit trail.

"""
Role checks and security event logging.

Two roles exist: super_admin (oversees every franchise) and franchise
(confined to its own tenant). Every denial is written to security_events.
"""

from ..extensions import db
from ..models import SecurityEvent, UserRole, ROLES
from recap.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when a user lacks the role an operation requires."""
    pass


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    franchise_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - LOGIN_SUCCESS
    - LOGIN_FAILED
    - LOGOUT
    - ROLE_DENIED
    - FRANCHISE_CREATED
    - PASSWORD_RESET
    - CROSS_TENANT_ACCESS_DENIED
    """
    event = SecurityEvent(
        user_id=user_id,
        franchise_id=franchise_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def get_user_roles(user_id: int) -> set[str]:
    rows = db.session.query(UserRole.role).filter_by(user_id=user_id).all()
    return {row.role for row in rows}


def user_has_role(user_id: int, *roles: str) -> bool:
    return bool(get_user_roles(user_id) & set(roles))


def assign_role(user_id: int, role: str, commit: bool = True) -> UserRole:
    """Assign role to user (idempotent)."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    existing = db.session.query(UserRole).filter_by(user_id=user_id, role=role).first()
    if existing:
        return existing

    user_role = UserRole(user_id=user_id, role=role)
    db.session.add(user_role)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user_role


def require_role(
    user_id: int,
    roles: tuple[str, ...],
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    franchise_id: int | None = None,
) -> None:
    """Raise PermissionDeniedError (and log it) unless the user has one of roles."""
    if user_has_role(user_id, *roles):
        return

    log_security_event(
        user_id=user_id,
        event_type="ROLE_DENIED",
        success=False,
        resource=resource,
        action=f"ANY_OF:{','.join(roles)}",
        reason=f"Requires role: {', '.join(roles)}",
        ip_address=ip_address,
        user_agent=user_agent,
        franchise_id=franchise_id,
    )
    raise PermissionDeniedError(f"Requires role: {', '.join(roles)}")
