# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .models import ROLE_FRANCHISE
from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: "super_admin" or "franchise"
    - g.franchise_id: The user's franchise (None for super admins)
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account deactivated
    - Franchise deactivated
    - Franchise session missing franchise_id (should not happen)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # Extract token from Authorization header
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        # Validate token and get session context (includes tenant info)
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        # MULTI-TENANT: a franchise session must carry its franchise
        if context.role == ROLE_FRANCHISE and not context.franchise_id:
            permission_service.log_security_event(
                user_id=context.user.id if context.user else None,
                event_type="TENANT_CONTEXT_MISSING",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Franchise session missing franchise_id",
                ip_address=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
                franchise_id=None,
            )
            return jsonify({"error": "Invalid session: missing tenant context"}), 401

        # Store user and tenant context in Flask g for access in routes
        g.current_user = context.user
        g.role = context.role
        g.franchise_id = context.franchise_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require one of the given roles. Use after @require_auth.

    Denials are written to security_events.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.role in roles:
                return f(*args, **kwargs)

            try:
                permission_service.require_role(
                    user_id=g.current_user.id,
                    roles=roles,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                    franchise_id=g.franchise_id,
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
