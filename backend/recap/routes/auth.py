# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password verification
- Franchise accounts cannot sign in while their franchise is inactive
- Session management with token-based auth
- Failed and successful logins recorded in security_events
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..decorators import require_auth
from ..extensions import db
from ..models import Franchise


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _franchise_payload(franchise_id):
    if franchise_id is None:
        return None
    franchise = db.session.query(Franchise).filter_by(id=franchise_id).first()
    return franchise.to_dict() if franchise else None


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info, role, franchise and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        user = auth_service.authenticate(email, password)

        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Invalid credentials",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )

        permission_service.log_security_event(
            user_id=user.id,
            event_type="LOGIN_SUCCESS",
            success=True,
            resource=request.path,
            action=request.method,
            ip_address=ip_address,
            user_agent=user_agent,
            franchise_id=session.franchise_id,
        )

        return jsonify({
            "user": user.to_dict(),
            "role": session.role,
            "token": token,
            "session": session.to_dict(),
            "franchise_id": session.franchise_id,
            "franchise": _franchise_payload(session.franchise_id),
            "message": "Login successful"
        }), 200

    except ValueError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>

    WHY: Explicit logout prevents token reuse.
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        # Revoke the session
        revoked = session_service.revoke_session(token, reason="User logout")

        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, role and franchise of the session."""
    return jsonify({
        "user": g.current_user.to_dict(),
        "role": g.role,
        "franchise_id": g.franchise_id,
        "franchise": _franchise_payload(g.franchise_id),
    }), 200
