"""
Franchise Service: tenant provisioning and super-admin management

WHY: A franchise is more than one row. Provisioning creates the owner
account, the franchise, its role and its fee settings together, and either
all four exist afterwards or none do.

MULTI-TENANT: These operations are super-admin only; routes enforce that.
Deactivation and deletion revoke the owner's live sessions.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..calculations import compute_revenue_share, quantize_money, to_decimal
from ..extensions import db
from ..models import (
    AdminSettings,
    Expenditure,
    Franchise,
    Product,
    ProfitSharingPayment,
    ROLE_FRANCHISE,
    Sale,
    SessionToken,
    User,
)
from ..validation import enforce_percent, ValidationError
from .auth_service import PasswordValidationError, create_user, set_password
from .session_service import revoke_all_user_sessions
from .settings_service import create_default_settings


class FranchiseError(Exception):
    """Raised for franchise management errors."""
    pass


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise FranchiseError("Franchise name is required")
    if len(name) > 255:
        raise FranchiseError("Franchise name exceeds max length 255")
    return name


def _clean_percent(value) -> object:
    try:
        pct = to_decimal(value)
    except ArithmeticError:
        raise FranchiseError("profit_sharing_percent must be a number")
    try:
        enforce_percent(pct, "profit_sharing_percent")
    except ValidationError as e:
        raise FranchiseError(str(e))
    return pct


def create_franchise_account(
    email: str,
    password: str,
    name: str,
    profit_sharing_percent=None,
) -> Franchise:
    """
    Provision a franchise in one transaction:

    1. owner user account
    2. franchise row
    3. franchise role on the user
    4. default admin settings

    Each step only flushes. A failure at any step rolls back all earlier
    ones, so no orphaned user or franchise is left behind.

    Raises:
        FranchiseError: invalid input or failed provisioning
        PasswordValidationError: password too weak
    """
    name = _clean_name(name)
    if profit_sharing_percent is None:
        profit_sharing_percent = current_app.config["DEFAULT_PROFIT_SHARING_PERCENT"]
    pct = _clean_percent(profit_sharing_percent)

    try:
        # create_user flushes the user and its franchise role
        user = create_user(email, password, ROLE_FRANCHISE, commit=False)

        franchise = Franchise(
            name=name,
            user_id=user.id,
            profit_sharing_percent=pct,
            is_active=True,
        )
        db.session.add(franchise)
        db.session.flush()

        create_default_settings(franchise.id, commit=False)

        db.session.commit()
    except PasswordValidationError:
        db.session.rollback()
        raise
    except ValueError as e:
        db.session.rollback()
        current_app.logger.warning("Franchise provisioning rolled back: %s", e)
        raise FranchiseError(str(e))
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning("Franchise provisioning rolled back: %s", e)
        raise FranchiseError("Failed to create franchise")

    current_app.logger.info("Provisioned franchise %s (%s)", franchise.id, franchise.name)
    return franchise


def list_franchises(active_only: bool = False, search: str | None = None) -> list[Franchise]:
    query = db.session.query(Franchise)
    if active_only:
        query = query.filter(Franchise.is_active.is_(True))
    if search:
        like = f"%{search.strip()}%"
        query = query.join(User, Franchise.user_id == User.id).filter(
            db.or_(Franchise.name.ilike(like), User.email.ilike(like))
        )
    return query.order_by(Franchise.name.asc(), Franchise.id.asc()).all()


def get_franchise(franchise_id: int) -> Franchise:
    franchise = db.session.query(Franchise).filter_by(id=franchise_id).first()
    if not franchise:
        raise FranchiseError("Franchise not found")
    return franchise


def update_franchise(franchise_id: int, name: str) -> Franchise:
    franchise = get_franchise(franchise_id)
    franchise.name = _clean_name(name)
    db.session.commit()
    return franchise


def set_franchise_active(franchise_id: int, is_active: bool) -> Franchise:
    """
    Activate or deactivate a franchise.

    Deactivation blocks login and revokes the owner's open sessions.
    """
    franchise = get_franchise(franchise_id)
    franchise.is_active = bool(is_active)
    if not franchise.is_active:
        revoke_all_user_sessions(franchise.user_id, reason="Franchise deactivated", commit=False)
    db.session.commit()

    current_app.logger.info(
        "Franchise %s %s", franchise.id, "activated" if franchise.is_active else "deactivated"
    )
    return franchise


def set_profit_sharing_percent(franchise_id: int, profit_sharing_percent) -> Franchise:
    """
    Change the revenue-share rate of a franchise.

    Every stored payment of the franchise is re-valued at the new rate from
    its recorded total_revenue. Payment status and notes are kept.
    """
    franchise = get_franchise(franchise_id)
    pct = _clean_percent(profit_sharing_percent)
    franchise.profit_sharing_percent = pct

    payments = db.session.query(ProfitSharingPayment).filter_by(franchise_id=franchise.id).all()
    for payment in payments:
        payment.profit_sharing_percent = pct
        payment.profit_sharing_amount = quantize_money(compute_revenue_share(payment.total_revenue, pct))

    db.session.commit()
    current_app.logger.info(
        "Franchise %s profit sharing set to %s%% (%d payments revalued)",
        franchise.id, pct, len(payments),
    )
    return franchise


def change_franchise_password(franchise_id: int, new_password: str) -> Franchise:
    """Reset the owner's password and sign out every open session."""
    franchise = get_franchise(franchise_id)
    set_password(franchise.user_id, new_password)
    revoke_all_user_sessions(franchise.user_id, reason="Password reset")
    return franchise


def delete_franchise(franchise_id: int) -> None:
    """
    Remove a franchise and everything it owns.

    The owner account is deactivated rather than deleted so security events
    that reference it stay meaningful.
    """
    franchise = get_franchise(franchise_id)
    owner_id = franchise.user_id

    try:
        for model in (Sale, Product, Expenditure, ProfitSharingPayment, AdminSettings, SessionToken):
            db.session.query(model).filter(model.franchise_id == franchise.id).delete(
                synchronize_session=False
            )
        # bulk deletes bypass the identity map
        db.session.expire_all()

        owner = db.session.query(User).filter_by(id=owner_id).first()
        if owner:
            owner.is_active = False

        db.session.delete(franchise)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info("Deleted franchise %s", franchise_id)
