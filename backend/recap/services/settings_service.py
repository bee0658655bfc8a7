# Overview: Service-layer operations for per-franchise fee settings.

from __future__ import annotations

from flask import current_app

from ..calculations import FeeSettings, to_decimal
from ..extensions import db
from ..models import AdminSettings


def default_fee_settings() -> FeeSettings:
    return FeeSettings(
        admin_fee_percent=to_decimal(current_app.config["DEFAULT_ADMIN_FEE_PERCENT"]),
        fixed_deduction=to_decimal(current_app.config["DEFAULT_FIXED_DEDUCTION"]),
    )


def get_admin_settings(franchise_id: int) -> AdminSettings | None:
    return db.session.query(AdminSettings).filter_by(franchise_id=franchise_id).first()


def get_fee_settings(franchise_id: int) -> FeeSettings:
    """Current fee terms of a franchise; configured defaults if none are stored."""
    row = get_admin_settings(franchise_id)
    if row is None:
        return default_fee_settings()
    return FeeSettings.from_source(row)


def get_fee_settings_map(franchise_ids) -> dict[int, FeeSettings]:
    """Fee terms for many franchises in one query (admin-wide reports)."""
    ids = list(franchise_ids)
    if not ids:
        return {}
    rows = db.session.query(AdminSettings).filter(AdminSettings.franchise_id.in_(ids)).all()
    found = {row.franchise_id: FeeSettings.from_source(row) for row in rows}
    fallback = default_fee_settings()
    return {fid: found.get(fid, fallback) for fid in ids}


def create_default_settings(franchise_id: int, commit: bool = True) -> AdminSettings:
    defaults = default_fee_settings()
    row = AdminSettings(
        franchise_id=franchise_id,
        admin_fee_percent=defaults.admin_fee_percent,
        fixed_deduction=defaults.fixed_deduction,
    )
    db.session.add(row)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return row


def update_admin_settings(franchise_id: int, patch: dict) -> AdminSettings:
    """
    Upsert the fee settings of a franchise.

    Only the stored terms change; every report re-derives admin fee and net
    profit from them on the next read.
    """
    row = get_admin_settings(franchise_id)
    if row is None:
        row = create_default_settings(franchise_id, commit=False)

    if patch.get("admin_fee_percent") is not None:
        row.admin_fee_percent = patch["admin_fee_percent"]
    if patch.get("fixed_deduction") is not None:
        row.fixed_deduction = patch["fixed_deduction"]

    db.session.commit()
    return row


def settings_payload(franchise_id: int) -> dict:
    row = get_admin_settings(franchise_id)
    if row is not None:
        return row.to_dict()
    defaults = default_fee_settings()
    return {
        "id": None,
        "franchise_id": franchise_id,
        "admin_fee_percent": defaults.admin_fee_percent,
        "fixed_deduction": defaults.fixed_deduction,
        "updated_at": None,
    }
