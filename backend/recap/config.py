from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/recap.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///recap.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Day/month boundaries for reports follow the operators' wall clock, not UTC
    DISPLAY_TIMEZONE = os.environ.get("DISPLAY_TIMEZONE", "Asia/Jakarta")

    # Defaults written for every newly provisioned franchise
    DEFAULT_ADMIN_FEE_PERCENT = os.environ.get("DEFAULT_ADMIN_FEE_PERCENT", "5")
    DEFAULT_FIXED_DEDUCTION = os.environ.get("DEFAULT_FIXED_DEDUCTION", "1000")
    DEFAULT_PROFIT_SHARING_PERCENT = os.environ.get("DEFAULT_PROFIT_SHARING_PERCENT", "10")

    ITEMS_PER_PAGE = int(os.environ.get("ITEMS_PER_PAGE", "10"))

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
