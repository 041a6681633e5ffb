# backend/stockroom/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockroom.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Low-stock alerting
    LOW_STOCK_ALERT_COOLDOWN_HOURS = int(os.environ.get("LOW_STOCK_ALERT_COOLDOWN_HOURS", "24"))
    LOW_STOCK_ALERT_RECIPIENT = os.environ.get("LOW_STOCK_ALERT_RECIPIENT", "inventory-alerts@localhost")

    # Rendered invoice documents; relative paths resolve under the instance folder
    INVOICE_PDF_DIR = os.environ.get("INVOICE_PDF_DIR", "invoices")

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "8"))

    # Browser origins allowed to call the API (comma-separated)
    CORS_ALLOWED_ORIGINS = tuple(
        o.strip()
        for o in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
        if o.strip()
    )
