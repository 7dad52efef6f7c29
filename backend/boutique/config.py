# backend/boutique/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/boutique.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///boutique.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Exports open cleanly in Excel when prefixed with a UTF-8 BOM
    CSV_INCLUDE_BOM = _env_flag("CSV_INCLUDE_BOM", "true")

    # Sizes at or below this quantity show up in the low stock report
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))

    # Comma separated browser origins allowed to call the API
    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    }
