# backend/stockbook/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Persistence backend for the tracker: "sql", "json" or "memory"
    STOCKBOOK_STORE = os.environ.get("STOCKBOOK_STORE", "sql")
    STOCKBOOK_JSON_PATH = os.environ.get("STOCKBOOK_JSON_PATH", "stockbook.json")

    # Length of the dashboard top lists
    STOCKBOOK_TOP_N = int(os.environ.get("STOCKBOOK_TOP_N", "5"))
