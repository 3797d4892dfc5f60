# Overview: Flask extension instances for database and migrations.

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def get_tracker():
    """The app's InventoryTracker, loaded from its store on first use."""
    return current_app.extensions["tracker"].ensure_loaded()
