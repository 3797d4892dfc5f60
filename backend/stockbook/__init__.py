# backend/stockbook/__init__.py
from flask import Flask, jsonify

from .config import Config
from .extensions import db, migrate
from .validation import TrackerError


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # One tracker per process; loaded from its store on first use
    from .services.store_service import build_store
    from .services.tracker_service import InventoryTracker
    app.extensions["tracker"] = InventoryTracker(build_store(app.config))

    # Register blueprints
    from .routes.system import system_bp
    from .routes.items import items_bp
    from .routes.draft import draft_bp
    from .routes.sales import sales_bp
    from .routes.analytics import analytics_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(draft_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(analytics_bp)

    @app.errorhandler(TrackerError)
    def handle_tracker_error(exc: TrackerError):
        return jsonify(exc.to_dict()), exc.status_code

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
