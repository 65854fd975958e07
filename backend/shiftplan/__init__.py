# backend/shiftplan/__init__.py
from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError

from .config import Config
from .errors import PlanningError
from .extensions import db, migrate, stores, messaging


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    stores.init_app(app)
    messaging.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.schedules import schedules_bp
    from .routes.shifts import shifts_bp
    from .routes.work_sessions import work_sessions_bp
    from .routes.session_notes import session_notes_bp
    from .routes.availabilities import availabilities_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(schedules_bp)
    app.register_blueprint(shifts_bp)
    app.register_blueprint(work_sessions_bp)
    app.register_blueprint(session_notes_bp)
    app.register_blueprint(availabilities_bp)

    @app.errorhandler(PlanningError)
    def handle_planning_error(e):
        return jsonify({"error": str(e)}), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(e):
        app.logger.exception("Storage failure")
        db.session.rollback()
        return jsonify({"error": "Storage temporarily unavailable"}), 503

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
