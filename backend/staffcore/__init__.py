# backend/staffcore/__init__.py
from flask import Flask, request, jsonify

from .config import Config
from .errors import StaffCoreError
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before the engine is built in init_app
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # External collaborators; tests and deployments swap these
    from .services.notification_service import LoggingNotifier
    from .services.catalog_service import SqlJobCatalog
    app.extensions["invitation_notifier"] = LoggingNotifier()
    app.extensions["job_catalog"] = SqlJobCatalog()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.invitations import invitations_bp
    from .routes.staff import staff_bp
    from .routes.work_sessions import work_sessions_bp
    from .routes.job_cards import job_cards_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(invitations_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(work_sessions_bp)
    app.register_blueprint(job_cards_bp)

    @app.errorhandler(StaffCoreError)
    def handle_staff_core_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config.get("CORS_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-Identity-Id, X-Business-Id, X-Is-Owner"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
