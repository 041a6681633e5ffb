# backend/stockroom/__init__.py
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import ErrorKind, StockroomError
from .extensions import db, migrate

# The HTTP boundary owns transport outcomes; services only raise kinds
STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.DUPLICATE_ENTRY: 409,
    ErrorKind.INVALID_REFERENCE: 422,
    ErrorKind.VALIDATION: 400,
    ErrorKind.DATABASE: 500,
}


def create_app(config_overrides: dict | None = None, notification_sender=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    if notification_sender is None:
        from .services.notification_service import LogNotificationSender
        notification_sender = LogNotificationSender()
    app.extensions["notification_sender"] = notification_sender

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.inventory import inventory_bp
    from .routes.sales import sales_bp
    from .routes.invoices import invoices_bp
    from .routes.alerts import alerts_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(alerts_bp)
    app.register_blueprint(reports_bp)

    @app.errorhandler(StockroomError)
    def handle_stockroom_error(exc: StockroomError):
        status = STATUS_BY_KIND.get(exc.kind, 500)
        body = exc.to_dict()
        if exc.kind is ErrorKind.DATABASE:
            app.logger.error("Database error on %s %s", request.method, request.path, exc_info=exc)
            if app.debug and exc.__cause__ is not None:
                body["details"] = {**body["details"], "cause": repr(exc.__cause__)}
        return jsonify(body), status

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", ()))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
