# backend/backoffice/__init__.py
from flask import Flask, jsonify
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate
from .validation import ConflictError, NotFoundError, StorageUnavailableError, ValidationError


def register_error_handlers(app: Flask) -> None:
    """Translate service errors into JSON responses."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": str(e), "details": e.details}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        return jsonify({"error": str(e), "details": e.details}), 409

    @app.errorhandler(StorageUnavailableError)
    def handle_storage_unavailable(e):
        app.logger.error("Data store unavailable: %s", e.__cause__ or e)
        return jsonify({"error": "Data store unavailable"}), 503

    @app.errorhandler(OperationalError)
    @app.errorhandler(InterfaceError)
    @app.errorhandler(DisconnectionError)
    def handle_db_down(e):
        db.session.rollback()
        app.logger.error("Data store unavailable: %s", e)
        return jsonify({"error": "Data store unavailable"}), 503

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_class: type = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.customers import customers_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.cash import cash_bp
    from .routes.installments import installments_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(cash_bp)
    app.register_blueprint(installments_bp)
    app.register_blueprint(reports_bp)

    register_error_handlers(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
