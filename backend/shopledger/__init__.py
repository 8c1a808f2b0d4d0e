# backend/shopledger/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def _engine_options(config) -> dict:
    """
    Per-dialect connect arguments.

    SQLite: busy timeout doubles as the lock wait for BEGIN IMMEDIATE; threads
    may share the pool in tests and under the dev server.
    PostgreSQL: sessions run in UTC, so naive UTC bounds and date() buckets
    line up with stored timestamptz values.
    """
    uri = config["SQLALCHEMY_DATABASE_URI"]
    options = dict(config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
    connect_args = dict(options.get("connect_args") or {})

    if uri.startswith("sqlite"):
        connect_args.setdefault("timeout", config["LEDGER_LOCK_TIMEOUT_MS"] / 1000)
        connect_args.setdefault("check_same_thread", False)
    elif uri.startswith("postgresql"):
        connect_args.setdefault("options", "-c timezone=UTC")
    else:
        return options

    options["connect_args"] = connect_args
    return options


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config["LOG_LEVEL"])
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = _engine_options(app.config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.cashiers import cashiers_bp
    from .routes.activity import activity_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(cashiers_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or ())

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, Idempotency-Key"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
