# backend/boutique/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    migrate.init_app(app, db)

    # Models must be imported before Alembic reads the metadata
    from . import models  # noqa: F401

    from .routes import (
        carts,
        customers,
        expenses,
        exports,
        labels,
        reports,
        settings,
        shops,
        stocks,
        system,
        transactions,
    )

    for blueprint in (
        system.system_bp,
        settings.settings_bp,
        shops.shops_bp,
        customers.customers_bp,
        stocks.stocks_bp,
        expenses.expenses_bp,
        carts.carts_bp,
        transactions.transactions_bp,
        reports.reports_bp,
        exports.exports_bp,
        labels.labels_bp,
    ):
        app.register_blueprint(blueprint)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    from .cli import register_commands
    register_commands(app)

    return app
