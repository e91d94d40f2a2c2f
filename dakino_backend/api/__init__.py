"""API package wiring for the Dakino backend."""

from flask import Flask

from .tickets import bp as tickets_bp


def init_app(app: Flask) -> None:
    """Register all API blueprints on the given application."""

    app.register_blueprint(tickets_bp)
