"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import importlib

from flask import Flask


def create_app():
    """Create and configure the Flask application."""
    from nurture.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    # Register blueprints
    from nurture.routes.health import bp as health_bp
    from nurture.routes.nurture import bp as nurture_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(nurture_bp)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic — no init_db() call.
    importlib.import_module('nurture.models.lead')
    importlib.import_module('nurture.models.conversation')
    importlib.import_module('nurture.models.message')
    importlib.import_module('nurture.models.nurture_run')

    return app
