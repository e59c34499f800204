"""
ServiTech Pro - Application Package

This package contains the modular backend structure:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared helpers for the blueprints

The app factory and core Flask setup remain in app_init.py at the project root.
Business logic lives in the top-level services package.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.pages import pages_bp
from app.api.auth_routes import auth_bp
from app.api.clients import clients_bp
from app.api.technicians import technicians_bp
from app.api.inventory import inventory_bp
from app.api.service_orders import service_orders_bp
from app.api.invoices import invoices_bp
from app.api.finance import finance_bp
from app.api.import_center import import_bp
from app.api.ai_chat import ai_chat_bp
from app.api.google_service import google_bp
from app.api.settings import settings_bp
from app.api.users import users_bp

BLUEPRINTS = (
    pages_bp,
    auth_bp,
    clients_bp,
    technicians_bp,
    inventory_bp,
    service_orders_bp,
    invoices_bp,
    finance_bp,
    import_bp,
    ai_chat_bp,
    google_bp,
    settings_bp,
    users_bp,
)


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from app_init.create_app after infrastructure setup.

    Args:
        app: Flask application instance
    """
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)
    logger.info(f"Registered {len(BLUEPRINTS)} blueprints")


__all__ = ['register_blueprints', 'BLUEPRINTS']
