"""
Application Initialization Module
Properly initializes Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from ai_service import GeminiService
from security import setup_security
from health_checks import register_health_checks
from auth import init_auth
from database.connection import init_engine, init_db, get_db_session
from database.seed import seed_all
from services.google_service import GoogleService
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Configuration class; defaults to the one selected by FLASK_ENV

    Returns:
        Configured Flask application instance
    """
    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class or get_config())

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("🚀 Initializing ServiTech Pro")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    initialize_database(app)

    # External integrations
    app.extensions['gemini'] = initialize_ai_service(app)
    app.extensions['google'] = GoogleService(app.config)

    # Session gate runs before every blueprint
    init_auth(app)

    from app import register_blueprints
    register_blueprints(app)

    # Register health check endpoints
    register_health_checks(app)

    logger.info("✅ Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Bind the engine, create missing tables and seed defaults

    Args:
        app: Flask application instance
    """
    init_engine(app.config['DATABASE_URL'], app.config.get('SQLALCHEMY_ENGINE_OPTIONS'))
    init_db()

    with get_db_session() as db:
        seed_all(db, app.config.get('COMPANY_NAME'))

    logger.info("✅ Database ready")


def initialize_ai_service(app):
    """
    Initialize the Gemini client

    Args:
        app: Flask application instance

    Returns:
        GeminiService instance
    """
    gemini = GeminiService(app.config)

    if gemini.is_available():
        logger.info(f"✅ AI Service initialized: Gemini ({gemini.model_name})")
    else:
        logger.warning("⚠️  Gemini not configured - check GEMINI_API_KEY")

    return gemini
