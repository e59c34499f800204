"""
Centralized Configuration for ServiTech Pro
Manages environment-specific settings, secrets, and service configurations.
"""
import os
from datetime import timedelta


def _database_url():
    """Resolve the database URL, normalising the legacy postgres:// scheme."""
    url = os.environ.get('DATABASE_URL') or os.environ.get('SUPABASE_DB_URL')
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_CONTENT_LENGTH', 20 * 1024 * 1024))  # 20MB

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings
    DATABASE_URL = _database_url() or 'sqlite:///servitech.db'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Business identity (used in AI prompts and invoices)
    COMPANY_NAME = os.environ.get('COMPANY_NAME', 'ServiTech Pro')
    COMPANY_LOCATION = os.environ.get('COMPANY_LOCATION', 'Cali, Colombia')

    # Gemini
    GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY') or os.environ.get('API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')

    # Google Cloud (Drive / Calendar)
    GCP_WORKLOAD_IDENTITY_PROVIDER = os.environ.get('GCP_WORKLOAD_IDENTITY_PROVIDER')
    VERCEL_OIDC_TOKEN = os.environ.get('VERCEL_OIDC_TOKEN')
    GCP_PROJECT_ID = os.environ.get('GCP_PROJECT_ID')
    GCP_SERVICE_ACCOUNT_EMAIL = os.environ.get('GCP_SERVICE_ACCOUNT_EMAIL')
    GOOGLE_DRIVE_FOLDER = os.environ.get('GOOGLE_DRIVE_FOLDER', '0Facturas Servitec Pro')
    GOOGLE_CALENDAR_TIMEZONE = os.environ.get('GOOGLE_CALENDAR_TIMEZONE', 'America/Bogota')
    GOOGLE_REQUEST_TIMEOUT = int(os.environ.get('GOOGLE_REQUEST_TIMEOUT', '30'))  # seconds

    # Inventory
    LOW_STOCK_THRESHOLD = 5

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [user=%(user_id)s] %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'servitech.log')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://servitechpro.com').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    SECRET_KEY = 'servitech-testing-key-0123456789abcdef-0123456789'
    DATABASE_URL = 'sqlite://'
    GEMINI_API_KEY = None
    GCP_WORKLOAD_IDENTITY_PROVIDER = None
    VERCEL_OIDC_TOKEN = None
    LOG_DIR = None


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
