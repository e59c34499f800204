"""
Security Utilities & Middleware
Secret key, CORS, response headers, JSON error envelopes and request logging
for the ServiTech API.
"""
import secrets
from typing import Dict, Any
from flask import Flask, request, jsonify, session, Response
from flask_cors import CORS
import logging

from ai_service import AIServiceError, AIServiceUnavailable
from auth import HEALTH_PATHS
from services.exceptions import ServiceError
from services.google_service import GoogleServiceError
from services.import_service import ImportFileError

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32
WEAK_SECRET_MARKERS = ('dev', 'test', 'secret', 'password', 'changeme', '12345')

# Settings a production deployment is expected to provide
PRODUCTION_SETTINGS = ('SECRET_KEY', 'DATABASE_URL', 'GEMINI_API_KEY', 'GCP_PROJECT_ID')

SECURITY_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
    # Only JSON and file downloads are served
    'Content-Security-Policy': "default-src 'none'; frame-ancestors 'none'",
    'Permissions-Policy': 'geolocation=(self), microphone=(), camera=(self)',
}

# status -> (error, message) for errors raised by Flask itself
HTTP_ERRORS = {
    400: ('Bad Request', 'The request could not be understood or was missing required parameters'),
    401: ('Unauthorized', 'Authentication required'),
    403: ('Forbidden', 'You do not have permission to access this resource'),
    404: ('Not Found', 'The requested resource was not found'),
    405: ('Method Not Allowed', 'The method is not allowed for the requested URL'),
    413: ('Payload Too Large', 'The uploaded file or request is too large'),
    503: ('Service Unavailable', 'The service is temporarily unavailable. Please try again later'),
}


def is_strong_secret(secret_key: str) -> bool:
    """
    Check a session signing key

    Args:
        secret_key: Candidate key

    Returns:
        True when the key is long enough and not an obvious placeholder
    """
    if not secret_key or len(secret_key) < MIN_SECRET_LENGTH:
        return False
    lowered = secret_key.lower()
    return not any(marker in lowered for marker in WEAK_SECRET_MARKERS)


def resolve_secret_key(app: Flask, config: Dict[str, Any]) -> str:
    """
    Return the configured key, or a random one when it is missing or weak.

    Testing keys are accepted as configured. A generated key changes on
    every restart, which logs everybody out.
    """
    secret_key = config.get('SECRET_KEY')
    if app.testing and secret_key:
        return secret_key
    if is_strong_secret(secret_key):
        return secret_key

    if not app.debug:
        logger.error("SECRET_KEY missing or weak - sessions will not survive a restart")
    else:
        logger.warning("SECRET_KEY missing or weak - using a random key for this process")
    return secrets.token_hex(32)


def setup_security_headers(app: Flask):
    """Add the fixed security headers (and HSTS outside debug) to every response"""
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the web client

    Credentials are allowed so the session cookie travels with API calls.
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])

    if not app.debug and '*' in cors_origins:
        logger.warning("Wildcard CORS origin outside debug - set CORS_ORIGINS")

    CORS(
        app,
        origins=cors_origins,
        methods=config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']),
        allow_headers=config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization']),
        supports_credentials=True,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def internal_error_body(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    JSON body for an unhandled exception

    Args:
        error: Exception object
        include_details: Add the exception text and type (debug only)
    """
    body = {
        'success': False,
        'error': 'Internal Server Error',
        'message': 'An error occurred while processing your request'
    }
    if include_details:
        body['details'] = str(error)
        body['type'] = type(error).__name__
    return body


def _register_http_error(app: Flask, status: int, error: str, message: str):
    def handler(_exc):
        return jsonify({'success': False, 'error': error, 'message': message}), status
    app.register_error_handler(status, handler)


def setup_error_handlers(app: Flask):
    """
    Map HTTP errors and domain exceptions to the JSON envelope

    Args:
        app: Flask application instance
    """
    include_details = app.debug

    for status, (error, message) in HTTP_ERRORS.items():
        _register_http_error(app, status, error, message)

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify(internal_error_body(error, include_details)), 500

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        if error.status_code >= 500:
            logger.error(f"Service error: {error.message}")
        else:
            logger.info(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(GoogleServiceError)
    def handle_google_error(error):
        logger.error(f"Google service error ({error.status_code}): {error.message} {error.details or ''}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ImportFileError)
    def handle_import_error(error):
        logger.warning(f"Rejected import file: {error}")
        return jsonify({'success': False, 'error': str(error)}), 400

    @app.errorhandler(AIServiceUnavailable)
    def handle_ai_unavailable(error):
        return jsonify({'success': False, 'error': 'AI service not configured'}), 503

    @app.errorhandler(AIServiceError)
    def handle_ai_error(error):
        logger.error(f"AI service error: {error}")
        return jsonify({'success': False, 'error': 'AI service error',
                        'details': str(error) if include_details else None}), 502

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """Log each API call with the session user; probes are skipped"""
    @app.before_request
    def log_request():
        if request.path in HEALTH_PATHS:
            return
        logger.info(
            f"Request: {request.method} {request.path} "
            f"user={session.get('user_id') or '-'} from {request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path not in HEALTH_PATHS:
            logger.info(
                f"Response: {request.method} {request.path} "
                f"status={response.status_code} size={response.content_length}"
            )
        return response

    logger.info("Request logging configured")


def missing_settings(config: Dict[str, Any]) -> list:
    """Names of production settings that are empty in this configuration"""
    return [name for name in PRODUCTION_SETTINGS if not config.get(name)]


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration mapping
    """
    logger.info("Configuring application security...")

    app.secret_key = resolve_secret_key(app, config)

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug and not app.testing:
        missing = missing_settings(config)
        if missing:
            logger.error(f"Missing production settings: {', '.join(missing)}")

    logger.info("Security configuration complete")
