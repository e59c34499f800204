"""
Centralized Logging Configuration
Console and rotating-file logging; every record carries the session user
"""
import logging
import logging.handlers
from pathlib import Path

from flask import has_request_context, session

NOISY_LOGGERS = ('werkzeug', 'urllib3', 'google', 'google.auth', 'sqlalchemy.engine')


class SessionUserFilter(logging.Filter):
    """Adds `user_id` to each record: the logged-in user, or '-' outside a request"""

    def filter(self, record):
        user_id = None
        if has_request_context():
            user_id = session.get('user_id')
        record.user_id = user_id or '-'
        return True


def _handler(handler, level, log_format):
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    handler.addFilter(SessionUserFilter())
    return handler


def setup_logging(app):
    """
    Setup application-wide logging with file rotation and console output

    Args:
        app: Flask application instance

    Returns:
        The configured root logger
    """
    log_level = getattr(logging, app.config['LOG_LEVEL'].upper(), logging.INFO)
    log_format = app.config['LOG_FORMAT']
    log_dir = app.config.get('LOG_DIR')

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    root_logger.addHandler(_handler(logging.StreamHandler(), log_level, log_format))

    # Tests run without a log directory
    log_path = None
    if log_dir:
        Path(log_dir).mkdir(exist_ok=True)
        log_path = Path(log_dir) / app.config['LOG_FILE']
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        root_logger.addHandler(_handler(file_handler, log_level, log_format))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.info(f"Logging initialized at {logging.getLevelName(log_level)} level")
    if log_path:
        app.logger.info(f"Log file: {log_path}")

    return root_logger
