"""
Health Check & Monitoring Endpoints

- /api/health  liveness, no dependencies touched
- /api/ready   readiness; only the database gates it
- /api/metrics process stats, integrations and record counts
- /api/ping    plain-text connectivity probe

All four are reachable without a session (see auth.HEALTH_PATHS).
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify, current_app
from sqlalchemy import func
import logging

from database.connection import check_db_connection, get_db_session
from database.models import Client, Part, ServiceOrder, Technician

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__)

SERVICE_NAME = 'servitech-pro'
SERVICE_VERSION = '1.0.0'

START_TIME = time.time()

COUNTED_MODELS = {
    'clients': Client,
    'service_orders': ServiceOrder,
    'technicians': Technician,
    'parts': Part,
}


def get_system_metrics() -> Dict[str, Any]:
    """
    Memory and CPU of this worker process

    Returns:
        Metrics dict, empty when psutil cannot read the process
    """
    try:
        process = psutil.Process()
        with process.oneshot():
            return {
                'cpu_percent': process.cpu_percent(interval=0.1),
                'memory_mb': round(process.memory_info().rss / 1024 / 1024, 1),
                'memory_percent': round(process.memory_percent(), 2),
                'threads': process.num_threads(),
            }
    except Exception as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    uptime_seconds = time.time() - START_TIME
    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_integrations(app) -> Dict[str, bool]:
    """
    Which external integrations are configured

    Missing integrations degrade single features (AI texts, Drive, Calendar)
    and never fail readiness.
    """
    return {
        'gemini': bool(app.config.get('GEMINI_API_KEY')),
        'google_workload_identity': bool(
            app.config.get('GCP_WORKLOAD_IDENTITY_PROVIDER') and app.config.get('VERCEL_OIDC_TOKEN')
        ),
        'google_project': bool(app.config.get('GCP_PROJECT_ID')),
    }


def check_database() -> Dict[str, Any]:
    """Run SELECT 1 and report connectivity with its latency"""
    started = time.perf_counter()
    try:
        check_db_connection()
    except RuntimeError as e:
        return {'connected': False, 'error': str(e)}
    return {'connected': True, 'latency_ms': round((time.perf_counter() - started) * 1000, 1)}


def count_records() -> Dict[str, int]:
    with get_db_session() as db:
        return {
            name: db.query(func.count(model.id)).scalar() or 0
            for name, model in COUNTED_MODELS.items()
        }


@health_bp.route('/health', methods=['GET'])
def health_check():
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    database = check_database()
    is_ready = database['connected']
    if not is_ready:
        logger.error(f"Not ready: {database.get('error')}")

    return jsonify({
        'status': 'ready' if is_ready else 'not_ready',
        'timestamp': datetime.utcnow().isoformat(),
        'checks': {
            'database': database,
            'integrations': check_integrations(current_app)
        }
    }), 200 if is_ready else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """Process, integration and data-volume snapshot for dashboards"""
    database = check_database()
    response = {
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME,
        'version': SERVICE_VERSION,
        'environment': os.environ.get('FLASK_ENV', 'production'),
        'python_version': sys.version.split()[0],
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'integrations': check_integrations(current_app),
        'database': database,
    }
    if database['connected']:
        response['records'] = count_records()
    return jsonify(response), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    return 'pong', 200


def register_health_checks(app):
    """Mount the probes under /api"""
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered: /api/health, /api/ready, /api/metrics, /api/ping")
