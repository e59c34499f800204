"""
Finance Routes Blueprint

Income summary for a day, week, month or custom range.
"""

import logging
from flask import Blueprint, request, jsonify

from database.connection import get_db_session
from services.finance_service import FinanceService

logger = logging.getLogger(__name__)

# Create blueprint
finance_bp = Blueprint('finance_bp', __name__)


@finance_bp.route('/api/finance', methods=['GET'])
def finance_summary():
    """
    Query params:
        period: day | week | month | custom (default week)
        start, end: dates for the custom period
    """
    with get_db_session() as db:
        summary = FinanceService(db).finance_summary(
            period=request.args.get('period', 'week'),
            start=request.args.get('start'),
            end=request.args.get('end')
        )
    return jsonify({'success': True, **summary})
