"""
HTTP-маршруты сервиса проверки здоровья.
"""

from flask import Blueprint, Response, current_app, request

from .codec import decode_targets, encode_results
from ..utils.logger import get_logger
from ..exceptions import InvalidRequestError


logger = get_logger(__name__)

health_bp = Blueprint('health', __name__)


@health_bp.route('/health-check', methods=['POST'])
def health_check():
    """Проверка списка адресов. Ошибки отдельных целей видны только как DOWN."""
    try:
        targets = decode_targets(request.get_data())
    except InvalidRequestError as e:
        logger.warning(f"Rejected health-check request: {e}")
        return Response("Invalid request", status=400, mimetype='text/plain')

    dispatcher = current_app.extensions['probe_dispatcher']
    results = dispatcher.check_all(targets)

    return Response(encode_results(results), status=200, mimetype='application/json')
