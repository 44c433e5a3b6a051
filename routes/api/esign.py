# routes/api/esign.py
"""
Send for signature and eSign diagnostics.
"""

from flask import jsonify

from services.onboarding import SendRequest
from . import api_bp
from .helpers import get_orchestrator, json_body


@api_bp.route('/esign/send', methods=['POST'])
def send_for_signature():
    """
    Send a generated PDF for signature.

    Mocked (still 200) when eSign is not configured.
    """
    outcome = get_orchestrator().send_for_signature(SendRequest.from_json(json_body()))
    return jsonify(outcome.to_dict())


@api_bp.route('/esign/health')
def esign_health():
    return jsonify(get_orchestrator().esign.health_check())


@api_bp.route('/send', methods=['POST'])
def send_stub():
    """Superseded by /esign/send."""
    return jsonify({
        'status': 'queued',
        'action': 'send',
        'stepKey': json_body().get('stepKey'),
        'message': 'Use /api/esign/send for live eSign',
    }), 202
