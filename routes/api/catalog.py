# routes/api/catalog.py
"""
Read-only API endpoints: health, steps, public config, employees.
"""

from datetime import datetime, timezone

from flask import jsonify

from services.onboarding import Provider
from . import api_bp
from .helpers import get_orchestrator, get_provider_config


@api_bp.route('/health')
def health():
    """Liveness plus the document generation auth mode."""
    orchestrator = get_orchestrator()
    return jsonify({
        'status': 'ok',
        'ts': datetime.now(timezone.utc).isoformat(),
        'analyzeProvider': 'foxit',
        'authMode': orchestrator.docgen.resolver.auth_mode(Provider.DOCGEN).value,
    })


@api_bp.route('/steps')
def list_steps():
    steps = get_orchestrator().catalog.all()
    return jsonify({'steps': [step.to_dict() for step in steps]})


@api_bp.route('/config')
def public_config():
    """Client id for the embedded PDF viewer; nothing secret."""
    return jsonify({'foxitClientId': get_provider_config().public_client_id})


@api_bp.route('/employees')
def list_employees():
    return jsonify({'employees': get_orchestrator().employees.list()})
