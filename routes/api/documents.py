# routes/api/documents.py
"""
Template analyze and document generation endpoints.
"""

import logging

from flask import jsonify

from services.onboarding import GenerateRequest, TemplateRequest
from . import api_bp
from .helpers import get_orchestrator, json_body

logger = logging.getLogger(__name__)


@api_bp.route('/analyze', methods=['POST'])
def analyze_template():
    """Field discovery for a template; 502 with attempts when every endpoint fails."""
    outcome = get_orchestrator().analyze(TemplateRequest.from_json(json_body()))
    return jsonify(outcome.to_dict())


@api_bp.route('/generate', methods=['POST'])
def generate_document():
    """
    Fill a template with document values and save the PDF.

    A provider success without a PDF payload is still a 200 with
    ``saved: false`` and the raw provider response.
    """
    data = json_body()
    logger.info(
        f"Generate request step={data.get('stepKey')} template={data.get('templateName')} "
        f"employee={data.get('employeeKey')}"
    )
    outcome = get_orchestrator().generate(GenerateRequest.from_json(data))
    return jsonify(outcome.to_dict())


@api_bp.route('/preview', methods=['POST'])
def preview_stub():
    return jsonify({
        'status': 'queued',
        'action': 'preview',
        'stepKey': json_body().get('stepKey'),
        'message': 'Stub only; generate a preview link or stream here.',
    }), 202
