# routes/api/errors.py
"""
JSON error handlers for API routes.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from services.onboarding import OnboardingError
from . import api_bp

logger = logging.getLogger(__name__)


@api_bp.errorhandler(OnboardingError)
def handle_onboarding_error(error):
    if error.http_status >= 500:
        logger.error(f"{error.error_code}: {error}")
    else:
        logger.warning(f"{error.error_code}: {error}")
    return jsonify(error.to_dict()), error.http_status


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return jsonify({'error': error.name, 'detail': error.description}), error.code
    logger.error(f"Unhandled API error: {error}", exc_info=True)
    return jsonify({'error': 'internal-error', 'detail': str(error)}), 500
