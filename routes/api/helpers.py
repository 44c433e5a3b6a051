# routes/api/helpers.py
"""
Shared helpers for API routes.
"""

from flask import current_app, request

from config import ProviderConfig
from services.onboarding import OnboardingOrchestrator


def get_orchestrator() -> OnboardingOrchestrator:
    return current_app.extensions['onboarding']


def get_provider_config() -> ProviderConfig:
    return current_app.extensions['provider_config']


def get_http():
    """Injected outbound transport, or None for requests."""
    return current_app.extensions.get('http')


def json_body() -> dict:
    """Request JSON as a dict; empty for missing or non-object bodies."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
