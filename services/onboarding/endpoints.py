"""
Endpoint Candidate Selector

Ordered candidate URLs for each logical operation. A configured override
wins outright; otherwise the well-known default is used.
"""

import re
from enum import Enum
from typing import List

from config import ProviderConfig
from .exceptions import ConfigurationError

FOXIT_DOCGEN_BASE = 'https://na1.fusion.foxit.com/document-generation/api'


class Operation(Enum):
    ANALYZE = "analyze"
    GENERATE = "generate"


DEFAULT_ENDPOINTS = {
    Operation.ANALYZE: f"{FOXIT_DOCGEN_BASE}/AnalyzeDocumentBase64",
    Operation.GENERATE: f"{FOXIT_DOCGEN_BASE}/GenerateDocumentBase64",
}

# Analyze endpoints whose name ends in ...Base64 take JSON, everything else multipart
_BASE64_ENDPOINT = re.compile(r'analyz(e)?(document|template)base64', re.IGNORECASE)


def candidate_endpoints(operation: Operation, config: ProviderConfig) -> List[str]:
    """
    Candidate URLs for ``operation``, in the order they should be tried.

    Raises:
        ConfigurationError: No override and no default exists
    """
    overrides = {
        Operation.ANALYZE: config.docgen.analyze_url,
        Operation.GENERATE: config.docgen.generate_url,
    }
    override = overrides.get(operation)
    if override:
        return [override]

    default = DEFAULT_ENDPOINTS.get(operation)
    if not default:
        raise ConfigurationError(f"No endpoint configured for {operation.value}")
    return [default]


def is_base64_endpoint(url: str) -> bool:
    return bool(_BASE64_ENDPOINT.search(url or ''))


def esign_upload_urls(base_url: str, envelope_id: str) -> List[str]:
    """Document upload variants for a multi-step envelope."""
    return [
        f"{base_url}/envelopes/{envelope_id}/documents",
        f"{base_url}/envelopes/{envelope_id}/files",
    ]


def esign_token_candidates(base_url: str) -> List[str]:
    """
    Token endpoints to probe when no token URL is configured.

    Both the provider origin (base URL without a trailing ``/api``) and the
    base URL itself are tried.
    """
    origin = re.sub(r'/api$', '', base_url, flags=re.IGNORECASE)
    return [
        f"{origin}/oauth2/token",
        f"{origin}/oauth/token",
        f"{base_url}/oauth2/token",
        f"{base_url}/oauth/token",
    ]


def esign_ping_urls(base_url: str) -> List[str]:
    return [
        f"{base_url}/accounts/me",
        f"{base_url}/accounts",
        f"{base_url}/users/me",
    ]
