"""
Response Interpreter

Pulls the useful payload out of provider responses whose shape is not
fixed across endpoint variants, and redacts large values before logging.

Artifact extraction policy (FoxitResponseAdapter):
    1. Each known artifact field at the top level, in ARTIFACT_FIELDS order
    2. The same fields inside each container in CONTAINER_FIELDS order
    The first string longer than MIN_ARTIFACT_LENGTH wins.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Field names are case-preserving; providers vary the casing between endpoints
ARTIFACT_FIELDS = (
    'base64FileString', 'FileBase64', 'fileBase64', 'Base64FileString',
    'document', 'documentBase64', 'file', 'pdfBase64', 'content', 'data',
    'fileContent', 'FileContent', 'FileBytes', 'pdf', 'Pdf', 'PDF', 'OutputFile',
)
CONTAINER_FIELDS = ('result', 'output', 'Result', 'data')

MIN_ARTIFACT_LENGTH = 100
MAX_INLINE_LENGTH = 200

LARGE_PAYLOAD_FIELDS = frozenset(ARTIFACT_FIELDS)

ENVELOPE_ID_FIELDS = ('id', 'envelopeId', 'EnvelopeId', 'folderId')


@dataclass(frozen=True)
class ExtractionRule:
    """
    One place an artifact may live.

    Attributes:
        field: Field name holding the base64 string
        container: Enclosing object field, or None for the top level
    """
    field: str
    container: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.container}.{self.field}" if self.container else self.field

    def apply(self, payload: Dict[str, Any]) -> Optional[str]:
        source = payload
        if self.container is not None:
            source = payload.get(self.container)
            if not isinstance(source, dict):
                return None
        value = source.get(self.field)
        if isinstance(value, str) and len(value) > MIN_ARTIFACT_LENGTH:
            return value
        return None


def build_rules(fields: Sequence[str] = ARTIFACT_FIELDS,
                containers: Sequence[str] = CONTAINER_FIELDS) -> List[ExtractionRule]:
    rules = [ExtractionRule(field=f) for f in fields]
    for container in containers:
        rules.extend(ExtractionRule(field=f, container=container) for f in fields)
    return rules


DEFAULT_RULES = tuple(build_rules())


def extract_artifact(payload: Any, rules: Sequence[ExtractionRule] = DEFAULT_RULES) -> Optional[str]:
    """
    Return the base64 artifact from a provider response, or None.

    None means the provider answered but produced nothing usable; it is
    not an error.
    """
    if not isinstance(payload, dict):
        return None
    for rule in rules:
        value = rule.apply(payload)
        if value is not None:
            logger.debug(f"Artifact found at {rule.name}")
            return value
    return None


def redact_large_fields(value: Any) -> Any:
    """
    Copy ``value`` with long strings replaced by a length placeholder.

    Strings over MAX_INLINE_LENGTH become ``[string length: N]``; string
    values under a known large-payload key become ``[base64 length: N]``
    whatever their length. Only for logging, never for data returned
    to the caller.
    """
    if isinstance(value, str):
        return f"[string length: {len(value)}]" if len(value) > MAX_INLINE_LENGTH else value
    if isinstance(value, list):
        return [redact_large_fields(v) for v in value]
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            if isinstance(item, str) and (len(item) > MAX_INLINE_LENGTH or key in LARGE_PAYLOAD_FIELDS):
                kind = 'base64' if key in LARGE_PAYLOAD_FIELDS else 'string'
                out[key] = f"[{kind} length: {len(item)}]"
            else:
                out[key] = redact_large_fields(item)
        return out
    return value


def dumps_redacted(value: Any) -> str:
    """JSON text of ``value`` after redaction, for log lines."""
    try:
        return json.dumps(redact_large_fields(value), indent=2, default=str)
    except (TypeError, ValueError):
        return str(value)[:1200]


def parse_json_body(text: Optional[str]) -> Any:
    """Parse a response body, wrapping non-JSON text as ``{'raw': text}``."""
    try:
        return json.loads(text or '')
    except ValueError:
        return {'raw': text}


def extract_envelope_id(payload: Any) -> Optional[str]:
    """Find the envelope/folder id in a signing response."""
    if not isinstance(payload, dict):
        return None
    for key in ENVELOPE_ID_FIELDS:
        if payload.get(key):
            return payload[key]
    result = payload.get('result')
    if isinstance(result, dict) and result.get('id'):
        return result['id']
    return None


def payload_error_marker(payload: Any) -> Optional[str]:
    """
    Describe a provider-level error carried inside a 2xx body, if any.

    Only explicit markers count: a truthy ``error``/``errors`` field or
    ``success: false``.
    """
    if not isinstance(payload, dict):
        return None
    for key in ('error', 'errors'):
        if payload.get(key):
            return f"{key}: {str(payload[key])[:200]}"
    if payload.get('success') is False:
        return 'success: false'
    return None


class ResponseAdapter:
    """Interprets one provider's generate responses."""
    name = 'base'
    rules: Sequence[ExtractionRule] = DEFAULT_RULES

    def extract_artifact(self, payload: Any) -> Optional[str]:
        return extract_artifact(payload, self.rules)


class FoxitResponseAdapter(ResponseAdapter):
    name = 'foxit'
    rules = DEFAULT_RULES


class TopLevelResponseAdapter(ResponseAdapter):
    """For providers known to return the artifact at the top level only."""
    name = 'top-level'
    rules = tuple(build_rules(containers=()))


RESPONSE_ADAPTERS = {
    adapter.name: adapter
    for adapter in (FoxitResponseAdapter(), TopLevelResponseAdapter())
}


def get_response_adapter(name: str) -> ResponseAdapter:
    """
    Look up a response adapter by its configured name.

    Raises:
        ConfigurationError: Unknown adapter name
    """
    try:
        return RESPONSE_ADAPTERS[name or 'foxit']
    except KeyError:
        raise ConfigurationError(
            f"Unknown response adapter '{name}'. Available: {sorted(RESPONSE_ADAPTERS)}"
        )
