"""
Document Generation Client

Thin wrapper around the document generation API: analyze a template and
generate a filled document. Candidates come from the endpoint selector and
are tried strictly in order; the first success wins.
"""

import base64
import logging
from typing import Any, Callable, Dict, Optional

import requests

from config import DocGenConfig, ProviderConfig
from .auth import CredentialResolver
from .endpoints import Operation, candidate_endpoints
from .exceptions import AnalyzeFailedError, GenerateFailedError
from .responses import ResponseAdapter, dumps_redacted, get_response_adapter, parse_json_body
from .strategies import analyze_strategy_for
from .types import AttemptLog, Provider, TemplateDocument

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class DocGenClient:
    """
    Client for document generation operations.

    Provides methods for:
        - Analyzing a template (field discovery)
        - Generating a filled document as base64
    """

    def __init__(self, config: ProviderConfig, resolver: CredentialResolver, http=None,
                 timeout: int = DEFAULT_TIMEOUT, adapter: Optional[ResponseAdapter] = None):
        self.config = config
        self.resolver = resolver
        self.http = http or requests
        self.timeout = timeout
        self.adapter = adapter or get_response_adapter(config.docgen.response_adapter)

    @property
    def settings(self) -> DocGenConfig:
        return self.config.docgen

    def analyze(self, template: TemplateDocument, log: Optional[AttemptLog] = None,
                on_candidate: Optional[Callable[[str], None]] = None) -> Dict[str, Any]:
        """
        Analyze a template.

        Returns:
            Parsed provider response

        Raises:
            AuthConfigurationError: No credentials
            AnalyzeFailedError: Every candidate failed
        """
        urls = candidate_endpoints(Operation.ANALYZE, self.config)
        auth = self.resolver.resolve(Provider.DOCGEN)
        log = log if log is not None else AttemptLog()

        for url in urls:
            if on_candidate:
                on_candidate(url)
            strategy = analyze_strategy_for(url, self.http, self.timeout)
            try:
                result = strategy.attempt(url, template, auth, log)
            except requests.exceptions.RequestException as e:
                log.record_error(e, url=url)
                continue
            if result is not None:
                logger.info(f"Analyze result: {dumps_redacted(result)}")
                return result

        raise AnalyzeFailedError(f"Analyze failed. Attempts: {log.summary()}", attempts=log)

    def generate(self, template: TemplateDocument, document_values: Dict[str, Any],
                 output_format: str = 'pdf', currency_culture: str = 'en-US',
                 log: Optional[AttemptLog] = None) -> Dict[str, Any]:
        """
        Fill ``template`` with ``document_values``.

        Returns:
            Parsed provider response; use extract_artifact() for the file

        Raises:
            AuthConfigurationError: No credentials
            GenerateFailedError: Every candidate failed
        """
        urls = candidate_endpoints(Operation.GENERATE, self.config)
        auth = self.resolver.resolve(Provider.DOCGEN)
        log = log if log is not None else AttemptLog()

        payload = {
            'outputFormat': output_format or 'pdf',
            'currencyCulture': currency_culture or 'en-US',
            'documentValues': document_values,
            'base64FileString': base64.b64encode(template.content).decode('ascii'),
        }
        headers = auth.headers(Accept='application/json', **{'Content-Type': 'application/json'})

        for url in urls:
            logger.warning(f"[generate] POST {url}")
            try:
                response = self.http.post(url, json=payload, headers=headers, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                log.record_error(e, url=url)
                continue

            if response.ok:
                result = parse_json_body(response.text)
                logger.info(f"Generate result: {dumps_redacted(result)}")
                return result

            error_body = parse_json_body(response.text)
            if isinstance(error_body, dict) and set(error_body) == {'raw'}:
                logger.error(f"Generate error response (text): {(response.text or '')[:1200]}")
            else:
                logger.error(f"Generate error response: {dumps_redacted(error_body)}")
            log.record_response(response, url)

        logger.error(f"Generate failed. Attempts: {log.summary()}")
        raise GenerateFailedError(f"Generate failed. Attempts: {log.summary()}", attempts=log)

    def extract_artifact(self, result: Any) -> Optional[str]:
        return self.adapter.extract_artifact(result)
