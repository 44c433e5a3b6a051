"""
Endpoint Variant Strategies

Each strategy is one way of performing a logical operation against a
provider. Clients try their strategies in order; a strategy records
what happened in the AttemptLog and returns the parsed result on success
or None so the next strategy can run.

Analyze:
    Base64AnalyzeStrategy      JSON body with base64FileString
    MultipartAnalyzeStrategy   multipart "file", retried once as "template" on 400/415

Send for signature:
    CreateFromUrlStrategy      folders/createfolder with a public file URL
    InlineEnvelopeStrategy     single create+send with the document inline
    MultiStepEnvelopeStrategy  create -> upload -> parties -> send
"""

import base64
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote, urljoin

import requests

from .endpoints import esign_upload_urls, is_base64_endpoint
from .responses import extract_envelope_id, parse_json_body, payload_error_marker
from .types import AttemptLog, AuthContext, SignatureRequest, TemplateDocument

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'

# Statuses that suggest the multipart field name was wrong
FIELD_NAME_RETRY_STATUSES = frozenset({400, 415})


# =============================================================================
# ANALYZE
# =============================================================================

class AnalyzeStrategy:
    name = 'analyze'

    def __init__(self, http=None, timeout: int = 30):
        self.http = http or requests
        self.timeout = timeout

    def attempt(self, url: str, template: TemplateDocument, auth: AuthContext,
                log: AttemptLog) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class Base64AnalyzeStrategy(AnalyzeStrategy):
    name = 'analyze(base64)'

    def attempt(self, url, template, auth, log):
        logger.warning(f"[analyze] Trying URL (JSON base64FileString): {url}")
        response = self.http.post(
            url,
            json={'base64FileString': base64.b64encode(template.content).decode('ascii')},
            headers=auth.headers(Accept='application/json', **{'Content-Type': 'application/json'}),
            timeout=self.timeout
        )
        if response.ok:
            return parse_json_body(response.text)
        log.record_response(response, f"{url} (base64FileString)")
        return None


class MultipartAnalyzeStrategy(AnalyzeStrategy):
    name = 'analyze(multipart)'
    field_names = ('file', 'template')

    def attempt(self, url, template, auth, log):
        response = None
        for index, field_name in enumerate(self.field_names):
            if index and response.status_code not in FIELD_NAME_RETRY_STATUSES:
                break
            logger.warning(f"[analyze] Trying URL: {url} (field={field_name})")
            response = self.http.post(
                url,
                files={field_name: (template.filename or 'template.docx', template.content, DOCX_CONTENT_TYPE)},
                headers=auth.headers(Accept='application/json'),
                timeout=self.timeout
            )
            if response.ok:
                return parse_json_body(response.text)

        log.record_response(response, url)
        return None


def analyze_strategy_for(url: str, http=None, timeout: int = 30) -> AnalyzeStrategy:
    """Pick the analyze strategy from the endpoint's shape."""
    if is_base64_endpoint(url):
        return Base64AnalyzeStrategy(http, timeout)
    return MultipartAnalyzeStrategy(http, timeout)


# =============================================================================
# SEND FOR SIGNATURE
# =============================================================================

class StepFailed(Exception):
    """One step of a multi-step chain failed; already recorded in the log."""


class SendStrategy:
    """
    Base for signing strategies.

    Attributes:
        base_url: eSign API base URL, no trailing slash
        headers: Auth headers for this call chain
    """
    name = 'send'

    def __init__(self, base_url: str, headers: Dict[str, str], http=None, timeout: int = 60):
        self.base_url = base_url
        self.headers = headers
        self.http = http or requests
        self.timeout = timeout

    def applies_to(self, request: SignatureRequest) -> bool:
        return True

    def attempt(self, request: SignatureRequest, log: AttemptLog) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def _post_json(self, url: str, payload: Dict[str, Any]):
        headers = dict(self.headers)
        headers['Content-Type'] = 'application/json'
        headers.setdefault('Accept', 'application/json')
        return self.http.post(url, json=payload, headers=headers, timeout=self.timeout)

    def _accept(self, response, label: str) -> Dict[str, Any]:
        """Parse a 2xx body, warning when it carries a provider-level error."""
        result = parse_json_body(response.text)
        marker = payload_error_marker(result)
        if marker:
            logger.warning(f"[esign] {label} returned {response.status_code} with error payload ({marker})")
        logger.info(f"[esign] {label} success (id={extract_envelope_id(result)})")
        return result


class CreateFromUrlStrategy(SendStrategy):
    """Create and send an envelope from a publicly fetchable file URL."""
    name = 'create-from-url'

    def __init__(self, base_url, headers, http=None, timeout=60, external_base_url: str = ''):
        super().__init__(base_url, headers, http, timeout)
        self.external_base_url = external_base_url

    def file_url_for(self, request: SignatureRequest) -> Optional[str]:
        if request.public_file_url:
            return request.public_file_url
        if self.external_base_url:
            return urljoin(self.external_base_url, f"/output/{quote(request.filename)}")
        return None

    def applies_to(self, request):
        return bool(self.file_url_for(request))

    def attempt(self, request, log):
        url = f"{self.base_url}/folders/createfolder"
        file_url = self.file_url_for(request)
        first_name, last_name = request.signer_first_last
        payload = {
            'folderName': request.subject or request.filename,
            'inputType': 'url',
            'fileUrls': [file_url],
            'fileNames': [request.filename],
            'parties': [{
                'firstName': first_name,
                'lastName': last_name,
                'emailId': request.signer.email,
                'permission': 'FILL_FIELDS_AND_SIGN',
                'sequence': 1,
                'allowNameChange': 'false',
            }],
            # Turns ${s:1:Field_Name} text tags in the template into signature fields
            'processTextTags': True,
            'processAcroFields': False,
            'sendNow': True,
            'createEmbeddedSigningSession': False,
            'createEmbeddedSigningSessionForAllParties': False,
            'signInSequence': False,
        }
        logger.warning(f"[esign] POST create-from-url {url} fileUrl={file_url} signer={request.signer.email}")
        response = self._post_json(url, payload)
        if response.ok:
            return self._accept(response, self.name)
        log.record_response(response, url, step=self.name)
        return None


class InlineEnvelopeStrategy(SendStrategy):
    """Single-call create+send with the PDF embedded as base64."""
    name = 'create+send'

    def attempt(self, request, log):
        url = f"{self.base_url}/envelopes"
        payload = {
            'name': request.subject,
            'emailSubject': request.subject,
            'emailMessage': request.message,
            'status': 'sent',
            'parties': [{'role': 'signer', 'name': request.signer.name, 'email': request.signer.email}],
            'documents': [{
                'fileName': request.filename,
                'fileBase64': base64.b64encode(request.content).decode('ascii'),
                'fileType': 'pdf',
            }],
        }
        logger.warning(f"[esign] POST create+send {url} signer={request.signer.email}")
        response = self._post_json(url, payload)
        if response.ok:
            return self._accept(response, self.name)
        log.record_response(response, url, step=self.name)
        return None


class MultiStepEnvelopeStrategy(SendStrategy):
    """Create a draft envelope, upload the document, add the signer, send."""
    name = 'multi-step'

    def attempt(self, request, log):
        envelope_id = None
        try:
            envelope_id = self._create(request, log)
            self._upload(envelope_id, request, log)
            self._add_parties(envelope_id, request, log)
            return self._send(envelope_id, request, log)
        except (StepFailed, requests.exceptions.RequestException) as e:
            log.record_error(e, step=self.name, envelope_id=envelope_id)
            return None

    def _create(self, request, log) -> str:
        url = f"{self.base_url}/envelopes"
        logger.warning(f"[esign] POST create-envelope (multi-step) {url}")
        response = self._post_json(url, {'name': request.subject, 'status': 'created'})
        if not response.ok:
            log.record_response(response, url, step='create')
            raise StepFailed('create failed')
        envelope_id = extract_envelope_id(parse_json_body(response.text))
        if not envelope_id:
            raise StepFailed('missing envelopeId')
        return envelope_id

    def _upload(self, envelope_id, request, log) -> None:
        b64 = base64.b64encode(request.content).decode('ascii')
        last_error = None
        for url in esign_upload_urls(self.base_url, envelope_id):
            try:
                response = self.http.post(
                    url,
                    files={'file': (request.filename, request.content, 'application/pdf')},
                    headers=dict(self.headers),
                    timeout=self.timeout
                )
                if response.ok:
                    return
                log.record_response(response, url, step='upload(multipart)')

                response = self._post_json(url, {'fileName': request.filename, 'fileBase64': b64, 'fileType': 'pdf'})
                if response.ok:
                    return
                log.record_response(response, url, step='upload(json)')
            except requests.exceptions.RequestException as e:
                last_error = e
        raise StepFailed(f"upload failed{': ' + str(last_error) if last_error else ''}")

    def _add_parties(self, envelope_id, request, log) -> None:
        url = f"{self.base_url}/envelopes/{envelope_id}/parties"
        logger.warning(f"[esign] POST parties {url} signer={request.signer.email}")
        response = self._post_json(url, {
            'parties': [{'role': 'signer', 'name': request.signer.name, 'email': request.signer.email}]
        })
        if not response.ok:
            log.record_response(response, url, step='parties')
            raise StepFailed('parties failed')

    def _send(self, envelope_id, request, log) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}/envelopes/{envelope_id}/send"
        logger.warning(f"[esign] POST send-envelope {url}")
        response = self._post_json(url, {'emailSubject': request.subject, 'emailMessage': request.message})
        if response.ok:
            result = parse_json_body(response.text)
            if isinstance(result, dict) and set(result) == {'raw'}:
                result['envelopeId'] = envelope_id
            return result
        log.record_response(response, url, step='send')
        return None


SEND_STRATEGIES = (CreateFromUrlStrategy, InlineEnvelopeStrategy, MultiStepEnvelopeStrategy)
