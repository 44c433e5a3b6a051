"""
Onboarding Orchestrator

Sequences the integration layer for each logical operation:

    analyze:  idle -> trying-endpoint(i) -> done | analyze-failed
    generate: idle -> analyzing -> generating -> saved | generate-failed
    send:     idle -> resolving-file -> (uploading)? -> sending -> sent | mocked | send-failed

Analyze failures inside generate are logged and swallowed; every other
failure propagates to the caller with its attempt log.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from utils import decode_base64, to_display
from .catalog import EmployeeStore, StepCatalog, TemplateStore
from .docgen_client import DocGenClient
from .document_store import DocumentStore
from .esign_client import ESignClient, SendResult
from .exceptions import (
    DocumentNotFound,
    MissingSignerError,
    OnboardingError,
    SendFailedError,
    TemplateRequestError,
    UploadError,
)
from .filebin import FileBinUploader
from .states import AnalyzeState, GenerateState, OperationTrace, SendState
from .types import GeneratedDocument, SignatureRequest, Signer, TemplateDocument

logger = logging.getLogger(__name__)

DOCGEN_PROVIDER = 'foxit'
ESIGN_PROVIDER = 'foxit-esign'


# =============================================================================
# REQUESTS
# =============================================================================

def _text(data: Dict[str, Any], key: str) -> Optional[str]:
    """
    Read an optional string field from a JSON body.

    Raises:
        TemplateRequestError: The field is present but not a string
    """
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TemplateRequestError(f"{key} must be a string", error_code='invalid-request')
    return value


@dataclass
class TemplateRequest:
    """Identifies a template by inline base64, explicit name, or step key."""
    step_key: Optional[str] = None
    template_name: Optional[str] = None
    base64_file_string: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'TemplateRequest':
        return cls(
            step_key=_text(data, 'stepKey'),
            template_name=_text(data, 'templateName'),
            base64_file_string=_text(data, 'base64FileString'),
        )


@dataclass
class GenerateRequest(TemplateRequest):
    document_values: Optional[Dict[str, Any]] = None
    output_format: Optional[str] = None
    currency_culture: Optional[str] = None
    employee_key: Optional[str] = None
    return_base64: bool = False

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'GenerateRequest':
        document_values = data.get('documentValues')
        if document_values is not None and not isinstance(document_values, dict):
            raise TemplateRequestError('documentValues must be an object', error_code='invalid-request')
        return cls(
            step_key=_text(data, 'stepKey'),
            template_name=_text(data, 'templateName'),
            base64_file_string=_text(data, 'base64FileString'),
            document_values=document_values,
            output_format=_text(data, 'outputFormat'),
            currency_culture=_text(data, 'currencyCulture'),
            employee_key=_text(data, 'employeeKey'),
            return_base64=data.get('returnBase64') is True,
        )

    @property
    def document_label(self) -> str:
        return self.step_key or self.template_name or 'doc'


@dataclass
class SendRequest:
    step_key: Optional[str] = None
    file_url: Optional[str] = None
    file_path: Optional[str] = None
    public_file_url: Optional[str] = None
    employee_key: Optional[str] = None
    signer_email: Optional[str] = None
    signer_name: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'SendRequest':
        return cls(
            step_key=_text(data, 'stepKey'),
            file_url=_text(data, 'fileUrl'),
            file_path=_text(data, 'filePath'),
            public_file_url=_text(data, 'publicFileUrl'),
            employee_key=_text(data, 'employeeKey'),
            signer_email=_text(data, 'signerEmail'),
            signer_name=_text(data, 'signerName'),
            subject=_text(data, 'subject'),
            message=_text(data, 'message'),
        )


# =============================================================================
# OUTCOMES
# =============================================================================

@dataclass
class AnalyzeOutcome:
    result: Any
    trace: OperationTrace

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.result, dict):
            body = {'provider': DOCGEN_PROVIDER, **self.result}
        else:
            body = {'provider': DOCGEN_PROVIDER, 'result': self.result}
        body['states'] = self.trace.to_list()
        return body


@dataclass
class GenerateOutcome:
    """
    Attributes:
        trace: States passed through; the last one is terminal
        provider_response: Parsed generate response
        document: Set when the artifact was saved
        artifact: The base64 payload, when one was found
        detail: Error text for write failures
    """
    trace: OperationTrace
    provider_response: Any
    document: Optional[GeneratedDocument] = None
    artifact: Optional[str] = None
    detail: Optional[str] = None
    return_base64: bool = False

    @property
    def saved(self) -> bool:
        return self.trace.state == GenerateState.SAVED

    def to_dict(self) -> Dict[str, Any]:
        if self.saved:
            body = {
                'provider': DOCGEN_PROVIDER,
                'saved': True,
                'fileName': self.document.file_name,
                'fileUrl': self.document.file_url,
                'filePath': self.document.file_path,
            }
            if self.return_base64:
                body['fileBase64'] = self.artifact
            body['states'] = self.trace.to_list()
            return body

        if self.trace.state == GenerateState.WRITE_FAILED:
            return {
                'provider': DOCGEN_PROVIDER,
                'saved': False,
                'reason': 'write-failed',
                'detail': self.detail,
                'foxit': self.provider_response,
                'states': self.trace.to_list(),
            }

        return {
            'provider': DOCGEN_PROVIDER,
            'saved': False,
            'reason': 'no-pdf-in-response',
            'foxit': self.provider_response,
            'states': self.trace.to_list(),
        }


@dataclass
class SendOutcome:
    trace: OperationTrace
    send_result: SendResult
    live: bool
    public_file_url: Optional[str] = None
    signer: Optional[Signer] = None
    upload_error: Optional[Dict[str, Any]] = field(default=None)

    @property
    def mocked(self) -> bool:
        return self.trace.state == SendState.MOCKED

    def to_dict(self) -> Dict[str, Any]:
        body = {
            'provider': ESIGN_PROVIDER,
            'ok': True,
            'publicFileUrl': self.public_file_url if self.live else None,
            'result': self.send_result.result,
            'mocked': self.mocked,
            'states': self.trace.to_list(),
        }
        if self.upload_error:
            body['uploadError'] = self.upload_error
        return body


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class OnboardingOrchestrator:
    """
    Runs analyze, generate and send-for-signature against the providers.

    All collaborators are injected; nothing here reads the environment.
    """

    def __init__(self, catalog: StepCatalog, templates: TemplateStore, employees: EmployeeStore,
                 documents: DocumentStore, docgen: DocGenClient, esign: ESignClient,
                 uploader: FileBinUploader, analyze_before_generate: bool = True,
                 default_employee_key: str = 'jane_doe'):
        self.catalog = catalog
        self.templates = templates
        self.employees = employees
        self.documents = documents
        self.docgen = docgen
        self.esign = esign
        self.uploader = uploader
        self.analyze_before_generate = analyze_before_generate
        self.default_employee_key = default_employee_key

    def resolve_template(self, request: TemplateRequest, inline_name: str = 'template.docx') -> TemplateDocument:
        return self.templates.resolve(
            step_key=request.step_key,
            template_name=request.template_name,
            base64_file=request.base64_file_string,
            inline_name=inline_name,
        )

    # -------------------------------------------------------------------------
    # Analyze
    # -------------------------------------------------------------------------

    def analyze(self, request: TemplateRequest) -> AnalyzeOutcome:
        """
        Raises:
            TemplateRequestError / TemplateNotFound: Template cannot be resolved
            AnalyzeFailedError: Every candidate endpoint failed
        """
        template = self.resolve_template(request, inline_name='upload.docx')
        trace = OperationTrace('analyze', AnalyzeState.IDLE)
        result = self._analyze(template, trace)
        return AnalyzeOutcome(result=result, trace=trace)

    def _analyze(self, template: TemplateDocument, trace: OperationTrace) -> Any:
        try:
            result = self.docgen.analyze(
                template,
                on_candidate=lambda url: trace.advance(AnalyzeState.TRYING_ENDPOINT)
            )
        except OnboardingError:
            trace.advance(AnalyzeState.ANALYZE_FAILED)
            raise
        trace.advance(AnalyzeState.DONE)
        return result

    # -------------------------------------------------------------------------
    # Generate
    # -------------------------------------------------------------------------

    def document_values_for(self, request: GenerateRequest) -> Dict[str, Any]:
        """Explicit values win; otherwise the employee record, flattened."""
        if request.document_values is not None:
            return request.document_values
        employee = self.employees.get(request.employee_key or self.default_employee_key)
        return employee.document_values() if employee else {}

    def generate(self, request: GenerateRequest) -> GenerateOutcome:
        """
        Fill a template and save the resulting PDF.

        Raises:
            TemplateRequestError / TemplateNotFound: Template cannot be resolved
            AuthConfigurationError: No document generation credentials
            GenerateFailedError: Every candidate endpoint failed
        """
        template = self.resolve_template(request)
        values = self.document_values_for(request)
        trace = OperationTrace('generate', GenerateState.IDLE)

        if self.analyze_before_generate:
            trace.advance(GenerateState.ANALYZING)
            try:
                self.docgen.analyze(template)
            except OnboardingError as e:
                logger.warning(f"Analyze failed, continuing to generate: {e}")

        trace.advance(GenerateState.GENERATING)
        try:
            response = self.docgen.generate(
                template,
                values,
                output_format=request.output_format,
                currency_culture=request.currency_culture,
            )
        except OnboardingError:
            trace.advance(GenerateState.GENERATE_FAILED)
            raise

        artifact = self.docgen.extract_artifact(response)
        if not artifact:
            logger.warning('Generate response contained no PDF base64')
            trace.advance(GenerateState.NO_ARTIFACT)
            return GenerateOutcome(trace=trace, provider_response=response)

        try:
            content = decode_base64(artifact)
            document = self.documents.save(content, request.document_label, request.employee_key)
        except (ValueError, OSError) as e:
            logger.error(f"Generate save failed: {e}")
            trace.advance(GenerateState.WRITE_FAILED)
            return GenerateOutcome(trace=trace, provider_response=response, artifact=artifact, detail=str(e))

        trace.advance(GenerateState.SAVED)
        return GenerateOutcome(
            trace=trace,
            provider_response=response,
            document=document,
            artifact=artifact,
            return_base64=request.return_base64,
        )

    # -------------------------------------------------------------------------
    # Send for signature
    # -------------------------------------------------------------------------

    def resolve_document_path(self, request: SendRequest) -> Optional[Path]:
        """
        Find the PDF to send: explicit path, then ``/output/`` URL, then the
        latest document for the step. Paths outside the output directory
        are ignored.
        """
        candidate = None
        if request.file_path:
            candidate = Path(request.file_path)
            if not candidate.is_absolute():
                candidate = self.documents.directory / candidate
        if candidate is None and request.file_url:
            candidate = self.documents.path_for_url(request.file_url)
        if candidate is None and request.step_key:
            candidate = self.documents.find_latest_pdf_by_step(request.step_key)

        if candidate is None:
            return None
        output_dir = self.documents.directory.resolve()
        resolved = candidate.resolve()
        if output_dir not in resolved.parents or not resolved.is_file():
            return None
        return resolved

    def resolve_signer(self, request: SendRequest) -> Signer:
        """
        Signer precedence: explicit fields, then the demo override email,
        then the employee record.

        Raises:
            MissingSignerError: No email could be found
        """
        override_email = self.esign.settings.demo_signer_email
        name = request.signer_name
        email = request.signer_email

        if request.employee_key:
            employee = self.employees.get(request.employee_key)
            if employee:
                name = name or employee.name or 'Employee'
                email = email or override_email or employee.email

        if not email and override_email:
            email = override_email
        if not email:
            raise MissingSignerError(
                'Provide signerEmail or employeeKey with employeeEmail, '
                'or set FOXIT_ESIGN_DEMO_SIGNER_EMAIL'
            )
        return Signer(name=name or 'Signer', email=email)

    def send_for_signature(self, request: SendRequest) -> SendOutcome:
        """
        Send a generated PDF for signature.

        Raises:
            DocumentNotFound: No PDF matches the request
            MissingSignerError: No signer email
            SendFailedError: Every signing strategy failed
        """
        trace = OperationTrace('send', SendState.IDLE)
        trace.advance(SendState.RESOLVING_FILE)

        path = self.resolve_document_path(request)
        if path is None:
            trace.advance(SendState.SEND_FAILED)
            raise DocumentNotFound('Provide filePath/fileUrl or generate first')

        try:
            signer = self.resolve_signer(request)
        except MissingSignerError:
            trace.advance(SendState.SEND_FAILED)
            raise

        content = path.read_bytes()
        live = self.esign.is_live()

        # Uploads only make sense when a real provider will fetch the URL
        public_url = request.public_file_url or None
        upload_error = None
        if live and not public_url:
            trace.advance(SendState.UPLOADING)
            try:
                public_url = self.uploader.publish(content, path.name).url
            except UploadError as e:
                logger.error(f"[filebin] upload during send failed: {e}")
                upload_error = e.to_dict()

        subject = request.subject or f"{to_display(request.step_key or 'Document')} - Please Sign"
        message = request.message or (
            f"Hello{' ' + signer.name if request.signer_name or request.employee_key else ''},\n\n"
            f"Please sign the attached document.\n\nThank you."
        )

        logger.warning(
            f"[esign] send step={request.step_key} employee={request.employee_key} file={path.name} "
            f"signer={signer.email} publicFileUrl={public_url} live={live}"
        )

        trace.advance(SendState.SENDING)
        try:
            result = self.esign.send(SignatureRequest(
                content=content,
                filename=path.name,
                signer=signer,
                subject=subject,
                message=message,
                public_file_url=public_url,
            ))
        except SendFailedError:
            trace.advance(SendState.SEND_FAILED)
            raise

        trace.advance(SendState.MOCKED if result.mocked else SendState.SENT)
        logger.info(
            f"[esign] send result ok=True signer={signer.email} step={request.step_key} "
            f"mocked={result.mocked} strategy={result.strategy}"
        )
        return SendOutcome(
            trace=trace,
            send_result=result,
            live=live,
            public_file_url=public_url,
            signer=signer,
            upload_error=upload_error,
        )
