"""
Onboarding Document Integration

Generates onboarding documents from templates through a document
generation API, saves the PDFs, and sends them out for e-signature.

Usage:
    from services.onboarding import build_orchestrator, GenerateRequest

    # On app startup
    orchestrator = build_orchestrator(app.config, ProviderConfig.from_env())

    # When handling a request
    outcome = orchestrator.generate(GenerateRequest.from_json(request.get_json()))
    outcome.to_dict()
"""

from .types import (
    Provider,
    AuthMode,
    OnboardingStep,
    Employee,
    TemplateDocument,
    GeneratedDocument,
    AuthContext,
    Attempt,
    AttemptLog,
    Signer,
    SignatureRequest
)

from .exceptions import (
    OnboardingError,
    ConfigurationError,
    AuthConfigurationError,
    TemplateRequestError,
    TemplateNotFound,
    DocumentNotFound,
    MissingSignerError,
    UpstreamError,
    UpstreamTransportError,
    UpstreamRejection,
    TokenExchangeError,
    AnalyzeFailedError,
    GenerateFailedError,
    SendFailedError,
    UploadError
)

from .auth import CredentialResolver
from .catalog import StepCatalog, TemplateStore, EmployeeStore
from .docgen_client import DocGenClient
from .document_store import DocumentStore
from .esign_client import ESignClient, SendResult
from .filebin import FileBinUploader, probe_redirects
from .orchestrator import (
    OnboardingOrchestrator,
    TemplateRequest,
    GenerateRequest,
    SendRequest
)


def build_orchestrator(settings, provider_config, http=None) -> OnboardingOrchestrator:
    """
    Wire every component from the app settings and provider config.

    Args:
        settings: Mapping with the Config keys (app.config works)
        provider_config: ProviderConfig
        http: Transport with requests' get/post interface, requests by default
    """
    catalog = StepCatalog.load(settings['STEP_CATALOG_PATH'])
    resolver = CredentialResolver(provider_config, http=http, timeout=settings['REQUEST_TIMEOUT'])
    return OnboardingOrchestrator(
        catalog=catalog,
        templates=TemplateStore(settings['DOCUMENT_TEMPLATES_DIR'], catalog),
        employees=EmployeeStore(settings['EMPLOYEE_DATA_DIR']),
        documents=DocumentStore(settings['OUTPUT_DIR']),
        docgen=DocGenClient(provider_config, resolver, http=http, timeout=settings['REQUEST_TIMEOUT']),
        esign=ESignClient(provider_config, resolver, http=http, timeout=settings['UPLOAD_TIMEOUT']),
        uploader=FileBinUploader(provider_config.filebin, http=http, timeout=settings['UPLOAD_TIMEOUT']),
        analyze_before_generate=settings['ANALYZE_BEFORE_GENERATE'],
        default_employee_key=settings['DEFAULT_EMPLOYEE_KEY'],
    )


__all__ = [
    # Types
    'Provider',
    'AuthMode',
    'OnboardingStep',
    'Employee',
    'TemplateDocument',
    'GeneratedDocument',
    'AuthContext',
    'Attempt',
    'AttemptLog',
    'Signer',
    'SignatureRequest',

    # Exceptions
    'OnboardingError',
    'ConfigurationError',
    'AuthConfigurationError',
    'TemplateRequestError',
    'TemplateNotFound',
    'DocumentNotFound',
    'MissingSignerError',
    'UpstreamError',
    'UpstreamTransportError',
    'UpstreamRejection',
    'TokenExchangeError',
    'AnalyzeFailedError',
    'GenerateFailedError',
    'SendFailedError',
    'UploadError',

    # Components
    'CredentialResolver',
    'StepCatalog',
    'TemplateStore',
    'EmployeeStore',
    'DocGenClient',
    'DocumentStore',
    'ESignClient',
    'SendResult',
    'FileBinUploader',
    'probe_redirects',

    # Orchestration
    'OnboardingOrchestrator',
    'TemplateRequest',
    'GenerateRequest',
    'SendRequest',
    'build_orchestrator',
]
