"""
Onboarding Integration Exceptions

Custom exceptions for provider configuration and outbound call failures.
Each exception knows the HTTP status the API layer answers with.
"""

from typing import Any, Dict, Optional


class OnboardingError(Exception):
    """Base exception for all onboarding integration errors."""
    http_status = 500
    error_code = 'onboarding-error'

    def __init__(self, message: str, error_code: Optional[str] = None):
        if error_code:
            self.error_code = error_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """JSON body for the API response."""
        return {'error': self.error_code, 'detail': str(self)}


class ConfigurationError(OnboardingError):
    """
    Raised when required configuration is missing.

    Covers missing provider endpoints, missing credentials and
    requests that cannot be mapped to a template.
    """
    error_code = 'configuration-error'


class AuthConfigurationError(ConfigurationError):
    """
    Raised when no authentication mode can be resolved for a provider.

    Neither a direct token nor a complete client id/secret pair is set.
    Raised before any network request is made.
    """
    error_code = 'auth-not-configured'

    def __init__(self, message: str, provider: str = None):
        self.provider = provider
        super().__init__(message)


class TemplateRequestError(ConfigurationError):
    """Raised when a request names no template, mapped step or inline document."""
    http_status = 400
    error_code = 'template-required'


class TemplateNotFound(OnboardingError):
    http_status = 404
    error_code = 'template-not-found'


class DocumentNotFound(OnboardingError):
    """Raised when no generated PDF can be found for a send request."""
    http_status = 400
    error_code = 'pdf-not-found'


class MissingSignerError(OnboardingError):
    http_status = 400
    error_code = 'missing-signer'


class UpstreamError(OnboardingError):
    """
    Raised when a provider call fails.

    Carries the attempt log so every tried candidate is visible
    in the final diagnostic.
    """
    http_status = 502
    error_code = 'upstream-error'

    def __init__(self, message: str, attempts=None, error_code: Optional[str] = None):
        self.attempts = attempts
        super().__init__(message, error_code=error_code)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.attempts is not None:
            body['attempts'] = self.attempts.to_list()
        return body


class UpstreamTransportError(UpstreamError):
    """Raised when the provider cannot be reached at all."""
    error_code = 'upstream-unreachable'


class UpstreamRejection(UpstreamError):
    """
    Raised when a provider answers with a non-success status.

    Wraps the status and a truncated body.
    """
    error_code = 'upstream-rejected'

    def __init__(self, message: str, status_code: int = None, response_body: str = None, attempts=None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, attempts=attempts)


class TokenExchangeError(UpstreamRejection):
    """Raised when the OAuth client-credentials exchange fails."""
    error_code = 'token-exchange-failed'


class AnalyzeFailedError(UpstreamError):
    error_code = 'foxit-analyze-failed'


class GenerateFailedError(UpstreamError):
    error_code = 'foxit-generate-failed'


class SendFailedError(UpstreamError):
    error_code = 'esign-send-failed'


class UploadError(OnboardingError):
    """
    Raised when publishing a file to the blob host fails.

    Never retried automatically.
    """
    http_status = 502
    error_code = 'upload-failed'

    def __init__(self, message: str, status_code: int = None, response_body: str = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body['status'] = self.status_code
        body['body'] = self.response_body
        return body
