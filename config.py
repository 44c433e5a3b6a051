import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv(BASE_DIR / '.env')


def _env(*names: str, default: str = '') -> str:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


def _env_flag(name: str, default: str = 'true') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    PORT = int(os.getenv('PORT', 3000))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Filesystem collaborators
    OUTPUT_DIR = os.getenv('OUTPUT_DIR', str(BASE_DIR / 'output'))
    DOCUMENT_TEMPLATES_DIR = os.getenv('DOCUMENT_TEMPLATES_DIR', str(BASE_DIR / 'document_templates'))
    EMPLOYEE_DATA_DIR = os.getenv('EMPLOYEE_DATA_DIR', str(BASE_DIR / 'employee_data'))
    STEP_CATALOG_PATH = os.getenv('STEP_CATALOG_PATH', str(BASE_DIR / 'onboarding_steps.yml'))
    DEFAULT_EMPLOYEE_KEY = os.getenv('DEFAULT_EMPLOYEE_KEY', 'jane_doe')

    # Outbound calls
    ANALYZE_BEFORE_GENERATE = _env_flag('ANALYZE_BEFORE_GENERATE')
    REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', 30))
    UPLOAD_TIMEOUT = int(os.getenv('UPLOAD_TIMEOUT', 60))


@dataclass(frozen=True)
class ProviderCredentials:
    """
    Credentials for one provider.

    Attributes:
        access_token: Pre-issued bearer token, used as-is when present
        token_url: OAuth client-credentials token endpoint
        client_id: OAuth client id (also sent as a raw header for document generation)
        client_secret: OAuth client secret
        scope: Optional OAuth scope
    """
    access_token: str = ''
    token_url: str = ''
    client_id: str = ''
    client_secret: str = ''
    scope: str = ''

    @property
    def has_client_pair(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @property
    def can_authenticate(self) -> bool:
        """True when either a token or a complete id/secret pair is configured."""
        return bool(self.access_token) or self.has_client_pair


@dataclass(frozen=True)
class DocGenConfig:
    credentials: ProviderCredentials = field(default_factory=ProviderCredentials)
    generate_url: str = ''
    analyze_url: str = ''
    response_adapter: str = 'foxit'


@dataclass(frozen=True)
class ESignConfig:
    base_url: str = ''
    credentials: ProviderCredentials = field(default_factory=ProviderCredentials)
    demo_signer_email: str = ''

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    @property
    def is_live(self) -> bool:
        """True when sends would reach the real provider instead of being mocked."""
        return self.is_configured and self.credentials.can_authenticate


@dataclass(frozen=True)
class FileBinConfig:
    base_url: str = 'https://filebin.net'
    bin: str = ''
    cid: str = 'foxit-onboarding-demo'


@dataclass(frozen=True)
class ProviderConfig:
    """
    Immutable snapshot of every provider setting.

    Built once at process start and passed explicitly to the credential
    resolver, the endpoint selector and the provider clients.
    """
    docgen: DocGenConfig = field(default_factory=DocGenConfig)
    esign: ESignConfig = field(default_factory=ESignConfig)
    filebin: FileBinConfig = field(default_factory=FileBinConfig)
    external_base_url: str = ''

    @classmethod
    def from_env(cls) -> 'ProviderConfig':
        docgen_credentials = ProviderCredentials(
            access_token=_env('FOXIT_ACCESS_TOKEN'),
            token_url=_env('FOXIT_TOKEN_URL'),
            client_id=_env('FOXIT_CLIENT_ID', 'FOXIT_CLOUD_API_CLIENT_ID'),
            client_secret=_env('FOXIT_CLIENT_SECRET', 'FOXIT_CLOUD_API_CLIENT_SECRET'),
            scope=_env('FOXIT_SCOPE'),
        )

        # eSign falls back to the document generation credentials
        esign_credentials = ProviderCredentials(
            access_token=_env('FOXIT_ESIGN_ACCESS_TOKEN'),
            token_url=_env('FOXIT_ESIGN_TOKEN_URL', 'FOXIT_TOKEN_URL'),
            client_id=_env('FOXIT_ESIGN_CLIENT_ID') or docgen_credentials.client_id,
            client_secret=_env('FOXIT_ESIGN_CLIENT_SECRET') or docgen_credentials.client_secret,
            scope=_env('FOXIT_ESIGN_SCOPE', 'FOXIT_SCOPE'),
        )

        return cls(
            docgen=DocGenConfig(
                credentials=docgen_credentials,
                generate_url=_env('FOXIT_DOCGEN_GENERATE_URL'),
                analyze_url=_env('FOXIT_DOCGEN_ANALYZE_URL'),
                response_adapter=_env('FOXIT_DOCGEN_RESPONSE_ADAPTER', default='foxit'),
            ),
            esign=ESignConfig(
                base_url=_env('FOXIT_ESIGN_BASE_URL').rstrip('/'),
                credentials=esign_credentials,
                demo_signer_email=_env('FOXIT_ESIGN_DEMO_SIGNER_EMAIL'),
            ),
            filebin=FileBinConfig(
                base_url=_env('FILEBIN_BASE_URL', default='https://filebin.net').rstrip('/'),
                bin=_env('FILEBIN_BIN'),
                cid=_env('FILEBIN_CID', default='foxit-onboarding-demo'),
            ),
            external_base_url=_env('EXTERNAL_BASE_URL'),
        )

    @property
    def public_client_id(self) -> str:
        """Client id exposed to the browser for the embedded viewer."""
        return self.docgen.credentials.client_id or ''
