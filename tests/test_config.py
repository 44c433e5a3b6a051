"""
Tests for reading provider settings from the environment.
"""

import pytest

from config import ProviderConfig

PROVIDER_ENV = (
    'FOXIT_ACCESS_TOKEN', 'FOXIT_TOKEN_URL', 'FOXIT_SCOPE',
    'FOXIT_CLIENT_ID', 'FOXIT_CLIENT_SECRET',
    'FOXIT_CLOUD_API_CLIENT_ID', 'FOXIT_CLOUD_API_CLIENT_SECRET',
    'FOXIT_DOCGEN_GENERATE_URL', 'FOXIT_DOCGEN_ANALYZE_URL', 'FOXIT_DOCGEN_RESPONSE_ADAPTER',
    'FOXIT_ESIGN_BASE_URL', 'FOXIT_ESIGN_ACCESS_TOKEN', 'FOXIT_ESIGN_TOKEN_URL', 'FOXIT_ESIGN_SCOPE',
    'FOXIT_ESIGN_CLIENT_ID', 'FOXIT_ESIGN_CLIENT_SECRET', 'FOXIT_ESIGN_DEMO_SIGNER_EMAIL',
    'FILEBIN_BASE_URL', 'FILEBIN_BIN', 'FILEBIN_CID', 'EXTERNAL_BASE_URL',
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from an environment with no provider settings."""
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)


class TestProviderConfigFromEnv:

    def test_defaults(self):
        config = ProviderConfig.from_env()

        assert not config.docgen.credentials.can_authenticate
        assert config.docgen.response_adapter == 'foxit'
        assert not config.esign.is_configured
        assert config.filebin.base_url == 'https://filebin.net'
        assert config.filebin.cid == 'foxit-onboarding-demo'
        assert config.public_client_id == ''

    def test_docgen_credentials(self, monkeypatch):
        monkeypatch.setenv('FOXIT_CLIENT_ID', 'id')
        monkeypatch.setenv('FOXIT_CLIENT_SECRET', 'secret')
        monkeypatch.setenv('FOXIT_TOKEN_URL', 'https://auth.test/token')
        monkeypatch.setenv('FOXIT_SCOPE', 'docgen')

        credentials = ProviderConfig.from_env().docgen.credentials

        assert credentials.client_id == 'id'
        assert credentials.client_secret == 'secret'
        assert credentials.token_url == 'https://auth.test/token'
        assert credentials.scope == 'docgen'

    def test_cloud_api_aliases(self, monkeypatch):
        monkeypatch.setenv('FOXIT_CLOUD_API_CLIENT_ID', 'alias-id')
        monkeypatch.setenv('FOXIT_CLOUD_API_CLIENT_SECRET', 'alias-secret')

        config = ProviderConfig.from_env()

        assert config.docgen.credentials.client_id == 'alias-id'
        assert config.docgen.credentials.client_secret == 'alias-secret'
        assert config.public_client_id == 'alias-id'

    def test_primary_names_beat_aliases(self, monkeypatch):
        monkeypatch.setenv('FOXIT_CLIENT_ID', 'primary')
        monkeypatch.setenv('FOXIT_CLOUD_API_CLIENT_ID', 'alias')

        assert ProviderConfig.from_env().docgen.credentials.client_id == 'primary'

    def test_empty_primary_falls_through_to_alias(self, monkeypatch):
        monkeypatch.setenv('FOXIT_CLIENT_ID', '')
        monkeypatch.setenv('FOXIT_CLOUD_API_CLIENT_ID', 'alias')

        assert ProviderConfig.from_env().docgen.credentials.client_id == 'alias'

    def test_esign_falls_back_to_docgen_settings(self, monkeypatch):
        monkeypatch.setenv('FOXIT_CLIENT_ID', 'id')
        monkeypatch.setenv('FOXIT_CLIENT_SECRET', 'secret')
        monkeypatch.setenv('FOXIT_TOKEN_URL', 'https://auth.test/token')
        monkeypatch.setenv('FOXIT_SCOPE', 'shared')

        credentials = ProviderConfig.from_env().esign.credentials

        assert credentials.client_id == 'id'
        assert credentials.client_secret == 'secret'
        assert credentials.token_url == 'https://auth.test/token'
        assert credentials.scope == 'shared'
        assert credentials.access_token == ''

    def test_esign_settings_override_docgen(self, monkeypatch):
        monkeypatch.setenv('FOXIT_CLIENT_ID', 'id')
        monkeypatch.setenv('FOXIT_CLIENT_SECRET', 'secret')
        monkeypatch.setenv('FOXIT_TOKEN_URL', 'https://auth.test/token')
        monkeypatch.setenv('FOXIT_ESIGN_CLIENT_ID', 'esign-id')
        monkeypatch.setenv('FOXIT_ESIGN_CLIENT_SECRET', 'esign-secret')
        monkeypatch.setenv('FOXIT_ESIGN_TOKEN_URL', 'https://esign.test/token')
        monkeypatch.setenv('FOXIT_ESIGN_SCOPE', 'esign')
        monkeypatch.setenv('FOXIT_ESIGN_ACCESS_TOKEN', 'esign-token')

        credentials = ProviderConfig.from_env().esign.credentials

        assert credentials.client_id == 'esign-id'
        assert credentials.client_secret == 'esign-secret'
        assert credentials.token_url == 'https://esign.test/token'
        assert credentials.scope == 'esign'
        assert credentials.access_token == 'esign-token'

    def test_trailing_slashes_stripped(self, monkeypatch):
        monkeypatch.setenv('FOXIT_ESIGN_BASE_URL', 'https://esign.test/api//')
        monkeypatch.setenv('FILEBIN_BASE_URL', 'https://bins.test/')

        config = ProviderConfig.from_env()

        assert config.esign.base_url == 'https://esign.test/api'
        assert config.filebin.base_url == 'https://bins.test'

    def test_esign_live_needs_base_url_and_credentials(self, monkeypatch):
        monkeypatch.setenv('FOXIT_ESIGN_BASE_URL', 'https://esign.test/api')
        assert not ProviderConfig.from_env().esign.is_live

        monkeypatch.setenv('FOXIT_ESIGN_ACCESS_TOKEN', 'token')
        assert ProviderConfig.from_env().esign.is_live

    def test_docgen_overrides_and_filebin(self, monkeypatch):
        monkeypatch.setenv('FOXIT_DOCGEN_GENERATE_URL', 'https://docgen.test/generate')
        monkeypatch.setenv('FOXIT_DOCGEN_ANALYZE_URL', 'https://docgen.test/analyze')
        monkeypatch.setenv('FOXIT_DOCGEN_RESPONSE_ADAPTER', 'top-level')
        monkeypatch.setenv('FILEBIN_BIN', 'fixed-bin')
        monkeypatch.setenv('FILEBIN_CID', 'my-cid')
        monkeypatch.setenv('FOXIT_ESIGN_DEMO_SIGNER_EMAIL', 'demo@example.test')
        monkeypatch.setenv('EXTERNAL_BASE_URL', 'https://portal.test')

        config = ProviderConfig.from_env()

        assert config.docgen.generate_url == 'https://docgen.test/generate'
        assert config.docgen.analyze_url == 'https://docgen.test/analyze'
        assert config.docgen.response_adapter == 'top-level'
        assert config.filebin.bin == 'fixed-bin'
        assert config.filebin.cid == 'my-cid'
        assert config.esign.demo_signer_email == 'demo@example.test'
        assert config.external_base_url == 'https://portal.test'

    def test_snapshot_is_immutable(self):
        config = ProviderConfig.from_env()
        with pytest.raises(AttributeError):
            config.external_base_url = 'https://elsewhere.test'
