"""
Shared fixtures: a scripted stand-in for the requests module, provider
configs, and an application wired to both.
"""

import base64
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import pytest
import requests

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import DocGenConfig, ESignConfig, FileBinConfig, ProviderConfig, ProviderCredentials

FAKE_PDF_BYTES = b'%PDF-1.4 fake onboarding document\n' * 8
FAKE_PDF_BASE64 = base64.b64encode(FAKE_PDF_BYTES).decode('ascii')

ESIGN_BASE = 'https://esign.test/api'
FILEBIN_BASE = 'https://filebin.test'


class FakeResponse:
    """Just enough of requests.Response for the clients."""

    def __init__(self, status_code=200, body=None, headers=None, reason=None):
        self.status_code = status_code
        if body is None:
            self.text = ''
        elif isinstance(body, str):
            self.text = body
        else:
            self.text = json.dumps(body)
        self.headers = headers or {}
        self.reason = reason or ('OK' if self.ok else 'Error')

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        return json.loads(self.text)


@dataclass
class Call:
    method: str
    url: str
    kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def json(self):
        return self.kwargs.get('json')

    @property
    def headers(self):
        return self.kwargs.get('headers') or {}


class FakeHttp:
    """
    Scripted transport with the requests module's get/post/head interface.

    Routes match an exact URL, or a prefix when the pattern ends in ``*``.
    Each route replays its responses in order and repeats the last one.
    An exception instance in place of a response is raised. Unrouted
    calls raise ConnectionError, so nothing reaches the network.
    """

    def __init__(self):
        self.routes = []
        self.calls = []

    def add(self, method, url, *responses):
        self.routes.append((method.upper(), url, list(responses)))
        return self

    def _matches(self, pattern, url):
        if pattern.endswith('*'):
            return url.startswith(pattern[:-1])
        return url == pattern

    def _dispatch(self, method, url, **kwargs):
        self.calls.append(Call(method, url, kwargs))
        for route_method, pattern, responses in self.routes:
            if route_method == method and self._matches(pattern, url):
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(response, Exception):
                    raise response
                return response
        raise requests.exceptions.ConnectionError(f"No route for {method} {url}")

    def get(self, url, **kwargs):
        return self._dispatch('GET', url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch('POST', url, **kwargs)

    def head(self, url, **kwargs):
        return self._dispatch('HEAD', url, **kwargs)

    def calls_to(self, url_part):
        return [c for c in self.calls if url_part in c.url]


@pytest.fixture(autouse=True)
def no_curl(monkeypatch):
    """Keep redirect resolution on the injected transport."""
    monkeypatch.setattr('services.onboarding.filebin.shutil.which', lambda name: None)


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def docgen_credentials():
    return ProviderCredentials(client_id='test-client-id', client_secret='test-client-secret')


@pytest.fixture
def provider_config(docgen_credentials):
    """Document generation configured, eSign not configured."""
    return ProviderConfig(
        docgen=DocGenConfig(credentials=docgen_credentials),
        filebin=FileBinConfig(base_url=FILEBIN_BASE, bin='testbin'),
    )


@pytest.fixture
def live_provider_config(docgen_credentials):
    """Document generation and a live eSign provider."""
    return ProviderConfig(
        docgen=DocGenConfig(credentials=docgen_credentials),
        esign=ESignConfig(
            base_url=ESIGN_BASE,
            credentials=ProviderCredentials(access_token='esign-token'),
        ),
        filebin=FileBinConfig(base_url=FILEBIN_BASE, bin='testbin'),
    )


@pytest.fixture
def app_settings(tmp_path):
    return {
        'TESTING': True,
        'LOG_LEVEL': 'DEBUG',
        'OUTPUT_DIR': str(tmp_path / 'output'),
        'DOCUMENT_TEMPLATES_DIR': str(PROJECT_ROOT / 'document_templates'),
        'EMPLOYEE_DATA_DIR': str(PROJECT_ROOT / 'employee_data'),
        'STEP_CATALOG_PATH': str(PROJECT_ROOT / 'onboarding_steps.yml'),
        'ANALYZE_BEFORE_GENERATE': False,
        'REQUEST_TIMEOUT': 30,
        'UPLOAD_TIMEOUT': 60,
        'DEFAULT_EMPLOYEE_KEY': 'jane_doe',
    }


@pytest.fixture
def app(app_settings, provider_config, fake_http):
    from app import create_app
    return create_app(test_config=app_settings, provider_config=provider_config, http=fake_http)


@pytest.fixture
def client(app):
    return app.test_client()
