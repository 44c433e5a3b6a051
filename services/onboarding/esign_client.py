"""
eSign Client

Sends a PDF to the e-signature provider by trying the signing strategies
in order. When the provider is not configured, or its auth cannot be
resolved, sends are mocked so the demo works offline.

Configuration (see config.ProviderConfig.esign):
- FOXIT_ESIGN_BASE_URL: API base; unset means every send is mocked
- FOXIT_ESIGN_ACCESS_TOKEN / FOXIT_ESIGN_TOKEN_URL: bearer credentials
- FOXIT_ESIGN_CLIENT_ID / FOXIT_ESIGN_CLIENT_SECRET: fall back to the
  document generation client credentials
"""

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from config import ESignConfig, ProviderConfig
from utils import mask_secret
from .auth import CredentialResolver
from .endpoints import esign_ping_urls, esign_token_candidates
from .exceptions import OnboardingError, SendFailedError
from .strategies import SEND_STRATEGIES, CreateFromUrlStrategy, SendStrategy
from .types import AttemptLog, Provider, SignatureRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
HEALTH_TIMEOUT = 30


@dataclass
class SendResult:
    """
    Outcome of a send.

    Attributes:
        mocked: True when no request reached a signing endpoint
        result: Provider response, or the mock explanation
        strategy: Name of the strategy that succeeded
    """
    mocked: bool
    result: Dict[str, Any]
    strategy: Optional[str] = None
    attempts: AttemptLog = field(default_factory=AttemptLog)


class ESignClient:
    """
    Client for e-signature operations.

    Provides methods for:
        - Sending a document for signature (with strategy fallback)
        - A credential/connectivity health check
    """

    def __init__(self, config: ProviderConfig, resolver: CredentialResolver, http=None,
                 timeout: int = DEFAULT_TIMEOUT):
        self.config = config
        self.resolver = resolver
        self.http = http or requests
        self.timeout = timeout

    @property
    def settings(self) -> ESignConfig:
        return self.config.esign

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    def is_configured(self) -> bool:
        return self.settings.is_configured

    def is_live(self) -> bool:
        return self.settings.is_live

    def build_strategies(self, headers: Dict[str, str]) -> List[SendStrategy]:
        strategies = []
        for strategy_cls in SEND_STRATEGIES:
            if strategy_cls is CreateFromUrlStrategy:
                strategies.append(strategy_cls(
                    self.base_url, headers, self.http, self.timeout,
                    external_base_url=self.config.external_base_url
                ))
            else:
                strategies.append(strategy_cls(self.base_url, headers, self.http, self.timeout))
        return strategies

    def send(self, request: SignatureRequest) -> SendResult:
        """
        Send ``request`` for signature.

        Returns:
            SendResult, mocked when the provider is not configured

        Raises:
            SendFailedError: Every strategy failed
        """
        logger.warning(
            f"[esign] send called base={self.base_url or None} file={request.filename} "
            f"signer={request.signer.email} publicFileUrl={request.public_file_url}"
        )

        if not self.is_configured():
            return SendResult(mocked=True, result={
                'mocked': True,
                'message': 'Foxit eSign is not configured (FOXIT_ESIGN_BASE_URL not set); '
                           'no email was sent. This is a demo stub.',
            })

        try:
            auth = self.resolver.resolve(Provider.ESIGN)
        except OnboardingError as e:
            logger.warning(f"[esign] auth not available, mocking send: {e}")
            return SendResult(mocked=True, result={
                'mocked': True,
                'message': 'Foxit eSign auth is not configured; no email was sent. This is a demo stub.',
                'error': str(e),
            })

        headers = auth.headers(Accept='application/json')
        log = AttemptLog()

        for strategy in self.build_strategies(headers):
            if not strategy.applies_to(request):
                continue
            try:
                result = strategy.attempt(request, log)
            except requests.exceptions.RequestException as e:
                log.record_error(e, step=strategy.name)
                continue
            if result is not None:
                return SendResult(mocked=False, result=result, strategy=strategy.name, attempts=log)

        logger.error(f"eSign send failed. Attempts: {json.dumps(log.to_list(), indent=2)}")
        raise SendFailedError(f"eSign send failed; attempts: {log.summary()}", attempts=log)

    def health_check(self) -> Dict[str, Any]:
        """
        Try to acquire a token and reach an account endpoint.

        Token sources, in order: direct token, configured token URL,
        token URLs derived from the base URL.
        """
        creds = self.settings.credentials
        base = self.base_url
        attempts: List[Dict[str, Any]] = []
        token = None
        token_preview = None

        try:
            if creds.access_token:
                token = creds.access_token
            elif creds.token_url:
                token = self.resolver.fetch_token(Provider.ESIGN)
            elif base and creds.has_client_pair:
                token = self._probe_token_candidates(attempts)
            if token:
                token_preview = preview_token(token)
        except OnboardingError as e:
            attempts.append({'step': 'token', 'error': str(e)})

        ping_ok = False
        if base and token:
            headers = {'Authorization': f"Bearer {token}", 'Accept': 'application/json'}
            for url in esign_ping_urls(base):
                try:
                    response = self.http.get(url, headers=headers, timeout=HEALTH_TIMEOUT)
                    attempts.append({'url': url, 'status': response.status_code})
                    if response.ok:
                        ping_ok = True
                        break
                except requests.exceptions.RequestException as e:
                    attempts.append({'url': url, 'error': str(e)})

        env = {
            'baseUrl': base or None,
            'directAccessToken': bool(creds.access_token),
            'tokenUrlConfigured': bool(creds.token_url),
            'clientIdPresent': bool(creds.client_id),
            'clientSecretPresent': bool(creds.client_secret),
            'clientIdMasked': mask_secret(creds.client_id),
            'scope': creds.scope or None,
        }
        return {
            'ok': bool(token and (ping_ok or attempts)),
            'baseUrl': base,
            'tokenAcquired': bool(token),
            'tokenPreview': token_preview,
            'attempts': attempts,
            'env': env,
        }

    def _probe_token_candidates(self, attempts: List[Dict[str, Any]]) -> Optional[str]:
        creds = self.settings.credentials
        form = {
            'grant_type': 'client_credentials',
            'client_id': creds.client_id,
            'client_secret': creds.client_secret,
        }
        if creds.scope:
            form['scope'] = creds.scope

        for url in esign_token_candidates(self.base_url):
            try:
                response = self.http.post(
                    url,
                    data=form,
                    headers={'Content-Type': 'application/x-www-form-urlencoded'},
                    timeout=HEALTH_TIMEOUT
                )
            except requests.exceptions.RequestException as e:
                attempts.append({'step': 'token-candidate', 'url': url, 'error': str(e)})
                continue

            attempts.append({'step': 'token-candidate', 'url': url, 'status': response.status_code})
            if not response.ok:
                continue
            try:
                payload = response.json()
            except ValueError:
                continue
            if isinstance(payload, dict) and payload.get('access_token'):
                return payload['access_token']
        return None


def preview_token(token: str) -> Any:
    """
    Safe preview of a token.

    JWTs expose a handful of claims; anything else shows its first 12 characters.
    """
    parts = token.split('.')
    if len(parts) == 3:
        try:
            padded = parts[1] + '=' * (-len(parts[1]) % 4)
            claims = json.loads(base64.urlsafe_b64decode(padded).decode('utf-8'))
            return {key: claims.get(key) for key in ('iss', 'sub', 'aud', 'exp', 'scope')}
        except (ValueError, UnicodeDecodeError, AttributeError):
            pass
    return f"{token[:12]}…"
