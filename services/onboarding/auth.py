"""
Credential Resolver

Works out which authentication mode applies to a provider and builds the
header set for outbound calls. Tokens are never cached: every call chain
resolves auth again.

Precedence (both providers):
    1. Directly configured access token
    2. OAuth client-credentials exchange at the configured token URL
    3. HTTP Basic with the client id/secret pair
"""

import base64
import logging
from typing import Optional

import requests

from config import ProviderConfig, ProviderCredentials
from .exceptions import AuthConfigurationError, TokenExchangeError, UpstreamTransportError
from .types import AuthContext, AuthMode, Provider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class CredentialResolver:
    """
    Resolves provider credentials from an injected ProviderConfig.

    The ``http`` collaborator defaults to the requests module and only
    needs a ``post`` method.
    """

    def __init__(self, config: ProviderConfig, http=None, timeout: int = DEFAULT_TIMEOUT):
        self.config = config
        self.http = http or requests
        self.timeout = timeout

    def credentials_for(self, provider: Provider) -> ProviderCredentials:
        if provider == Provider.ESIGN:
            return self.config.esign.credentials
        return self.config.docgen.credentials

    def auth_mode(self, provider: Provider = Provider.DOCGEN) -> AuthMode:
        """Report the mode a call would use, without making any request."""
        creds = self.credentials_for(provider)
        if creds.access_token or creds.token_url:
            return AuthMode.BEARER
        if creds.has_client_pair:
            return AuthMode.BASIC
        return AuthMode.NONE

    def fetch_token(self, provider: Provider) -> Optional[str]:
        """
        Get a bearer token for the provider.

        Returns:
            The direct token, an exchanged token, or None when no token URL
            is configured (bearer flow not available)

        Raises:
            AuthConfigurationError: Token URL set but id/secret missing
            TokenExchangeError: Token endpoint rejected the request
            UpstreamTransportError: Token endpoint unreachable
        """
        creds = self.credentials_for(provider)
        if creds.access_token:
            return creds.access_token
        if not creds.token_url:
            return None
        if not creds.has_client_pair:
            raise AuthConfigurationError(
                f"Missing client id/secret for {provider.value} token request",
                provider=provider.value
            )
        return self.exchange_token(creds.token_url, creds)

    def exchange_token(self, token_url: str, creds: ProviderCredentials) -> str:
        """Run the client-credentials grant against ``token_url``."""
        form = {
            'grant_type': 'client_credentials',
            'client_id': creds.client_id,
            'client_secret': creds.client_secret,
        }
        if creds.scope:
            form['scope'] = creds.scope

        try:
            response = self.http.post(
                token_url,
                data=form,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamTransportError(f"Token request to {token_url} failed: {e}")

        if not response.ok:
            raise TokenExchangeError(
                f"Token request failed: {response.status_code}",
                status_code=response.status_code,
                response_body=(response.text or '')[:300]
            )

        try:
            payload = response.json()
        except ValueError:
            raise TokenExchangeError(
                f"Token response was not JSON: {(response.text or '')[:200]}",
                status_code=response.status_code
            )

        token = payload.get('access_token') if isinstance(payload, dict) else None
        if not token:
            raise TokenExchangeError('No access_token in token response', status_code=response.status_code)
        return token

    def resolve(self, provider: Provider) -> AuthContext:
        """
        Build the AuthContext for one call chain.

        Document generation always carries the raw client id/secret headers
        when present; some of its endpoints want them alongside the
        Authorization header.

        Raises:
            AuthConfigurationError: Neither a token nor a client pair resolves
        """
        creds = self.credentials_for(provider)
        include_client_headers = provider == Provider.DOCGEN

        token = self.fetch_token(provider)
        if token:
            context = AuthContext(mode=AuthMode.BEARER, authorization=f"Bearer {token}")
        elif creds.has_client_pair:
            raw = f"{creds.client_id}:{creds.client_secret}".encode('utf-8')
            context = AuthContext(
                mode=AuthMode.BASIC,
                authorization=f"Basic {base64.b64encode(raw).decode('ascii')}"
            )
        else:
            raise AuthConfigurationError(
                f"Missing {provider.value} authentication: set an access token or token URL, "
                f"or provide a client id and client secret",
                provider=provider.value
            )

        if include_client_headers:
            context = AuthContext(
                mode=context.mode,
                authorization=context.authorization,
                client_id=creds.client_id or None,
                client_secret=creds.client_secret or None
            )

        logger.debug(f"Resolved {context.mode.value} auth for {provider.value}")
        return context
