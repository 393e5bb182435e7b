"""
OAuth2 authorization code flow against a GitLab instance.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from gitlab_remote.core.constants import DEFAULT_SCOPE
from gitlab_remote.models.oauth import OAuthToken
from gitlab_remote.services.gitlab.errors import TokenExchangeError

logger = logging.getLogger(__name__)


class OAuthClient:
    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        scope: str = DEFAULT_SCOPE,
        skip_verify: bool = False,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.skip_verify = skip_verify
        self.timeout = timeout
        self._transport = transport

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.base_url}/oauth/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.base_url}/oauth/token"

    def authorize_url(self, redirect_uri: str, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "scope": self.scope,
            "redirect_uri": redirect_uri,
            "state": state,
        }
        return f"{self.authorize_endpoint}?{urlencode(params)}"

    async def exchange(self, code: str, redirect_uri: str) -> OAuthToken:
        """
        Exchange an OAuth authorization code for access and refresh tokens.

        Args:
            code: The authorization code from the GitLab callback
            redirect_uri: The redirect URI used in the authorize request

        Returns:
            The token pair issued by GitLab

        Raises:
            TokenExchangeError: If the token exchange fails
        """
        kwargs: Dict[str, Any] = {"timeout": self.timeout, "verify": not self.skip_verify}
        if self._transport is not None:
            kwargs["transport"] = self._transport

        try:
            async with httpx.AsyncClient(**kwargs) as client:
                response = await client.post(
                    self.token_endpoint,
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": redirect_uri,
                    },
                    headers={"Accept": "application/json"},
                )

        except httpx.TimeoutException as e:
            logger.error(f"GitLab OAuth timeout: {e}")
            raise TokenExchangeError(
                "Error exchanging token. Request to GitLab timed out",
                error_code="timeout",
            ) from e

        except httpx.ConnectError as e:
            logger.error(f"GitLab OAuth connection error: {e}")
            raise TokenExchangeError(
                "Error exchanging token. Could not connect to GitLab",
                error_code="connection_error",
            ) from e

        except httpx.RequestError as e:
            logger.error(f"GitLab OAuth request error: {e}")
            raise TokenExchangeError(
                f"Error exchanging token. {e}",
                error_code="request_error",
            ) from e

        if response.status_code != 200:
            logger.error(f"GitLab OAuth HTTP error: status={response.status_code}")
            raise TokenExchangeError(
                f"Error exchanging token. HTTP {response.status_code} from GitLab",
                error_code="http_error",
            )

        try:
            return OAuthToken.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"GitLab OAuth returned an unexpected token response: {e}")
            raise TokenExchangeError(
                "Error exchanging token. Unexpected response from GitLab",
                error_code="invalid_response",
            ) from e
