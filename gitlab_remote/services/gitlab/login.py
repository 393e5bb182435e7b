"""
Login through GitLab OAuth.

Two steps, driven by the presence of the authorization code:
1. No code: send the browser to GitLab's authorize endpoint.
2. Code: exchange it, fetch the user, check group membership and build
   the canonical user.
"""

import logging
import secrets
from typing import Callable, List, Optional

from pydantic import BaseModel

from gitlab_remote.core.config import GitLabConfig
from gitlab_remote.core.http_utils import UpstreamRequestError
from gitlab_remote.core.metrics import auth_oauth_logins_total
from gitlab_remote.models.gitlab_api import GitLabGroup
from gitlab_remote.models.user import User
from gitlab_remote.services.gitlab.client import GitLabClient
from gitlab_remote.services.gitlab.errors import (
    MembershipCheckFailed,
    NotAuthorized,
    TokenExchangeError,
)
from gitlab_remote.services.gitlab.helpers import resolve_avatar_url
from gitlab_remote.services.oauth import OAuthClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GitLabClient]


class LoginResult(BaseModel):
    """
    Outcome of a login request.

    Either redirect_url is set (the user still has to authorize) or user
    is set. Neither case is an error.
    """

    user: Optional[User] = None
    open: bool = False
    redirect_url: Optional[str] = None


def is_member(groups: List[GitLabGroup], allowed_orgs: List[str]) -> bool:
    allowed = set(allowed_orgs)
    return any(group.path in allowed for group in groups)


class LoginOrchestrator:
    def __init__(
        self,
        config: GitLabConfig,
        oauth_client: Optional[OAuthClient] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.config = config
        self.oauth_client = oauth_client or OAuthClient(
            config.url,
            config.client_id,
            config.client_secret,
            skip_verify=config.skip_verify,
            timeout=config.timeout,
        )
        self.client_factory = client_factory or self._default_client

    def _default_client(self, token: str) -> GitLabClient:
        return GitLabClient(
            self.config.url,
            token,
            skip_verify=self.config.skip_verify,
            timeout=self.config.timeout,
        )

    async def login(self, redirect_uri: str, code: Optional[str] = None) -> LoginResult:
        """
        Handle a login request.

        Args:
            redirect_uri: Callback URL registered for the OAuth application
            code: Authorization code from the callback, if any

        Raises:
            TokenExchangeError: The code could not be exchanged
            IdentityFetchError: The authenticated user could not be fetched
            MembershipCheckFailed: The user's groups could not be listed
            NotAuthorized: The user is in none of the allowed groups
        """
        if not code:
            state = secrets.token_urlsafe(32)
            return LoginResult(redirect_url=self.oauth_client.authorize_url(redirect_uri, state))

        try:
            token = await self.oauth_client.exchange(code, redirect_uri)
        except TokenExchangeError:
            auth_oauth_logins_total.labels(status="exchange_failed").inc()
            raise

        client = self.client_factory(token.access_token)
        login = await client.current_user()

        if self.config.allowed_orgs:
            try:
                groups = await client.all_groups()
            except UpstreamRequestError as e:
                auth_oauth_logins_total.labels(status="membership_check_failed").inc()
                raise MembershipCheckFailed(f"Could not check org membership. {e.message}") from e

            if not is_member(groups, self.config.allowed_orgs):
                auth_oauth_logins_total.labels(status="not_authorized").inc()
                logger.info(f"Rejected login of {login.username}: not in {self.config.allowed_orgs}")
                raise NotAuthorized(self.config.allowed_orgs)

        user = User(
            login=login.username,
            email=login.email,
            avatar=resolve_avatar_url(self.config.url, login.avatar_url),
            token=token.access_token,
            refresh_token=token.refresh_token,
        )
        auth_oauth_logins_total.labels(status="success").inc()
        logger.info(f"User {user.login} logged in through GitLab")
        return LoginResult(user=user, open=self.config.open)
