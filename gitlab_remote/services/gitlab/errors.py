"""
Errors raised by the GitLab remote.

Webhook and login failures derive from RemoteError. Failed calls to the
GitLab API raise UpstreamRequestError (see gitlab_remote.core.http_utils).
"""

from typing import Optional, Sequence

from gitlab_remote.core.http_utils import UpstreamRequestError


class RemoteError(Exception):
    """Base exception for the GitLab remote."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ParseError(RemoteError):
    """The webhook body is not a valid GitLab payload."""


class MissingField(RemoteError):
    """A sub-structure required for this event kind is absent."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} key expected in webhook payload")


class MissingSource(RemoteError):
    """A push carries neither a project nor a repository block."""

    def __init__(self):
        super().__init__("No project/repository keys given")


class InvalidProjectPath(RemoteError):
    """A path with namespace does not contain an owner and a name."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Minimum match not found in project path '{path}'")


class TokenExchangeError(RemoteError):
    """Exchanging the OAuth authorization code failed."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


class MembershipCheckFailed(RemoteError):
    """The groups of the user could not be listed."""


class NotAuthorized(RemoteError):
    """The user belongs to none of the allowed groups."""

    def __init__(self, required: Sequence[str]):
        self.required = list(required)
        super().__init__(f"User does not belong to correct group. Must belong to {self.required}")


class IdentityFetchError(UpstreamRequestError):
    """The authenticated user could not be fetched."""
