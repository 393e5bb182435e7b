import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from fastapi.responses import RedirectResponse

from gitlab_remote.api.v1.endpoints.login import authorize
from gitlab_remote.core.http_utils import UpstreamRequestError
from gitlab_remote.services.gitlab.errors import (
    IdentityFetchError,
    MembershipCheckFailed,
    NotAuthorized,
    TokenExchangeError,
)
from gitlab_remote.services.gitlab.login import LoginResult
from tests.mocks.gitlab import make_user

CALLBACK = "https://ci.test.com/api/v1/authorize"


def _request():
    request = MagicMock()
    request.url_for.return_value = CALLBACK
    return request


def _remote(result=None, error=None):
    remote = MagicMock()
    remote.login = AsyncMock(return_value=result, side_effect=error)
    return remote


class TestAuthorize:
    def test_redirect_without_code(self):
        remote = _remote(LoginResult(redirect_url="https://gitlab.test.com/oauth/authorize?x=1"))

        response = asyncio.run(authorize(_request(), code=None, remote=remote))

        assert isinstance(response, RedirectResponse)
        assert response.status_code == 303
        assert response.headers["location"] == "https://gitlab.test.com/oauth/authorize?x=1"
        remote.login.assert_awaited_once_with(CALLBACK, None)

    def test_user_on_success(self):
        remote = _remote(LoginResult(user=make_user(), open=True))

        result = asyncio.run(authorize(_request(), code="code-1", remote=remote))

        assert result["open"] is True
        assert result["user"]["login"] == "jdoe"
        assert result["user"]["token"] == "oauth-token"
        remote.login.assert_awaited_once_with(CALLBACK, "code-1")

    def test_not_authorized(self):
        remote = _remote(error=NotAuthorized(["acme"]))

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(authorize(_request(), code="code-1", remote=remote))
        assert exc_info.value.status_code == 401

    @pytest.mark.parametrize(
        "error",
        [
            TokenExchangeError("Error exchanging token. HTTP 401 from GitLab", error_code="http_error"),
            MembershipCheckFailed("Could not check org membership. Timeout"),
            IdentityFetchError("HTTP 500 during fetch current user on GitLab API", status_code=500),
            UpstreamRequestError("Timeout during fetch current user on GitLab API"),
        ],
    )
    def test_upstream_failures(self, error):
        remote = _remote(error=error)

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(authorize(_request(), code="code-1", remote=remote))
        assert exc_info.value.status_code == 502
        assert exc_info.value.detail == error.message
