import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from gitlab_remote.api import deps
from gitlab_remote.core.http_utils import UpstreamRequestError
from gitlab_remote.services.gitlab.errors import (
    MembershipCheckFailed,
    NotAuthorized,
    TokenExchangeError,
)
from gitlab_remote.services.gitlab.remote import GitLabRemote

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/authorize", name="authorize", summary="Login with GitLab")
async def authorize(
    request: Request,
    code: Optional[str] = None,
    remote: GitLabRemote = Depends(deps.get_remote),
) -> Any:
    """
    Start or finish the GitLab OAuth login.

    Without a code the browser is sent to GitLab. GitLab sends it back here
    with the code, which is exchanged for the user.
    """
    redirect_uri = str(request.url_for("authorize"))

    try:
        result = await remote.login(redirect_uri, code)
    except NotAuthorized as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except (TokenExchangeError, MembershipCheckFailed) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    except UpstreamRequestError as e:
        logger.error(f"GitLab login failed: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    if result.redirect_url:
        return RedirectResponse(result.redirect_url, status_code=status.HTTP_303_SEE_OTHER)

    return {"user": result.user.model_dump(), "open": result.open}
