import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from gitlab_remote.api import deps
from gitlab_remote.services.gitlab.errors import RemoteError
from gitlab_remote.services.gitlab.remote import GitLabRemote

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/hook", summary="Receive a GitLab webhook")
async def receive_hook(
    request: Request,
    remote: GitLabRemote = Depends(deps.get_remote),
) -> Any:
    """
    Normalize a GitLab webhook into a repository and a build.

    - **owner**, **name**: query parameters naming the repository, required
      for payloads of old GitLab versions that carry no project path
    """
    raw = await request.body()
    try:
        result = remote.hook(raw, dict(request.query_params))
    except RemoteError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if result is None:
        return {"status": "ignored"}
    return result.model_dump(mode="json")
