from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BuildEvent(str, Enum):
    PUSH = "push"
    TAG = "tag"
    PULL_REQUEST = "pull_request"


class Build(BaseModel):
    """What triggered a build, as derived from a webhook."""

    event: BuildEvent
    commit: str = ""
    ref: str = ""
    branch: str = ""
    message: str = ""
    title: str = ""
    author: str = ""
    email: str = ""
    avatar: Optional[str] = None
    link: str = ""
