from typing import Optional

from pydantic import BaseModel, Field, model_validator

from gitlab_remote.core.constants import DEFAULT_BRANCH


class Repo(BaseModel):
    """Canonical repository handed to the CI host."""

    owner: str
    name: str
    full_name: str = ""
    link: str = ""
    clone: str = ""
    branch: str = DEFAULT_BRANCH
    avatar: Optional[str] = None
    is_private: bool = False

    @model_validator(mode="after")
    def _derive_defaults(self) -> "Repo":
        if not self.full_name:
            self.full_name = f"{self.owner}/{self.name}"
        if not self.branch:
            self.branch = DEFAULT_BRANCH
        return self


class RepoLite(BaseModel):
    """Repository entry of a listing."""

    owner: str
    name: str
    full_name: str
    avatar: Optional[str] = Field(None, description="Absolute avatar URL")
