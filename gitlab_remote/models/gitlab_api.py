"""
Pydantic models for GitLab API responses.

These models represent data returned by the GitLab REST API.
All use extra="ignore" to silently discard fields we don't use.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from gitlab_remote.core.constants import VISIBILITY_PUBLIC


class GitLabOwner(BaseModel):
    """Owner sub-object of a project in a personal namespace."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    username: str = ""


class GitLabNamespace(BaseModel):
    """Namespace sub-object within a GitLab project response."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    kind: str = ""
    path: str = ""
    full_path: str = ""


class GitLabAccess(BaseModel):
    """Access granted to the current user, directly or through a group."""

    model_config = ConfigDict(extra="ignore")

    access_level: int = 0
    notification_level: Optional[int] = None


class GitLabPermissions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    project_access: Optional[GitLabAccess] = None
    group_access: Optional[GitLabAccess] = None


class GitLabProject(BaseModel):
    """Project from GET /projects/:id and GET /projects."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    path: str = ""
    path_with_namespace: str = ""
    description: Optional[str] = None
    public: bool = False
    visibility: Optional[str] = None
    visibility_level: Optional[int] = None
    web_url: str = ""
    http_url_to_repo: str = ""
    ssh_url_to_repo: str = ""
    default_branch: Optional[str] = None
    avatar_url: Optional[str] = None
    archived: bool = False
    owner: Optional[GitLabOwner] = None
    namespace: Optional[GitLabNamespace] = None
    permissions: Optional[GitLabPermissions] = None

    @property
    def is_public(self) -> bool:
        """Older GitLab versions report a boolean, newer ones a visibility string."""
        if self.visibility is not None:
            return self.visibility == "public"
        if self.visibility_level is not None:
            return self.visibility_level == VISIBILITY_PUBLIC
        return self.public


class GitLabUser(BaseModel):
    """Authenticated user from GET /user."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    username: str
    name: str = ""
    email: str = ""
    avatar_url: Optional[str] = None


class GitLabGroup(BaseModel):
    """Group from GET /groups."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    path: str = ""
    full_path: str = ""
