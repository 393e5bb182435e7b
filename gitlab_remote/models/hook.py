"""
Pydantic models for inbound GitLab webhook payloads.

GitLab changed its payload layout several times (notably 8.5 replaced the
"repository" key with "project"), so every sub-structure is optional and
unknown fields are ignored. Normalization decides which ones are required.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from gitlab_remote.core.constants import REF_HEADS_PREFIX, REF_TAGS_PREFIX


class HookModel(BaseModel):
    """Base for webhook fragments: extra keys are dropped, explicit nulls read as the default."""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value, info: ValidationInfo):
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class ObjectKind(str, Enum):
    MERGE_REQUEST = "merge_request"
    PUSH = "push"
    TAG_PUSH = "tag_push"


def branch_from_ref(ref: str) -> str:
    """Strip a single refs/heads/ or refs/tags/ prefix from a reference."""
    for prefix in (REF_HEADS_PREFIX, REF_TAGS_PREFIX):
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


class HookAuthor(HookModel):
    name: str = ""
    email: str = ""


class HookCommit(HookModel):
    id: str = ""
    message: str = ""
    timestamp: Optional[str] = None
    url: str = ""
    author: Optional[HookAuthor] = None


class HookProjectDescriptor(HookModel):
    """The "source" and "target" blocks of a merge request."""

    name: str = ""
    namespace: str = ""
    path_with_namespace: str = ""
    web_url: str = ""
    git_http_url: str = ""
    http_url: str = ""
    ssh_url: str = ""
    default_branch: str = ""
    avatar_url: Optional[str] = None
    visibility_level: Optional[int] = None


class HookObjectAttributes(HookModel):
    id: Optional[int] = None
    iid: int = 0
    title: str = ""
    description: Optional[str] = None
    state: str = ""
    action: Optional[str] = None
    url: str = ""
    source_branch: str = ""
    target_branch: str = ""
    source_project_id: Optional[int] = None
    target_project_id: Optional[int] = None
    source: Optional[HookProjectDescriptor] = None
    target: Optional[HookProjectDescriptor] = None
    last_commit: Optional[HookCommit] = None


class HookProject(HookModel):
    """The "project" block sent by GitLab 8.5 and later."""

    id: Optional[int] = None
    name: str = ""
    namespace: str = ""
    path_with_namespace: str = ""
    web_url: str = ""
    git_http_url: str = ""
    git_ssh_url: str = ""
    default_branch: str = ""
    avatar_url: Optional[str] = None
    visibility_level: Optional[int] = None


class HookRepository(HookModel):
    """The "repository" block sent by GitLab before 8.5."""

    name: str = ""
    url: str = ""
    homepage: str = ""
    git_http_url: str = ""
    git_ssh_url: str = ""
    visibility_level: Optional[int] = None


class HookPayload(HookModel):
    object_kind: str = ""
    before: str = ""
    after: str = ""
    ref: str = ""
    user_name: str = ""
    user_email: str = ""
    project_id: Optional[int] = None
    project: Optional[HookProject] = None
    repository: Optional[HookRepository] = None
    commits: List[HookCommit] = Field(default_factory=list)
    object_attributes: Optional[HookObjectAttributes] = None

    @property
    def kind(self) -> Optional[ObjectKind]:
        """The event kind, or None for kinds this remote does not handle."""
        try:
            return ObjectKind(self.object_kind)
        except ValueError:
            return None

    def branch(self) -> str:
        return branch_from_ref(self.ref)

    def head(self) -> HookCommit:
        """The pushed head commit, or an empty commit if it is not listed."""
        for commit in self.commits:
            if commit.id == self.after:
                return commit
        return HookCommit()
