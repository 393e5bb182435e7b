"""
Permission resolution for GitLab projects.

GitLab reports the current user's access twice: directly on the project
and through the owning group. Each capability looks at both.
"""

from typing import Optional

from gitlab_remote.core.constants import (
    ACCESS_LEVEL_DEVELOPER,
    ACCESS_LEVEL_MAINTAINER,
    ACCESS_LEVEL_REPORTER,
)
from gitlab_remote.models.gitlab_api import GitLabAccess, GitLabProject
from gitlab_remote.models.perm import Perm


def _has_level(access: Optional[GitLabAccess], level: int) -> bool:
    return access is not None and access.access_level >= level


def _has_access(project: GitLabProject, level: int) -> bool:
    permissions = project.permissions
    if permissions is None:
        return False
    return _has_level(permissions.project_access, level) or _has_level(permissions.group_access, level)


def is_read(project: GitLabProject) -> bool:
    """Public projects are readable by everyone, others need Reporter access."""
    if project.is_public:
        return True
    return _has_access(project, ACCESS_LEVEL_REPORTER)


def is_write(project: GitLabProject) -> bool:
    return _has_access(project, ACCESS_LEVEL_DEVELOPER)


def is_admin(project: GitLabProject) -> bool:
    return _has_access(project, ACCESS_LEVEL_MAINTAINER)


def resolve_permission(project: GitLabProject, login: str) -> Perm:
    """
    Compute what the user can do on the project.

    The owner of a personal project is granted full access regardless of
    the reported role data.
    """
    if project.owner is not None and project.owner.username == login:
        return Perm(pull=True, push=True, admin=True)

    return Perm(
        pull=is_read(project),
        push=is_write(project),
        admin=is_admin(project),
    )
