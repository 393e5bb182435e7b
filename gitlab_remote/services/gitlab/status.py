from gitlab_remote.core.constants import (
    BUILD_TO_GITLAB_STATUS,
    GITLAB_STATUS_DEFAULT,
    GITLAB_STATUS_DESCRIPTIONS,
)


def get_status(status: str) -> str:
    """Convert a build status of the CI host to a GitLab commit state."""
    return BUILD_TO_GITLAB_STATUS.get(status, GITLAB_STATUS_DEFAULT)


def get_desc(status: str) -> str:
    """Human readable description for a build status."""
    return GITLAB_STATUS_DESCRIPTIONS[get_status(status)]
