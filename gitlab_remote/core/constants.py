"""
Shared Constants

Centralized constants used across the GitLab remote to ensure consistency.
"""

from typing import Dict, Tuple

# Branch assumed when GitLab does not report a default branch
DEFAULT_BRANCH = "master"

# OAuth scope requested from GitLab
DEFAULT_SCOPE = "api"

GITLAB_API_PREFIX = "/api/v4"

# Clone credential modes
CLONE_MODE_OAUTH = "oauth"
CLONE_MODE_TOKEN = "token"

NETRC_OAUTH_LOGIN = "oauth2"
NETRC_TOKEN_LOGIN = "drone-ci-token"

# Metric label for webhooks of kinds this remote does not handle
HOOK_KIND_OTHER = "other"

# Git reference prefixes
REF_HEADS_PREFIX = "refs/heads/"
REF_TAGS_PREFIX = "refs/tags/"
REF_MERGE_REQUEST_TEMPLATE = "refs/merge-requests/{iid}/head"

# Gravatar URL used for commit authors
GRAVATAR_URL = "//gravatar.com/avatar"
GRAVATAR_SIZE = "128"

# Legacy numeric visibility levels reported in webhooks
VISIBILITY_PRIVATE = 0
VISIBILITY_INTERNAL = 10
VISIBILITY_PUBLIC = 20

# Visibility level -> is_private. Levels not listed keep the current value.
VISIBILITY_LEVEL_PRIVATE: Dict[int, bool] = {
    VISIBILITY_PRIVATE: True,
    VISIBILITY_INTERNAL: True,
    VISIBILITY_PUBLIC: False,
}

# GitLab access levels
# 10: Guest, 20: Reporter, 30: Developer, 40: Maintainer, 50: Owner
ACCESS_LEVEL_GUEST = 10
ACCESS_LEVEL_REPORTER = 20
ACCESS_LEVEL_DEVELOPER = 30
ACCESS_LEVEL_MAINTAINER = 40
ACCESS_LEVEL_OWNER = 50

# Build states reported by the CI host
BUILD_STATUS_PENDING = "pending"
BUILD_STATUS_RUNNING = "running"
BUILD_STATUS_SUCCESS = "success"
BUILD_STATUS_FAILURE = "failure"
BUILD_STATUS_ERROR = "error"
BUILD_STATUS_KILLED = "killed"

# Commit states understood by GitLab
GITLAB_STATUS_PENDING = "pending"
GITLAB_STATUS_RUNNING = "running"
GITLAB_STATUS_SUCCESS = "success"
GITLAB_STATUS_FAILED = "failed"
GITLAB_STATUS_CANCELED = "canceled"

GITLAB_STATUS_DEFAULT = GITLAB_STATUS_FAILED

GITLAB_STATUS_DESCRIPTIONS: Dict[str, str] = {
    GITLAB_STATUS_PENDING: "this build is pending",
    GITLAB_STATUS_RUNNING: "this build is running",
    GITLAB_STATUS_SUCCESS: "the build was successful",
    GITLAB_STATUS_FAILED: "the build failed",
    GITLAB_STATUS_CANCELED: "the build canceled",
}

BUILD_TO_GITLAB_STATUS: Dict[str, str] = {
    BUILD_STATUS_PENDING: GITLAB_STATUS_PENDING,
    BUILD_STATUS_RUNNING: GITLAB_STATUS_RUNNING,
    BUILD_STATUS_SUCCESS: GITLAB_STATUS_SUCCESS,
    BUILD_STATUS_FAILURE: GITLAB_STATUS_FAILED,
    BUILD_STATUS_ERROR: GITLAB_STATUS_FAILED,
    BUILD_STATUS_KILLED: GITLAB_STATUS_CANCELED,
}

# Context name shown next to commit statuses in GitLab
GITLAB_STATUS_CONTEXT = "ci"

# Service integration used to deliver push/merge request events
GITLAB_CI_SERVICE = "drone-ci"

# Pagination
GITLAB_PER_PAGE = 100
GITLAB_MAX_PAGES = 50

# URL schemes treated as absolute when resolving avatars
ABSOLUTE_URL_PREFIXES: Tuple[str, ...] = ("http",)
