from typing import List, Optional
from urllib.parse import parse_qs, urlsplit, urlunsplit

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from gitlab_remote.core.constants import CLONE_MODE_OAUTH, CLONE_MODE_TOKEN


class Settings(BaseSettings):
    PROJECT_NAME: str = "GitLab Remote"
    API_V1_STR: str = "/api/v1"

    # Connection URL in the "remote config" format, e.g.
    # https://gitlab.com?client_id=..&client_secret=..&orgs=acme
    # Takes precedence over the individual GITLAB_* settings below.
    REMOTE_CONFIG: str = ""

    GITLAB_URL: str = "https://gitlab.com"
    GITLAB_CLIENT_ID: str = ""
    GITLAB_CLIENT_SECRET: str = ""
    GITLAB_ALLOWED_ORGS: List[str] = []
    GITLAB_CLONE_MODE: str = CLONE_MODE_TOKEN
    GITLAB_SKIP_VERIFY: bool = False
    GITLAB_HIDE_ARCHIVES: bool = False
    GITLAB_OPEN: bool = False
    GITLAB_PRIVATE_MODE: bool = False
    GITLAB_SEARCH: bool = False
    GITLAB_API_TIMEOUT: float = 10.0

    # Hook token signing
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()


def _parse_bool(values: List[str]) -> bool:
    if not values:
        return False
    return values[0].strip().lower() in ("1", "t", "true", "yes")


class GitLabConfig(BaseModel):
    """
    Connection settings of a single GitLab remote.

    Built either from the individual settings or from a connection URL
    whose query string carries the OAuth client and feature flags.
    """

    url: str = Field(..., description="Base URL of the GitLab instance, without trailing slash")
    client_id: str = ""
    client_secret: str = ""
    allowed_orgs: List[str] = Field(default_factory=list, description="Group paths a user must belong to")
    clone_mode: str = CLONE_MODE_TOKEN
    open: bool = Field(False, description="Activate accounts on first login")
    private_mode: bool = False
    skip_verify: bool = False
    hide_archives: bool = False
    search: bool = Field(False, description="Resolve project ids through the search API")
    timeout: float = 10.0

    @classmethod
    def from_remote_config(cls, config: str, timeout: float = 10.0) -> "GitLabConfig":
        """
        Parse a connection URL like
        ``https://gitlab.com?client_id=x&client_secret=y&orgs=a&orgs=b&open=true``.

        Unknown clone modes fall back to ``token``. Boolean flags that fail
        to parse are treated as false.
        """
        parts = urlsplit(config)
        params = parse_qs(parts.query)
        base_url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

        clone_mode = params.get("clone_mode", [""])[0]
        if clone_mode != CLONE_MODE_OAUTH:
            clone_mode = CLONE_MODE_TOKEN

        return cls(
            url=base_url.rstrip("/"),
            client_id=params.get("client_id", [""])[0],
            client_secret=params.get("client_secret", [""])[0],
            allowed_orgs=params.get("orgs", []),
            clone_mode=clone_mode,
            open=_parse_bool(params.get("open", [])),
            skip_verify=_parse_bool(params.get("skip_verify", [])),
            hide_archives=_parse_bool(params.get("hide_archives", [])),
            search=_parse_bool(params.get("search", [])),
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "GitLabConfig":
        source = source or settings
        if source.REMOTE_CONFIG:
            config = cls.from_remote_config(source.REMOTE_CONFIG, timeout=source.GITLAB_API_TIMEOUT)
            config.private_mode = source.GITLAB_PRIVATE_MODE
            return config

        clone_mode = source.GITLAB_CLONE_MODE
        if clone_mode != CLONE_MODE_OAUTH:
            clone_mode = CLONE_MODE_TOKEN

        return cls(
            url=source.GITLAB_URL.rstrip("/"),
            client_id=source.GITLAB_CLIENT_ID,
            client_secret=source.GITLAB_CLIENT_SECRET,
            allowed_orgs=list(source.GITLAB_ALLOWED_ORGS),
            clone_mode=clone_mode,
            open=source.GITLAB_OPEN,
            private_mode=source.GITLAB_PRIVATE_MODE,
            skip_verify=source.GITLAB_SKIP_VERIFY,
            hide_archives=source.GITLAB_HIDE_ARCHIVES,
            search=source.GITLAB_SEARCH,
            timeout=source.GITLAB_API_TIMEOUT,
        )
