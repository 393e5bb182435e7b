import hashlib
from typing import Optional, Tuple
from urllib.parse import quote

from gitlab_remote.core.constants import ABSOLUTE_URL_PREFIXES, GRAVATAR_SIZE, GRAVATAR_URL
from gitlab_remote.services.gitlab.errors import InvalidProjectPath


def extract_from_path(path: str) -> Tuple[str, str]:
    """
    Split a path with namespace into owner and name.

    Nested groups stay in the owner ("group/sub/project" -> "group/sub",
    "project") so that owner + "/" + name always gives the path back.
    """
    owner, sep, name = path.rpartition("/")
    if not sep or not owner or not name:
        raise InvalidProjectPath(path)
    return owner, name


def ns(owner: str, name: str) -> str:
    """URL-encoded project path, usable wherever the API expects a project id."""
    return quote(f"{owner}/{name}", safe="")


def get_user_avatar(email: str) -> str:
    digest = hashlib.md5(email.encode("utf-8")).hexdigest()
    return f"{GRAVATAR_URL}/{digest}.jpg?s={GRAVATAR_SIZE}"


def resolve_avatar_url(base_url: str, avatar: Optional[str]) -> Optional[str]:
    """
    Make an avatar URL absolute.

    GitLab reports uploaded avatars relative to the instance. Absolute
    URLs pass through untouched; empty values stay unset.
    """
    if not avatar:
        return None
    if avatar.startswith(ABSOLUTE_URL_PREFIXES):
        return avatar
    return f"{base_url.rstrip('/')}/{avatar.lstrip('/')}"
