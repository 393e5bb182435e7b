from typing import Optional

from jose import JWTError, jwt

from gitlab_remote.core.config import settings

HOOK_TOKEN_TYPE = "hook"


def create_hook_token(full_name: str, secret: str, algorithm: Optional[str] = None) -> str:
    """
    Sign a hook token for a repository.

    The token is used as the clone password in "token" clone mode and is
    signed with the repository's own secret, so rotating that secret
    invalidates every token issued for it.
    """
    to_encode = {
        "type": HOOK_TOKEN_TYPE,
        "text": full_name,
    }
    return jwt.encode(to_encode, secret, algorithm=algorithm or settings.ALGORITHM)


def verify_hook_token(token: str, secret: str, algorithm: Optional[str] = None) -> Optional[str]:
    """Return the repository full name carried by a hook token, or None if invalid."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm or settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != HOOK_TOKEN_TYPE:
        return None
    return payload.get("text")
