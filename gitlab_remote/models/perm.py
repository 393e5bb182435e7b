from pydantic import BaseModel


class Perm(BaseModel):
    """Capabilities of a user on a repository. Nothing is granted by default."""

    pull: bool = False
    push: bool = False
    admin: bool = False
