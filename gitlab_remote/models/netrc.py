from pydantic import BaseModel, Field


class Netrc(BaseModel):
    """Credentials written to .netrc so builds can clone private repositories."""

    machine: str
    login: str
    password: str = Field(..., exclude=True)
