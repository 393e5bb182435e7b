from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Account assembled at login. The tokens are owned by the host from then on."""

    login: str
    email: str = ""
    avatar: Optional[str] = None
    token: str = Field("", description="OAuth access token")
    refresh_token: str = Field("", description="OAuth refresh token")
