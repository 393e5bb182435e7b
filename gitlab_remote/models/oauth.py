from typing import Optional

from pydantic import BaseModel, ConfigDict


class OAuthToken(BaseModel):
    """Token response of POST /oauth/token."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None
