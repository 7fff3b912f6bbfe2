"""
Domain models for OAuth token endpoint responses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class TokenGrant(BaseModel):
    """Token endpoint payload; every field may be absent on a failed refresh."""

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


__all__ = ["TokenGrant"]
