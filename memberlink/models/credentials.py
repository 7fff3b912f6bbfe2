"""
Domain model for a stored identity and its OAuth token pair.
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

UNKNOWN_DISPLAY_NAME = "UnknownUser"
UNKNOWN_ORIGIN = "Unknown"


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return str(value)


class CredentialRecord(BaseModel):
    """One linked identity as persisted in the directory file.

    Field aliases keep the on-disk keys (``username``, ``ip``, ``verifiedAt``,
    ``avatar``) so existing directory files and uploaded replacements load
    unchanged. Unknown keys are carried through a load/save round trip, and
    scalar values of the wrong type are coerced to text rather than rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, description="Discord user id, also the store key.")
    display_name: str = Field(UNKNOWN_DISPLAY_NAME, alias="username")
    access_token: Optional[str] = None
    refresh_token: Optional[str] = Field(
        None,
        description="Missing refresh token means the record cannot be renewed.",
    )
    origin_address: str = Field(UNKNOWN_ORIGIN, alias="ip")
    verified_at: Optional[Union[datetime, str]] = Field(
        None,
        alias="verifiedAt",
        union_mode="left_to_right",
        description="Kept as the raw text when it is not an ISO-8601 timestamp.",
    )
    avatar_ref: Optional[str] = Field(None, alias="avatar")

    _unparsed: bool = PrivateAttr(False)
    _raw: Any = PrivateAttr(None)

    @classmethod
    def unparsed(cls, identity_id: str, payload: Any) -> "CredentialRecord":
        """Stand-in for an entry that is not a record; saved back verbatim."""
        record = cls.model_construct(id=identity_id)
        record._unparsed = True
        record._raw = payload
        return record

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("display_name", mode="before")
    @classmethod
    def _default_display_name(cls, value: Any) -> str:
        text = _as_text(value)
        if text and text.strip():
            return text
        return UNKNOWN_DISPLAY_NAME

    @field_validator("origin_address", mode="before")
    @classmethod
    def _default_origin(cls, value: Any) -> str:
        if value is None or value == "":
            return UNKNOWN_ORIGIN
        return str(value)

    @field_validator("access_token", "refresh_token", "avatar_ref", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)

    @field_validator("verified_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        if value is None or isinstance(value, (datetime, str)):
            return value
        return str(value)

    @property
    def is_durable(self) -> bool:
        return bool(self.refresh_token)

    def to_json(self) -> Any:
        """Serialize with the on-disk key names."""
        if self._unparsed:
            return self._raw
        return self.model_dump(by_alias=True, mode="json")


__all__ = ["CredentialRecord", "UNKNOWN_DISPLAY_NAME", "UNKNOWN_ORIGIN"]
