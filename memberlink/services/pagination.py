"""
Stateless pagination tokens for the userlist view.

A token says "page N of the listing, requested by actor A, issued at T" and
travels inside a button ``custom_id``. It is validated on redemption without
any server-side session: the tag proves it was issued here, ``issued_at``
bounds its lifetime and ``actor_id`` binds it to the original requester.

Wire format::

    userlist_<prev|next>:<page>:<actor_id>:<issued_at_ms>:<tag>
"""

from __future__ import annotations

import hashlib
import hmac
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")

TOKEN_NAMESPACE = "userlist"
TOKEN_TTL = timedelta(minutes=2)
DEFAULT_PAGE_SIZE = 20

_DELIMITER = ":"
_TAG_LENGTH = 16
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


class PaginationAction(str, Enum):
    PREVIOUS = "prev"
    NEXT = "next"


class PaginationTokenError(Exception):
    """Base class for rejected pagination tokens."""


class MalformedTokenError(PaginationTokenError):
    """The token does not parse or its tag does not match."""


class TokenExpiredError(PaginationTokenError):
    """The token is older than its time-to-live."""


class TokenForbiddenError(PaginationTokenError):
    """The token is being redeemed by someone other than its actor."""


@dataclass(frozen=True)
class PaginationToken:
    """A decoded token. ``issued_at`` is held as UTC at millisecond precision."""

    action: PaginationAction
    target_page: int
    actor_id: str
    issued_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "issued_at", _from_millis(_to_millis(self.issued_at)))


def _to_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // _MILLISECOND


def _from_millis(value: int) -> datetime:
    return _EPOCH + value * _MILLISECOND


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaginationTokenCodec:
    """Issue, encode and validate userlist pagination tokens."""

    def __init__(self, *, secret: str, ttl: timedelta = TOKEN_TTL) -> None:
        if not secret:
            raise ValueError("Pagination signing secret must be provided.")
        self._secret = secret.encode("utf-8")
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(
        self,
        action: PaginationAction,
        target_page: int,
        actor_id: str,
        now: Optional[datetime] = None,
    ) -> PaginationToken:
        """Build a token stamped with ``now`` truncated to milliseconds."""
        return PaginationToken(
            action=action,
            target_page=target_page,
            actor_id=actor_id,
            issued_at=now or _utcnow(),
        )

    def encode(self, token: PaginationToken) -> str:
        if not token.actor_id or _DELIMITER in token.actor_id:
            raise ValueError(f"Actor id may not be empty or contain {_DELIMITER!r}.")
        body = _DELIMITER.join(
            (
                f"{TOKEN_NAMESPACE}_{token.action.value}",
                str(token.target_page),
                token.actor_id,
                str(_to_millis(token.issued_at)),
            )
        )
        return f"{body}{_DELIMITER}{self._sign(body)}"

    def decode(self, value: str) -> PaginationToken:
        body, sep, tag = value.rpartition(_DELIMITER)
        if not sep or not hmac.compare_digest(tag, self._sign(body)):
            raise MalformedTokenError("Pagination token signature mismatch.")

        parts = body.split(_DELIMITER)
        if len(parts) != 4:
            raise MalformedTokenError("Pagination token has the wrong shape.")
        prefix, page_raw, actor_id, issued_raw = parts

        namespace, _, action_raw = prefix.partition("_")
        if namespace != TOKEN_NAMESPACE:
            raise MalformedTokenError("Not a userlist pagination token.")
        try:
            action = PaginationAction(action_raw)
            target_page = int(page_raw)
            issued_at = _from_millis(int(issued_raw))
        except (ValueError, OverflowError) as exc:
            raise MalformedTokenError("Pagination token fields are invalid.") from exc
        if not actor_id:
            raise MalformedTokenError("Pagination token has no actor.")

        return PaginationToken(
            action=action,
            target_page=target_page,
            actor_id=actor_id,
            issued_at=issued_at,
        )

    def validate(
        self, value: str, *, redeemer_id: str, now: Optional[datetime] = None
    ) -> PaginationToken:
        """
        Decode ``value`` and check it may be redeemed by ``redeemer_id``.

        Expiry is checked before ownership, so a stale token reports as
        expired to everyone.
        """
        token = self.decode(value)
        current = now or _utcnow()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        if current - token.issued_at > self._ttl:
            raise TokenExpiredError("This pagination has expired.")
        if redeemer_id != token.actor_id:
            raise TokenForbiddenError("These buttons are restricted to the command invoker.")
        return token

    def _sign(self, body: str) -> str:
        digest = hmac.new(self._secret, body.encode("utf-8"), hashlib.sha256).hexdigest()
        return digest[:_TAG_LENGTH]


def page_count(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, pages: int) -> int:
    return min(max(1, page), pages)


@dataclass(frozen=True)
class ListingPage:
    """One rendered page of the listing plus the tokens for its controls."""

    page: int
    page_count: int
    total: int
    records: Sequence
    previous_token: str
    next_token: str

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count


def build_listing(
    records: Sequence[T],
    *,
    page: int,
    actor_id: str,
    codec: PaginationTokenCodec,
    page_size: int = DEFAULT_PAGE_SIZE,
    now: Optional[datetime] = None,
) -> ListingPage:
    """Clamp ``page`` into range, slice it out and issue fresh tokens."""
    pages = page_count(len(records), page_size)
    current = clamp_page(page, pages)
    start = (current - 1) * page_size
    issued = now or _utcnow()
    previous_token = codec.issue(PaginationAction.PREVIOUS, current - 1, actor_id, issued)
    next_token = codec.issue(PaginationAction.NEXT, current + 1, actor_id, issued)
    return ListingPage(
        page=current,
        page_count=pages,
        total=len(records),
        records=records[start : start + page_size],
        previous_token=codec.encode(previous_token),
        next_token=codec.encode(next_token),
    )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ListingPage",
    "MalformedTokenError",
    "PaginationAction",
    "PaginationToken",
    "PaginationTokenCodec",
    "PaginationTokenError",
    "TOKEN_NAMESPACE",
    "TOKEN_TTL",
    "TokenExpiredError",
    "TokenForbiddenError",
    "build_listing",
    "clamp_page",
    "page_count",
]
