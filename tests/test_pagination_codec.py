try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone

import pytest
from fakes import make_record

from memberlink.services.pagination import (
    TOKEN_TTL,
    MalformedTokenError,
    PaginationAction,
    PaginationToken,
    PaginationTokenCodec,
    TokenExpiredError,
    TokenForbiddenError,
    build_listing,
    clamp_page,
    page_count,
)

ISSUED = datetime(2024, 6, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture()
def codec() -> PaginationTokenCodec:
    return PaginationTokenCodec(secret="signing-secret")


def test_round_trip_preserves_fields_at_millisecond_precision(codec) -> None:
    token = codec.issue(PaginationAction.NEXT, 3, "42", now=ISSUED)
    encoded = codec.encode(token)

    assert encoded.startswith("userlist_next:3:42:")
    decoded = codec.decode(encoded)
    assert decoded == token
    assert decoded.issued_at == ISSUED.replace(microsecond=123000)


def test_directly_built_tokens_survive_a_round_trip(codec) -> None:
    naive = datetime(2024, 6, 1, 12, 0, 0, 987654)
    token = PaginationToken(
        action=PaginationAction.PREVIOUS, target_page=2, actor_id="42", issued_at=naive
    )

    assert token.issued_at == datetime(2024, 6, 1, 12, 0, 0, 987000, tzinfo=timezone.utc)
    assert codec.decode(codec.encode(token)) == token


def test_ttl_boundary_is_inclusive(codec) -> None:
    token = codec.issue(PaginationAction.PREVIOUS, 1, "42", now=ISSUED)
    encoded = codec.encode(token)

    at_limit = token.issued_at + TOKEN_TTL
    just_inside = at_limit - timedelta(milliseconds=1)
    assert codec.validate(encoded, redeemer_id="42", now=just_inside) == token
    assert codec.validate(encoded, redeemer_id="42", now=at_limit) == token

    with pytest.raises(TokenExpiredError):
        codec.validate(
            encoded, redeemer_id="42", now=at_limit + timedelta(milliseconds=1)
        )


def test_other_redeemer_is_forbidden_but_expiry_wins(codec) -> None:
    encoded = codec.encode(codec.issue(PaginationAction.NEXT, 2, "42", now=ISSUED))

    with pytest.raises(TokenForbiddenError):
        codec.validate(encoded, redeemer_id="99", now=ISSUED)
    with pytest.raises(TokenExpiredError):
        codec.validate(encoded, redeemer_id="99", now=ISSUED + timedelta(minutes=5))


@pytest.mark.parametrize(
    "value",
    [
        "",
        "userlist_next:2:42",
        "other_next:2:42:1717243200123:0000000000000000",
        "userlist_next:two:42:1717243200123:0000000000000000",
    ],
)
def test_malformed_values_are_rejected(codec, value: str) -> None:
    with pytest.raises(MalformedTokenError):
        codec.decode(value)


def test_tampered_or_foreign_tokens_are_rejected(codec) -> None:
    encoded = codec.encode(codec.issue(PaginationAction.NEXT, 2, "42", now=ISSUED))
    tampered = encoded.replace("userlist_next:2:", "userlist_next:9:", 1)

    with pytest.raises(MalformedTokenError):
        codec.decode(tampered)
    with pytest.raises(MalformedTokenError):
        PaginationTokenCodec(secret="another-secret").decode(encoded)


def test_actor_ids_with_delimiter_are_refused(codec) -> None:
    with pytest.raises(ValueError):
        codec.encode(codec.issue(PaginationAction.NEXT, 1, "a:b", now=ISSUED))


def test_page_math() -> None:
    assert page_count(0, 20) == 1
    assert page_count(20, 20) == 1
    assert page_count(21, 20) == 2
    assert clamp_page(5, 2) == 2
    assert clamp_page(0, 2) == 1


def test_build_listing_clamps_and_issues_fresh_tokens(codec) -> None:
    records = [make_record(str(index)) for index in range(45)]

    listing = build_listing(
        records, page=7, actor_id="42", codec=codec, page_size=20, now=ISSUED
    )

    assert listing.page == 3
    assert listing.page_count == 3
    assert listing.total == 45
    assert [record.id for record in listing.records] == [str(i) for i in range(40, 45)]
    assert listing.has_previous and not listing.has_next

    previous = codec.validate(listing.previous_token, redeemer_id="42", now=ISSUED)
    following = codec.validate(listing.next_token, redeemer_id="42", now=ISSUED)
    assert previous.target_page == 2
    assert following.target_page == 4
