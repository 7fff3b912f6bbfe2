"""Ed25519 verification of Discord interaction requests."""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey


class InteractionSignatureError(Exception):
    """Raised when an interaction request is not signed by Discord."""


class InteractionVerifier:
    """Check ``X-Signature-Ed25519`` over ``X-Signature-Timestamp`` + body."""

    def __init__(self, *, public_key: str) -> None:
        if not public_key:
            raise ValueError("Discord public key must be provided.")
        try:
            self._key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key))
        except ValueError as exc:
            raise ValueError("Discord public key is not a valid Ed25519 key.") from exc

    def verify(self, *, signature: str | None, timestamp: str | None, body: bytes) -> None:
        if not signature or not timestamp:
            raise InteractionSignatureError("Missing signature headers.")
        try:
            self._key.verify(bytes.fromhex(signature), timestamp.encode("utf-8") + body)
        except (InvalidSignature, ValueError) as exc:
            raise InteractionSignatureError("Invalid request signature.") from exc


__all__ = ["InteractionSignatureError", "InteractionVerifier"]
