"""Compact ``header.payload.signature`` token encoding and decoding."""

from __future__ import annotations

import json
from typing import Any, NamedTuple

from jwt.utils import base64url_decode, base64url_encode

from jwt_credentials.errors import (
    InvalidSignatureError,
    UnparseableEnvelopeError,
    UnparseablePayloadError,
    WrongSegmentCountError,
)
from jwt_credentials.signing import Signer


class CompactToken(NamedTuple):
    """A structurally valid token: the raw segments and what they decode to."""

    header_segment: str
    payload_segment: str
    signature_segment: str
    header: dict[str, Any]
    payload: dict[str, Any]
    signature: bytes

    @property
    def signing_input(self) -> bytes:
        return f"{self.header_segment}.{self.payload_segment}".encode("ascii")

    def __str__(self) -> str:
        return f"{self.header_segment}.{self.payload_segment}.{self.signature_segment}"


def _encode_segment(data: bytes) -> str:
    return base64url_encode(data).decode("ascii")


def _encode_json(obj: dict[str, Any]) -> str:
    return _encode_segment(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _decode_json(segment: str) -> dict[str, Any] | None:
    """Decode a base64url JSON object segment; None if it is not one."""
    if not segment.isascii():
        return None
    try:
        value = json.loads(base64url_decode(segment))
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def encode(header: dict[str, Any], payload: dict[str, Any], signer: Signer) -> str:
    """Serialize, sign and join *header* and *payload* into a compact token."""
    segments = [_encode_json(header), _encode_json(payload)]
    signing_input = ".".join(segments).encode("ascii")
    segments.append(_encode_segment(signer.sign(signing_input)))
    return ".".join(segments)


def decode(token: str) -> CompactToken:
    """Split and decode *token* without checking its signature or claims.

    Raises:
        WrongSegmentCountError: the token is not exactly three segments.
        UnparseableEnvelopeError: the header is not a base64url JSON object.
        UnparseablePayloadError: the payload is not a base64url JSON object.
        InvalidSignatureError: the signature segment is not base64url.
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise WrongSegmentCountError(f"Wrong number of segments in token: {token}")
    header_segment, payload_segment, signature_segment = segments

    header = _decode_json(header_segment)
    if header is None:
        raise UnparseableEnvelopeError(f"Can't parse token envelope: {header_segment}")

    payload = _decode_json(payload_segment)
    if payload is None:
        raise UnparseablePayloadError(f"Can't parse token payload: {payload_segment}")

    if not signature_segment.isascii():
        raise InvalidSignatureError(f"Invalid token signature: {token}")
    try:
        signature = base64url_decode(signature_segment)
    except ValueError as e:
        raise InvalidSignatureError(f"Invalid token signature: {token}") from e

    return CompactToken(
        header_segment=header_segment,
        payload_segment=payload_segment,
        signature_segment=signature_segment,
        header=header,
        payload=payload,
        signature=signature,
    )
