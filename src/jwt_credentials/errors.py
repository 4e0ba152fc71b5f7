"""Exception hierarchy for key loading, token parsing and token validation.

Every failure kind is its own class so callers can branch on the type; the
messages keep stable substrings (``"Wrong number of segments"``,
``"Invalid token signature"``...) for operators who grep logs.
"""

from __future__ import annotations


class CredentialsError(Exception):
    """Base class for all jwt-credentials errors."""


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


class KeyLoadError(CredentialsError):
    """Raised when a private key bundle cannot be opened."""


class WrongPassphraseError(KeyLoadError):
    """The bundle is well formed but its MAC does not verify under the passphrase."""


class CorruptBundleError(KeyLoadError):
    """The blob is not a well-formed key bundle."""


class CertificateError(CredentialsError):
    """Raised when a trusted PEM certificate or public key cannot be parsed."""


# ---------------------------------------------------------------------------
# Token structure
# ---------------------------------------------------------------------------


class TokenStructureError(CredentialsError):
    """Raised when a compact token is not structurally valid."""


class WrongSegmentCountError(TokenStructureError):
    """The token does not split into exactly three segments."""


class UnparseableEnvelopeError(TokenStructureError):
    """The header segment does not decode to a JSON object."""


class UnparseablePayloadError(TokenStructureError):
    """The payload segment does not decode to a JSON object."""


# ---------------------------------------------------------------------------
# Token validation
# ---------------------------------------------------------------------------


class TokenValidationError(CredentialsError):
    """Raised when a structurally valid token is rejected."""


class InvalidSignatureError(TokenValidationError):
    """No candidate certificate verifies the token signature."""


class NoIssueTimeError(TokenValidationError):
    """The ``iat`` claim is missing or not an integer."""


class NoExpirationTimeError(TokenValidationError):
    """The ``exp`` claim is missing or not an integer."""


class TokenUsedTooEarlyError(TokenValidationError):
    """``iat`` lies beyond the allowed clock skew in the future."""


class TokenUsedTooLateError(TokenValidationError):
    """``exp`` lies beyond the allowed clock skew in the past."""


class ExpirationTooFarInFutureError(TokenValidationError):
    """The token lifetime ``exp - iat`` exceeds the configured maximum."""


class InvalidIssuerError(TokenValidationError):
    """``iss`` is not in the caller's issuer allow-list."""


class WrongRecipientError(TokenValidationError):
    """``aud`` does not match the expected audience."""


class TicketError(CredentialsError):
    """Raised when a verified ticket lacks a requested attribute."""
