"""Signed JWT verification against a set of candidate certificates."""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from jwt_credentials import codec
from jwt_credentials.config import CredentialSettings
from jwt_credentials.errors import (
    CertificateError,
    CredentialsError,
    ExpirationTooFarInFutureError,
    InvalidIssuerError,
    InvalidSignatureError,
    NoExpirationTimeError,
    NoIssueTimeError,
    TicketError,
    TokenUsedTooEarlyError,
    TokenUsedTooLateError,
    WrongRecipientError,
)
from jwt_credentials.signing import PemVerifier, Verifier

logger = logging.getLogger(__name__)


class Ticket(BaseModel):
    """The trusted result of a successful verification."""

    model_config = ConfigDict(frozen=True)

    subject: str | None = None
    attributes: dict[str, dict[str, Any]]

    @property
    def user_id(self) -> str:
        if self.subject is None:
            raise TicketError("No user_id in token")
        return self.subject

    @property
    def envelope(self) -> dict[str, Any]:
        return self.attributes["envelope"]

    @property
    def payload(self) -> dict[str, Any]:
        return self.attributes["payload"]


def load_certificates(path: str | Path) -> dict[str, str]:
    """Read a ``{"key id": "PEM", ...}`` JSON document of trusted certificates."""
    try:
        data = json.loads(Path(path).read_text())
    except ValueError as e:
        raise CertificateError(f"Unable to parse certificate file {path}: {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise CertificateError(
            f"Certificate file {path} must map key ids to PEM strings."
        )
    return data


def _timestamp(value: Any) -> float | None:
    """The claim as a finite number of seconds, or None if it is not one."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json accepts Infinity and NaN
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _reject(error: CredentialsError) -> CredentialsError:
    logger.warning("Token rejected (%s): %s", type(error).__name__, error)
    return error


class TokenVerifier:
    """Verifies compact RS256 tokens and validates their claims.

    Checks run in a fixed order and the first failure is raised: structure,
    signature, ``iat``/``exp`` presence, time window, issuer, audience.
    ``now`` is read once per call from *clock* unless passed explicitly.
    Candidate certificates are turned into ``Verifier`` objects by
    *verifier_factory*, so other key formats only need a new factory.
    """

    def __init__(
        self,
        settings: CredentialSettings | None = None,
        clock: Callable[[], float] = time.time,
        verifier_factory: Callable[[str], Verifier] = PemVerifier,
    ) -> None:
        self._settings = settings or CredentialSettings()
        self._clock = clock
        self._verifier_factory = verifier_factory

    def _select_certificate(self, token: codec.CompactToken, certs: Mapping[str, str]) -> str:
        """Return the key id of the first candidate whose key verifies *token*."""
        for kid, pem in sorted(certs.items()):
            try:
                verifier = self._verifier_factory(pem)
            except CertificateError as e:
                logger.warning("Skipping unparseable certificate %s: %s", kid, e)
                continue
            if verifier.verify(token.signing_input, token.signature):
                logger.debug("Token signature verified with certificate %s.", kid)
                return kid
        raise _reject(InvalidSignatureError(f"Invalid token signature: {token}"))

    def verify_signed_jwt_with_certs(
        self,
        token: str,
        certs: Mapping[str, str],
        audience: str,
        issuers: str | Iterable[str] | None = None,
        *,
        now: float | None = None,
        subject_key: str = "sub",
    ) -> Ticket:
        """Verify *token* against *certs* and return its ``Ticket``.

        Args:
            token: compact ``header.payload.signature`` string.
            certs: candidate certificates, key id -> PEM. Tried in key id order.
            audience: the value ``aud`` must equal.
            issuers: optional allow-list for ``iss``.
            now: override for the current time, in seconds since the epoch.
            subject_key: claim holding the subject; falls back to ``sub``.

        Raises:
            TokenStructureError: on a malformed token.
            TokenValidationError: on a bad signature or failing claim.
        """
        try:
            decoded = codec.decode(token)
        except CredentialsError as e:
            _reject(e)
            raise

        self._select_certificate(decoded, certs)
        payload = decoded.payload

        issued_at = _timestamp(payload.get("iat"))
        if issued_at is None:
            raise _reject(NoIssueTimeError(f"No issue time in token: {decoded.payload_segment}"))
        expires_at = _timestamp(payload.get("exp"))
        if expires_at is None:
            raise _reject(
                NoExpirationTimeError(f"No expiration time in token: {decoded.payload_segment}")
            )

        if now is None:
            now = self._clock()
        skew = self._settings.clock_skew_seconds
        max_lifetime = self._settings.max_token_lifetime_seconds

        earliest = now + skew
        if issued_at > earliest:
            raise _reject(
                TokenUsedTooEarlyError(f"Token used too early, {issued_at} > {earliest}")
            )
        latest = now - skew
        if expires_at < latest:
            raise _reject(TokenUsedTooLateError(f"Token used too late, {expires_at} < {latest}"))
        if expires_at - issued_at > max_lifetime:
            raise _reject(
                ExpirationTooFarInFutureError(
                    f"Expiration time too far in future: lifetime "
                    f"{expires_at - issued_at}s exceeds {max_lifetime}s"
                )
            )

        if issuers is not None:
            allowed = [issuers] if isinstance(issuers, str) else list(issuers)
            iss = payload.get("iss")
            if iss not in allowed:
                raise _reject(InvalidIssuerError(f"Invalid issuer, {iss} not in {allowed}"))

        aud = payload.get("aud")
        if aud != audience:
            raise _reject(WrongRecipientError(f"Wrong recipient, {aud} != {audience}"))

        subject = payload.get(subject_key) or payload.get("sub")
        return Ticket(
            subject=None if subject is None else str(subject),
            attributes={"envelope": decoded.header, "payload": payload},
        )

    def verify_signed_jwt(
        self,
        token: str,
        cert_path: str | Path,
        audience: str,
        issuers: str | Iterable[str] | None = None,
        *,
        now: float | None = None,
        subject_key: str = "sub",
    ) -> Ticket:
        """Like ``verify_signed_jwt_with_certs`` with certificates read from a JSON file."""
        return self.verify_signed_jwt_with_certs(
            token,
            load_certificates(cert_path),
            audience,
            issuers,
            now=now,
            subject_key=subject_key,
        )


def verify_signed_jwt_with_certs(
    token: str,
    certs: Mapping[str, str],
    audience: str,
    issuers: str | Iterable[str] | None = None,
    *,
    now: float | None = None,
) -> Ticket:
    """Verify *token* with default settings. See ``TokenVerifier``."""
    return TokenVerifier().verify_signed_jwt_with_certs(token, certs, audience, issuers, now=now)
