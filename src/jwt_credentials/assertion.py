"""Self-issued bearer assertions for the token-exchange endpoint."""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable, Iterable
from typing import Any

from jwt_credentials import codec
from jwt_credentials.config import CredentialSettings
from jwt_credentials.keys import KeyMaterial, load_key_material
from jwt_credentials.signing import RsaSigner

ASSERTION_HEADER = {"typ": "JWT", "alg": "RS256"}


class AssertionCredentials:
    """Builds and signs the claims of a service account assertion."""

    def __init__(
        self,
        issuer: str,
        scopes: str | Iterable[str],
        key_material: KeyMaterial,
        *,
        audience: str | None = None,
        lifetime_seconds: int | None = None,
        subject: str | None = None,
        settings: CredentialSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        settings = settings or CredentialSettings()
        self.issuer = issuer
        self.scope = scopes if isinstance(scopes, str) else " ".join(scopes)
        self.audience = audience or settings.token_exchange_audience
        self.lifetime_seconds = (
            settings.assertion_lifetime_seconds if lifetime_seconds is None else lifetime_seconds
        )
        # Delegated user the access token should act on behalf of
        self.subject = subject
        self.assertion_type = settings.assertion_type
        self._signer = RsaSigner.from_key_material(key_material)
        self._clock = clock

    @classmethod
    def from_bundle(
        cls,
        issuer: str,
        scopes: str | Iterable[str],
        bundle: bytes,
        passphrase: str | None = None,
        **kwargs: Any,
    ) -> AssertionCredentials:
        """Load the signing key from a p12/PEM *bundle* and build credentials."""
        if passphrase is None:
            settings = kwargs.get("settings") or CredentialSettings()
            passphrase = settings.key_passphrase
        return cls(issuer, scopes, load_key_material(bundle, passphrase), **kwargs)

    def build_claims(self, now: int | None = None) -> dict[str, Any]:
        """Claims for a fresh assertion issued at *now* (defaults to the clock)."""
        if now is None:
            now = int(self._clock())
        claims: dict[str, Any] = {
            "iss": self.issuer,
            "scope": self.scope,
            "aud": self.audience,
            "iat": now,
            "exp": now + self.lifetime_seconds,
        }
        if self.subject:
            claims["sub"] = self.subject
        return claims

    def generate_assertion(self, now: int | None = None) -> str:
        """Return the signed compact assertion."""
        return codec.encode(dict(ASSERTION_HEADER), self.build_claims(now), self._signer)

    def get_cache_key(self) -> str:
        """Stable key for memoizing the exchanged access token.

        Derived from issuer and scope only; each part is length-prefixed so
        ``("ab", "c")`` and ``("a", "bc")`` cannot collide.
        """
        digest = hashlib.sha256()
        for part in (self.issuer, self.scope):
            encoded = part.encode("utf-8")
            digest.update(len(encoded).to_bytes(8, "big"))
            digest.update(encoded)
        return digest.hexdigest()
