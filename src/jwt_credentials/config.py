"""Configuration via pydantic-settings. Loaded at runtime, never at import time."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class CredentialSettings(BaseSettings):
    """Tunables for assertion issuance and token verification.

    Every field can be overridden with a ``JWT_CREDENTIALS_``-prefixed
    environment variable or a ``.env`` file.
    """

    # Allowed drift between our clock and the issuer's, applied to iat and exp
    clock_skew_seconds: int = 300

    # Longest accepted exp - iat window (24h)
    max_token_lifetime_seconds: int = 86400

    # Lifetime of self-issued assertions
    assertion_lifetime_seconds: int = 3600

    # Audience of self-issued assertions (the token-exchange endpoint)
    token_exchange_audience: str = "https://accounts.google.com/o/oauth2/token"
    assertion_type: str = "http://oauth.net/grant_type/jwt/1.0/bearer"

    # Conventional passphrase of downloaded service-account p12 bundles
    key_passphrase: str = "notasecret"

    model_config = {"env_prefix": "JWT_CREDENTIALS_", "env_file": ".env", "extra": "ignore"}
