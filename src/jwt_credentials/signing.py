"""RS256 signing and verification of raw bytes.

The verification protocol only depends on the ``Signer``/``Verifier``
protocols; ``RsaSigner`` and ``PemVerifier`` are the RSA-SHA256 backends.
"""

from __future__ import annotations

from typing import Protocol

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from jwt.algorithms import RSAAlgorithm

from jwt_credentials.errors import CertificateError
from jwt_credentials.keys import KeyMaterial

_RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)


class Signer(Protocol):
    def sign(self, data: bytes) -> bytes: ...


class Verifier(Protocol):
    def verify(self, data: bytes, signature: bytes) -> bool: ...


class RsaSigner:
    """Signs bytes with RSA PKCS#1 v1.5 over SHA-256."""

    def __init__(self, private_key: RSAPrivateKey) -> None:
        self._private_key = private_key

    @classmethod
    def from_key_material(cls, material: KeyMaterial) -> RsaSigner:
        return cls(material.private_key)

    @property
    def public_key_pem(self) -> str:
        """PEM-encoded public key matching the signing key."""
        return self._private_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode()

    def sign(self, data: bytes) -> bytes:
        """Return the RS256 signature of *data*. Signing is over raw bytes."""
        return _RS256.sign(data, self._private_key)


class PemVerifier:
    """Verifies RS256 signatures against the public key in a PEM document.

    Accepts an X.509 certificate (only its public key is used, no chain or
    validity checks) or a bare ``PUBLIC KEY`` block.
    """

    def __init__(self, pem: str | bytes) -> None:
        pem_bytes = pem.encode() if isinstance(pem, str) else pem
        try:
            if b"CERTIFICATE" in pem_bytes:
                public_key = x509.load_pem_x509_certificate(pem_bytes).public_key()
            else:
                public_key = serialization.load_pem_public_key(pem_bytes)
        except ValueError as e:
            raise CertificateError(f"Unable to parse PEM: {e}") from e

        if not isinstance(public_key, RSAPublicKey):
            raise CertificateError(
                f"Unsupported public key type {type(public_key).__name__}; RSA required."
            )
        self._public_key = public_key

    def verify(self, data: bytes, signature: bytes) -> bool:
        """True if *signature* is a valid RS256 signature of *data*. Never raises on mismatch."""
        return _RS256.verify(data, self._public_key, signature)
