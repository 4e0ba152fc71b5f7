"""Shared key material: one RSA key, its self-signed certificate and p12 bundle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from jwt_credentials.keys import KeyMaterial
from jwt_credentials.signing import PemVerifier, RsaSigner

PASSPHRASE = "notasecret"


def _make_key() -> RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _make_certificate(key: RSAPrivateKey, common_name: str = "federated-signon") -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )


def _to_pem(certificate: x509.Certificate) -> str:
    return certificate.public_bytes(serialization.Encoding.PEM).decode()


@pytest.fixture(scope="session")
def private_key() -> RSAPrivateKey:
    return _make_key()


@pytest.fixture(scope="session")
def certificate(private_key: RSAPrivateKey) -> x509.Certificate:
    return _make_certificate(private_key)


@pytest.fixture(scope="session")
def cert_pem(certificate: x509.Certificate) -> str:
    return _to_pem(certificate)


@pytest.fixture(scope="session")
def other_cert_pem() -> str:
    """A certificate for an unrelated key."""
    key = _make_key()
    return _to_pem(_make_certificate(key, "someone-else"))


@pytest.fixture(scope="session")
def p12_bundle(private_key: RSAPrivateKey, certificate: x509.Certificate) -> bytes:
    return pkcs12.serialize_key_and_certificates(
        b"privatekey",
        private_key,
        certificate,
        None,
        serialization.BestAvailableEncryption(PASSPHRASE.encode()),
    )


@pytest.fixture(scope="session")
def key_material(private_key: RSAPrivateKey, certificate: x509.Certificate) -> KeyMaterial:
    return KeyMaterial(private_key=private_key, certificate=certificate)


@pytest.fixture(scope="session")
def signer(private_key: RSAPrivateKey) -> RsaSigner:
    return RsaSigner(private_key)


@pytest.fixture(scope="session")
def verifier(cert_pem: str) -> PemVerifier:
    return PemVerifier(cert_pem)
