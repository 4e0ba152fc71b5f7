"""Tests for RS256 signing and PEM verification."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from jwt_credentials.errors import CertificateError
from jwt_credentials.keys import KeyMaterial
from jwt_credentials.signing import PemVerifier, RsaSigner


def test_sign_and_verify_binary_data(signer: RsaSigner, verifier: PemVerifier):
    data = b"\x00\x01\x02\x66\x6f\x6f"
    assert verifier.verify(data, signer.sign(data))


def test_sign_and_verify_empty_input(signer: RsaSigner, verifier: PemVerifier):
    assert verifier.verify(b"", signer.sign(b""))


def test_sign_and_verify_text(signer: RsaSigner, verifier: PemVerifier):
    assert verifier.verify(b"foobar", signer.sign(b"foobar"))


def test_signature_over_other_data_rejected(signer: RsaSigner, verifier: PemVerifier):
    signature = signer.sign(b"foobar")
    assert verifier.verify(b"", signature) is False
    # Same length, different content
    assert verifier.verify(b"foobaz", signature) is False


def test_malformed_signature_returns_false(signer: RsaSigner, verifier: PemVerifier):
    signature = signer.sign(b"foobar")
    assert verifier.verify(b"foobar", signature[:-1]) is False
    assert verifier.verify(b"foobar", signature + b"\x00") is False
    assert verifier.verify(b"foobar", b"") is False


def test_signatures_are_deterministic(signer: RsaSigner):
    assert signer.sign(b"payload") == signer.sign(b"payload")


def test_wrong_certificate_rejects(signer: RsaSigner, other_cert_pem: str):
    assert PemVerifier(other_cert_pem).verify(b"foobar", signer.sign(b"foobar")) is False


def test_verifier_accepts_public_key_pem(signer: RsaSigner):
    verifier = PemVerifier(signer.public_key_pem)
    assert verifier.verify(b"foobar", signer.sign(b"foobar"))


def test_verifier_accepts_bytes(cert_pem: str, signer: RsaSigner):
    verifier = PemVerifier(cert_pem.encode())
    assert verifier.verify(b"x", signer.sign(b"x"))


def test_from_key_material(key_material: KeyMaterial, verifier: PemVerifier):
    signer = RsaSigner.from_key_material(key_material)
    assert verifier.verify(b"abc", signer.sign(b"abc"))


def test_public_key_pem_format(signer: RsaSigner):
    pem = signer.public_key_pem
    assert pem.startswith("-----BEGIN PUBLIC KEY-----")
    assert pem.strip().endswith("-----END PUBLIC KEY-----")


def test_unparseable_certificate():
    with pytest.raises(CertificateError):
        PemVerifier("-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n")


def test_non_rsa_key_rejected():
    pem = Ed25519PrivateKey.generate().public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    with pytest.raises(CertificateError, match="RSA required"):
        PemVerifier(pem)
