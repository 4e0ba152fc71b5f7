"""Private key loading from PKCS#12 bundles and PEM files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import pkcs12

from jwt_credentials.errors import CorruptBundleError, WrongPassphraseError

logger = logging.getLogger(__name__)

_PEM_PREFIX = b"-----BEGIN"
_DER_SEQUENCE = 0x30


@dataclass(frozen=True)
class KeyMaterial:
    """An RSA signing key and, when the bundle carried one, its certificate."""

    private_key: RSAPrivateKey
    certificate: x509.Certificate | None = None


def _der_envelope_length(blob: bytes) -> int | None:
    """Total byte length claimed by the outer DER SEQUENCE, or None if not DER."""
    if len(blob) < 2 or blob[0] != _DER_SEQUENCE:
        return None
    first = blob[1]
    if first < 0x80:
        return 2 + first
    # Long form: low bits give the number of length octets. Zero means BER
    # indefinite length, which DER forbids.
    count = first & 0x7F
    if count == 0 or count > 4 or len(blob) < 2 + count:
        return None
    return 2 + count + int.from_bytes(blob[2 : 2 + count], "big")


def _load_pkcs12(bundle: bytes, passphrase: str) -> KeyMaterial:
    expected = _der_envelope_length(bundle)
    if expected is None:
        raise CorruptBundleError("Unable to parse the p12 file: not a DER encoded bundle.")
    if expected != len(bundle):
        raise CorruptBundleError(
            f"Unable to parse the p12 file: envelope declares {expected} bytes, "
            f"got {len(bundle)}."
        )

    try:
        key, certificate, _ = pkcs12.load_key_and_certificates(bundle, passphrase.encode())
    except ValueError as e:
        # cryptography 36 through 44 raise "Could not deserialize PKCS12 data"
        # for a malformed structure and "Invalid password or PKCS12 data" when
        # the MAC check fails. Framing errors are already caught above.
        if "deserialize" in str(e):
            raise CorruptBundleError(f"Unable to parse the p12 file: {e}") from e
        raise WrongPassphraseError(
            f"Unable to load the p12 file, mac verify failure: {e}"
        ) from e

    if key is None:
        raise CorruptBundleError("Unable to parse the p12 file: bundle has no private key.")
    if not isinstance(key, RSAPrivateKey):
        raise CorruptBundleError(
            f"Unable to parse the p12 file: unsupported key type {type(key).__name__}."
        )
    return KeyMaterial(private_key=key, certificate=certificate)


def _load_pem(blob: bytes, passphrase: str) -> KeyMaterial:
    encrypted = b"ENCRYPTED" in blob
    password = passphrase.encode() if encrypted and passphrase else None
    try:
        key = serialization.load_pem_private_key(blob, password=password)
    except (TypeError, ValueError) as e:
        if encrypted:
            raise WrongPassphraseError(
                f"Unable to load the PEM key, mac verify failure: {e}"
            ) from e
        raise CorruptBundleError(f"Unable to parse the PEM key: {e}") from e

    if not isinstance(key, RSAPrivateKey):
        raise CorruptBundleError(
            f"Unable to parse the PEM key: unsupported key type {type(key).__name__}."
        )
    return KeyMaterial(private_key=key)


def load_key_material(bundle: bytes, passphrase: str) -> KeyMaterial:
    """Extract the RSA private key (and certificate, if any) from *bundle*.

    *bundle* is either a PKCS#12 blob or a PEM private key. Raises
    ``WrongPassphraseError`` when the passphrase does not open the bundle and
    ``CorruptBundleError`` when the bytes are not a usable bundle at all.
    """
    if bundle.lstrip().startswith(_PEM_PREFIX):
        material = _load_pem(bundle, passphrase)
        logger.info("Loaded RSA signing key from PEM (%d bits).", material.private_key.key_size)
        return material

    material = _load_pkcs12(bundle, passphrase)
    logger.info(
        "Loaded RSA signing key from p12 bundle (%d bits, certificate=%s).",
        material.private_key.key_size,
        material.certificate is not None,
    )
    return material


def load_key_material_file(path: str | Path, passphrase: str) -> KeyMaterial:
    """Read a key bundle from disk and load it with ``load_key_material``."""
    return load_key_material(Path(path).read_bytes(), passphrase)
