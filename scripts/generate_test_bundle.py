#!/usr/bin/env python3
"""Generate an RSA key bundle and trusted certificate set for jwt-credentials.

Outputs (into the directory given as the first argument, default ``testdata``):
  1. cert.p12     PKCS#12 bundle, passphrase "notasecret"
  2. cacert.pem   the matching self-signed certificate
  3. cacert.json  {"keyid": <pem>} candidate certificate set
  4. Verification round-trip test
"""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

PASSPHRASE = "notasecret"


def main() -> None:
    out_dir = Path(sys.argv[1] if len(sys.argv) > 1 else "testdata")
    out_dir.mkdir(parents=True, exist_ok=True)

    # Generate key and self-signed certificate
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "jwt-credentials test signer")])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=3650))
        .sign(private_key, hashes.SHA256())
    )

    bundle = pkcs12.serialize_key_and_certificates(
        b"privatekey",
        private_key,
        certificate,
        None,
        serialization.BestAvailableEncryption(PASSPHRASE.encode()),
    )
    pem = certificate.public_bytes(serialization.Encoding.PEM).decode()

    (out_dir / "cert.p12").write_bytes(bundle)
    (out_dir / "cacert.pem").write_text(pem)
    (out_dir / "cacert.json").write_text(json.dumps({"keyid": pem}, indent=2))

    print("=" * 60)
    print(f"Wrote cert.p12, cacert.pem, cacert.json to {out_dir}/")
    print(f"p12 passphrase: {PASSPHRASE}")
    print("=" * 60)
    print(pem)

    # Verification round-trip
    from jwt_credentials.assertion import AssertionCredentials
    from jwt_credentials.verification import TokenVerifier

    credentials = AssertionCredentials.from_bundle("issuer", "scope", bundle, PASSPHRASE)
    ticket = TokenVerifier().verify_signed_jwt(
        credentials.generate_assertion(),
        out_dir / "cacert.json",
        credentials.audience,
        "issuer",
    )
    assert ticket.payload["iss"] == "issuer"
    print("Round-trip verification: PASSED")


if __name__ == "__main__":
    main()
