"""
Self-signed wildcard certificate for the purchased domain.

Produces a password-protected PKCS#12 (.pfx) file that App Service accepts as
an uploaded certificate: RSA-2048 key, subject CN ``*.<domain>``, SANs for the
wildcard and the apex domain, one year validity.
"""

import datetime
from pathlib import Path

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from provisioning._helpers import wildcard
from provisioning.errors import CertificateError
from provisioning.models import Certificate

logger = structlog.get_logger(__name__)

DEFAULT_PFX_PATH = "webapp_managewebappwithdomainssl.pfx"
VALIDITY = datetime.timedelta(days=365)


def generate_self_signed_certificate(
    domain_name: str,
    output_path: str | Path,
    password: str,
) -> Certificate:
    """
    Write a self-signed wildcard certificate for domain_name to output_path.

    Args:
        domain_name: Apex domain (e.g. "example.com").
        output_path: Destination of the .pfx file; parent must exist.
        password: PFX export password.

    Returns:
        Certificate record with the path, password and SHA-1 thumbprint
        (uppercase hex, as App Service reports it).

    Raises:
        CertificateError: If the file cannot be written.
    """
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, wildcard(domain_name))])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + VALIDITY)
        .add_extension(
            x509.SubjectAlternativeName(
                [x509.DNSName(wildcard(domain_name)), x509.DNSName(domain_name)]
            ),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )

    pfx = pkcs12.serialize_key_and_certificates(
        name=domain_name.encode(),
        key=key,
        cert=cert,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(password.encode()),
    )
    path = Path(output_path)
    try:
        path.write_bytes(pfx)
    except OSError as exc:
        raise CertificateError(f"cannot write certificate to {path}: {exc}") from exc

    thumbprint = cert.fingerprint(hashes.SHA1()).hex().upper()
    logger.info("certificate_written", path=str(path), domain=domain_name, thumbprint=thumbprint)
    return Certificate(
        path=str(path),
        password=password,
        domain_name=domain_name,
        thumbprint=thumbprint,
    )
