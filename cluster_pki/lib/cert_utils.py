"""Certificate utility functions for key generation, serialization, and addressing."""

import ipaddress
import uuid

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .errors import ConfigurationError


def generate_private_key(key_size: int = 2048) -> RSAPrivateKey:
    """Generate RSA private key with specified size."""
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=key_size,
    )


def serialize_private_key(key: RSAPrivateKey) -> bytes:
    """Serialize private key to PEM format (PKCS8, no encryption)."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def deserialize_private_key(pem_data: bytes) -> RSAPrivateKey:
    """Deserialize private key from PEM bytes."""
    key = serialization.load_pem_private_key(pem_data, password=None)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("expected RSA private key")
    return key


def serialize_certificate(cert: x509.Certificate) -> bytes:
    """Serialize certificate to PEM format."""
    return cert.public_bytes(serialization.Encoding.PEM)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes."""
    return x509.load_pem_x509_certificate(pem_data)


def generate_serial_number() -> int:
    """Generate certificate serial number from UUID4.

    UUID v4 gives 128-bit random serials (~122 bits of entropy), so two
    certificates never collide even when issued by unrelated authorities
    within the same run.

    Returns:
        Integer serial number for x509.CertificateBuilder.serial_number()
    """
    return uuid.uuid4().int


def get_certificate_serial_hex(cert: x509.Certificate) -> str:
    """Return certificate serial number as hex with colons (e.g., 3A:F2:B1:...)."""
    serial_hex = f"{cert.serial_number:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return ":".join(serial_hex[i : i + 2] for i in range(0, len(serial_hex), 2))


def public_keys_match(private_key: RSAPrivateKey, cert: x509.Certificate) -> bool:
    """Return True if ``cert`` carries the public half of ``private_key``."""
    return private_key.public_key().public_numbers() == cert.public_key().public_numbers()  # type: ignore[union-attr]


def verify_signed_by(cert: x509.Certificate, issuer_cert: x509.Certificate) -> bool:
    """Verify that ``issuer_cert`` directly issued ``cert``.

    Checks that the issuer name matches and that the signature verifies
    with the issuer's public key.

    Returns:
        True if ``cert`` was issued by ``issuer_cert``, False otherwise
    """
    try:
        cert.verify_directly_issued_by(issuer_cert)
    except (ValueError, TypeError, InvalidSignature):
        return False
    return True


def host_at_offset(
    network: ipaddress.IPv4Network | ipaddress.IPv6Network | str, offset: int
) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    """Return the address ``offset`` positions into ``network``.

    ``host_at_offset("10.0.0.0/16", 1)`` is ``10.0.0.1``.

    Raises:
        ConfigurationError: If the CIDR is malformed or the offset falls
            outside the network
    """
    if isinstance(network, str):
        try:
            network = ipaddress.ip_network(network)
        except ValueError as e:
            raise ConfigurationError(f"invalid CIDR {network!r}: {e}") from e
    if offset < 0 or offset >= network.num_addresses:
        raise ConfigurationError(
            f"offset {offset} is outside {network} ({network.num_addresses} addresses)"
        )
    return network.network_address + offset
