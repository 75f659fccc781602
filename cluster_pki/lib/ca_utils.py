"""Certificate issuance and bundle aggregation."""

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cert_utils import (
    generate_private_key,
    get_certificate_serial_hex,
    public_keys_match,
    serialize_certificate,
    verify_signed_by,
)
from .certificate_builder import CertificateBuilder
from .config import DEFAULT_KEY_SIZE, CertificateSpec
from .errors import ConfigurationError, CryptographicError
from .logging_config import LOGGER
from .models import CertBundleArtifact, ChainPolicy, KeyCertPair, SigningAuthority

_CRYPTO_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


def _new_key(key_size: int, base_name: str) -> RSAPrivateKey:
    try:
        return generate_private_key(key_size)
    except _CRYPTO_ERRORS as e:
        raise CryptographicError(f"failed to generate private key for {base_name}: {e}") from e


def issue_self_signed(
    spec: CertificateSpec,
    base_name: str,
    key_size: int = DEFAULT_KEY_SIZE,
) -> SigningAuthority:
    """Generate a key pair and a self-signed authority certificate.

    Args:
        spec: Certificate specification, which must describe a CA
        base_name: Name the key and certificate files are persisted under
        key_size: RSA key size

    Returns:
        SigningAuthority holding the new key and certificate

    Raises:
        ConfigurationError: If the spec is not a CA spec
        CryptographicError: If key generation or signing fails
    """
    if not spec.is_ca:
        raise ConfigurationError(f"self-signed certificate {base_name} must be a CA")

    private_key = _new_key(key_size, base_name)
    try:
        cert = CertificateBuilder.build_self_signed(spec=spec, private_key=private_key)
    except _CRYPTO_ERRORS as e:
        raise CryptographicError(f"failed to self-sign {base_name}: {e}") from e

    LOGGER.info("Issued self-signed %s (serial %s)", base_name, get_certificate_serial_hex(cert))
    return SigningAuthority(base_name=base_name, private_key=private_key, certificate=cert)


def issue_signed(
    spec: CertificateSpec,
    issuer: SigningAuthority,
    base_name: str,
    chain_policy: ChainPolicy,
    key_size: int = DEFAULT_KEY_SIZE,
) -> KeyCertPair:
    """Generate a key pair and a certificate signed by ``issuer``.

    Args:
        spec: Certificate specification; SANs are copied verbatim
        issuer: Authority whose key signs the certificate
        base_name: Name the key and certificate files are persisted under
        chain_policy: Whether the persisted certificate file carries the
            issuer certificate after the leaf
        key_size: RSA key size

    Returns:
        KeyCertPair, or SigningAuthority when ``spec.is_ca`` is set

    Raises:
        ConfigurationError: If ``issuer`` is not an authority
        CryptographicError: If the issuer key does not match its certificate,
            key generation or signing fails, or the result does not verify
            against the issuer
    """
    if not isinstance(issuer, SigningAuthority):
        raise ConfigurationError(f"issuer of {base_name} is not a signing authority")
    if not public_keys_match(issuer.private_key, issuer.certificate):
        raise CryptographicError(
            f"private key of {issuer.base_name} does not match its certificate"
        )

    private_key = _new_key(key_size, base_name)
    try:
        cert = CertificateBuilder.build_signed(
            spec=spec,
            public_key=private_key.public_key(),
            issuer_cert=issuer.certificate,
            issuer_key=issuer.private_key,
        )
    except _CRYPTO_ERRORS as e:
        raise CryptographicError(f"failed to sign {base_name} with {issuer.base_name}: {e}") from e
    if not verify_signed_by(cert, issuer.certificate):
        raise CryptographicError(f"{base_name} does not verify against {issuer.base_name}")

    cert_pem = _chain_bytes(cert, issuer, chain_policy)
    LOGGER.info(
        "Issued %s signed by %s (serial %s)",
        base_name,
        issuer.base_name,
        get_certificate_serial_hex(cert),
    )
    pair_type = SigningAuthority if spec.is_ca else KeyCertPair
    return pair_type(
        base_name=base_name, private_key=private_key, certificate=cert, cert_pem=cert_pem
    )


def _chain_bytes(
    cert: x509.Certificate, issuer: SigningAuthority, chain_policy: ChainPolicy
) -> bytes:
    leaf_pem = serialize_certificate(cert)
    if chain_policy is ChainPolicy.APPEND_PARENT:
        return leaf_pem + serialize_certificate(issuer.certificate)
    return leaf_pem


def aggregate_bundle(bundle_name: str, *authorities: SigningAuthority) -> CertBundleArtifact:
    """Concatenate authority certificates into a trust bundle.

    Certificates appear in the order given. Nothing is deduplicated or
    validated.

    Raises:
        ConfigurationError: If no authority is given, or one has no
            certificate bytes
    """
    if not authorities:
        raise ConfigurationError(f"bundle {bundle_name} needs at least one authority")

    certificates = []
    for position, authority in enumerate(authorities):
        cert_pem = getattr(authority, "cert_pem", None)
        if not cert_pem:
            raise ConfigurationError(
                f"authority {position} of bundle {bundle_name} has no certificate"
            )
        certificates.append(cert_pem)

    LOGGER.info("Aggregated %s from %d authorities", bundle_name, len(certificates))
    return CertBundleArtifact(name=bundle_name, certificates=tuple(certificates))
