"""Certificate builder for X.509 certificate construction."""

from datetime import UTC, datetime

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .cert_utils import generate_serial_number
from .config import CertificateSpec


class CertificateBuilder:
    """Builds X.509 certificates from a CertificateSpec."""

    @staticmethod
    def _builder(
        spec: CertificateSpec,
        issuer_name: x509.Name,
        public_key: RSAPublicKey,
    ) -> x509.CertificateBuilder:
        """Return a builder carrying everything except issuer-specific extensions.

        The start of the validity window is truncated to whole seconds so that
        the encoded window is exactly ``spec.validity`` long.
        """
        not_before = datetime.now(UTC).replace(microsecond=0)
        not_after = not_before + spec.validity

        builder = (
            x509.CertificateBuilder()
            .subject_name(spec.subject.to_x509_name())
            .issuer_name(issuer_name)
            .public_key(public_key)
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=spec.is_ca, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
        )

        if spec.key_usages:
            builder = builder.add_extension(spec.key_usages.to_x509(), critical=True)

        if spec.ext_key_usages:
            builder = builder.add_extension(
                x509.ExtendedKeyUsage([usage.value for usage in spec.ext_key_usages]),
                critical=False,
            )

        names: list[x509.GeneralName] = [x509.DNSName(name) for name in spec.dns_names]
        names += [x509.IPAddress(address) for address in spec.ip_addresses]
        if names:
            builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

        return builder

    @staticmethod
    def build_self_signed(
        spec: CertificateSpec,
        private_key: RSAPrivateKey,
    ) -> x509.Certificate:
        """Build self-signed certificate.

        Args:
            spec: Certificate specification (subject, validity, usages, SANs)
            private_key: RSA private key whose public half is certified and
                which signs the certificate

        Returns:
            X.509 certificate with issuer equal to subject
        """
        builder = CertificateBuilder._builder(
            spec,
            issuer_name=spec.subject.to_x509_name(),
            public_key=private_key.public_key(),
        )
        return builder.sign(private_key, hashes.SHA256())

    @staticmethod
    def build_signed(
        spec: CertificateSpec,
        public_key: RSAPublicKey,
        issuer_cert: x509.Certificate,
        issuer_key: RSAPrivateKey,
    ) -> x509.Certificate:
        """Build certificate signed by an issuing authority.

        Args:
            spec: Certificate specification (subject, validity, usages, SANs)
            public_key: Public key to certify
            issuer_cert: Authority certificate (issuer)
            issuer_key: Authority private key for signing

        Returns:
            X.509 certificate whose issuer is the authority's subject
        """
        builder = CertificateBuilder._builder(
            spec,
            issuer_name=issuer_cert.subject,
            public_key=public_key,
        ).add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
            critical=False,
        )
        return builder.sign(issuer_key, hashes.SHA256())
