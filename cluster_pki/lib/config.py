"""PKI configuration dataclasses."""

import enum
import ipaddress
from dataclasses import dataclass
from datetime import timedelta

from cryptography import x509
from cryptography.x509 import oid

from .errors import ConfigurationError

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

VALIDITY_ONE_DAY = timedelta(days=1)
VALIDITY_ONE_YEAR = timedelta(days=365)
VALIDITY_TEN_YEARS = timedelta(days=365 * 10)

DEFAULT_KEY_SIZE = 2048


class KeyUsage(enum.Flag):
    """X.509 key usage bits a certificate may carry."""

    DIGITAL_SIGNATURE = enum.auto()
    CONTENT_COMMITMENT = enum.auto()
    KEY_ENCIPHERMENT = enum.auto()
    DATA_ENCIPHERMENT = enum.auto()
    KEY_AGREEMENT = enum.auto()
    CERT_SIGN = enum.auto()
    CRL_SIGN = enum.auto()

    def to_x509(self) -> x509.KeyUsage:
        """Convert to the cryptography KeyUsage extension value."""
        return x509.KeyUsage(
            digital_signature=KeyUsage.DIGITAL_SIGNATURE in self,
            content_commitment=KeyUsage.CONTENT_COMMITMENT in self,
            key_encipherment=KeyUsage.KEY_ENCIPHERMENT in self,
            data_encipherment=KeyUsage.DATA_ENCIPHERMENT in self,
            key_agreement=KeyUsage.KEY_AGREEMENT in self,
            key_cert_sign=KeyUsage.CERT_SIGN in self,
            crl_sign=KeyUsage.CRL_SIGN in self,
            encipher_only=False,
            decipher_only=False,
        )


class ExtKeyUsage(enum.Enum):
    """Extended key usage purposes."""

    SERVER_AUTH = oid.ExtendedKeyUsageOID.SERVER_AUTH
    CLIENT_AUTH = oid.ExtendedKeyUsageOID.CLIENT_AUTH


@dataclass
class PKIConfig:
    """Generation settings shared by every asset in a run."""

    key_size: int = DEFAULT_KEY_SIZE
    tls_dir: str = "tls"


@dataclass
class InstallConfig:
    """Installation settings the certificate declarations read.

    Only the service network and the externally reachable API address are
    consumed; the rest of the installer configuration is not modelled here.
    """

    service_cidr: IPNetwork | str
    api_address: str

    def __post_init__(self) -> None:
        if isinstance(self.service_cidr, str):
            try:
                self.service_cidr = ipaddress.ip_network(self.service_cidr)
            except ValueError as e:
                raise ConfigurationError(f"invalid service CIDR {self.service_cidr!r}: {e}") from e
        if not self.api_address:
            raise ConfigurationError("api_address is required")


@dataclass(frozen=True)
class DistinguishedName:
    """X.509 Subject Distinguished Name."""

    common_name: str
    organization: tuple[str, ...] = ()
    organizational_unit: tuple[str, ...] = ()

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation."""
        attributes = [
            x509.NameAttribute(oid.NameOID.ORGANIZATION_NAME, org) for org in self.organization
        ]
        attributes += [
            x509.NameAttribute(oid.NameOID.ORGANIZATIONAL_UNIT_NAME, unit)
            for unit in self.organizational_unit
        ]
        attributes.append(x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name))
        return x509.Name(attributes)


@dataclass(frozen=True)
class CertificateSpec:
    """Everything needed to issue one certificate, minus its issuer.

    IP addresses may be given as strings; they are parsed on construction so
    a malformed literal fails before any key is generated.
    """

    subject: DistinguishedName
    validity: timedelta
    key_usages: KeyUsage = KeyUsage(0)
    ext_key_usages: tuple[ExtKeyUsage, ...] = ()
    is_ca: bool = False
    dns_names: tuple[str, ...] = ()
    ip_addresses: tuple[IPAddress, ...] = ()

    def __post_init__(self) -> None:
        if self.validity <= timedelta(0):
            raise ConfigurationError(f"validity must be positive, got {self.validity}")
        if self.is_ca and KeyUsage.CERT_SIGN not in self.key_usages:
            raise ConfigurationError(
                f"CA certificate {self.subject.common_name!r} must include the cert-sign key usage"
            )
        for field_name in ("dns_names", "ip_addresses"):
            if isinstance(getattr(self, field_name), str):
                raise ConfigurationError(f"{field_name} must be a sequence, not a single string")
        for name in self.dns_names:
            if not name:
                raise ConfigurationError("DNS subject alternative names must not be empty")
        object.__setattr__(self, "dns_names", tuple(self.dns_names))
        object.__setattr__(self, "ext_key_usages", tuple(self.ext_key_usages))
        object.__setattr__(
            self, "ip_addresses", tuple(_parse_ip(value) for value in self.ip_addresses)
        )


def _parse_ip(value: IPAddress | str) -> IPAddress:
    if isinstance(value, ipaddress.IPv4Address | ipaddress.IPv6Address):
        return value
    try:
        return ipaddress.ip_address(value)
    except ValueError as e:
        raise ConfigurationError(f"invalid IP subject alternative name {value!r}") from e
