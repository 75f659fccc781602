"""Artifact models produced by PKI generation."""

import enum
from dataclasses import dataclass, field
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cert_utils import serialize_certificate, serialize_private_key
from .errors import ConfigurationError


class ChainPolicy(enum.Enum):
    """Whether a signed certificate file also carries its issuer's certificate."""

    DO_NOT_APPEND_PARENT = "do-not-append-parent"
    APPEND_PARENT = "append-parent"


@dataclass(frozen=True)
class AssetFile:
    """One file an asset asks to have persisted."""

    filename: str
    data: bytes
    mode: int = 0o644


@dataclass(frozen=True)
class KeyCertPair:
    """Private key and certificate, persisted under ``base_name``.

    ``cert_pem`` holds the bytes written to the certificate file, which under
    ``ChainPolicy.APPEND_PARENT`` is the leaf followed by its issuer.
    """

    base_name: str
    private_key: RSAPrivateKey
    certificate: x509.Certificate
    cert_pem: bytes = b""

    def __post_init__(self) -> None:
        if not self.cert_pem:
            object.__setattr__(self, "cert_pem", serialize_certificate(self.certificate))

    @property
    def key_pem(self) -> bytes:
        return serialize_private_key(self.private_key)

    @property
    def key_filename(self) -> str:
        return f"{self.base_name}.key"

    @property
    def cert_filename(self) -> str:
        return f"{self.base_name}.crt"

    def files(self) -> list[AssetFile]:
        """Return key (owner-only) and certificate files."""
        return [
            AssetFile(self.key_filename, self.key_pem, mode=0o600),
            AssetFile(self.cert_filename, self.cert_pem),
        ]


@dataclass(frozen=True)
class SigningAuthority(KeyCertPair):
    """Key pair whose certificate may sign other certificates."""

    def __post_init__(self) -> None:
        super().__post_init__()
        try:
            constraints = self.certificate.extensions.get_extension_for_class(
                x509.BasicConstraints
            )
        except x509.ExtensionNotFound as e:
            raise ConfigurationError(f"{self.base_name} has no basic constraints") from e
        if not constraints.value.ca:
            raise ConfigurationError(f"{self.base_name} is not a certificate authority")


@dataclass(frozen=True)
class CertBundleArtifact:
    """Ordered concatenation of authority certificates."""

    name: str
    certificates: tuple[bytes, ...]

    @property
    def data(self) -> bytes:
        return b"".join(self.certificates)

    @property
    def filename(self) -> str:
        return f"{self.name}.crt"

    def files(self) -> list[AssetFile]:
        return [AssetFile(self.filename, self.data)]


@dataclass
class GenerationResult:
    """Result from a PKI generation run.

    Contains the written file paths and the serial number of every
    certificate generated, keyed by asset key.
    """

    output_dir: Path
    written: list[Path] = field(default_factory=list)
    serials: dict[str, str] = field(default_factory=dict)
