"""Generic PKI assets: self-signed authorities, signed key pairs and CA bundles.

Each concrete certificate is one of these building blocks parameterized by
data. A certificate spec is either fixed, or computed from the generated
dependencies when it needs installation settings.
"""

from collections.abc import Callable, Sequence

from .asset import Asset, Parents, WritableAsset
from .ca_utils import aggregate_bundle, issue_self_signed, issue_signed
from .config import DEFAULT_KEY_SIZE, CertificateSpec, InstallConfig
from .errors import ConfigurationError
from .models import AssetFile, CertBundleArtifact, ChainPolicy, KeyCertPair, SigningAuthority

INSTALL_CONFIG = "install-config"

SpecSource = CertificateSpec | Callable[[Parents], CertificateSpec]


def _spec_from(source: SpecSource, parents: Parents) -> CertificateSpec:
    if isinstance(source, CertificateSpec):
        return source
    return source(parents)


def authority_of(parents: Parents, key: str) -> SigningAuthority:
    """Return the generated authority stored under ``key``."""
    asset = parents[key]
    authority = getattr(asset, "authority", None)
    if not isinstance(authority, SigningAuthority):
        raise ConfigurationError(f"asset {asset.name!r} is not a signing authority")
    return authority


def install_config_of(parents: Parents) -> InstallConfig:
    """Return the installation settings from the generated dependencies."""
    asset = parents[INSTALL_CONFIG]
    if not isinstance(asset, InstallConfigAsset):
        raise ConfigurationError(f"asset {INSTALL_CONFIG!r} is not an install config")
    return asset.config


class InstallConfigAsset(Asset):
    """Root asset exposing the installation settings to certificate declarations."""

    key = INSTALL_CONFIG

    def __init__(self, config: InstallConfig) -> None:
        self.config = config

    def generate(self, parents: Parents) -> None:
        pass

    @property
    def name(self) -> str:
        return "Install Config"


class SelfSignedCertKey(WritableAsset):
    """Self-signed certificate authority."""

    def __init__(
        self,
        key: str,
        spec: SpecSource,
        base_name: str | None = None,
        dependencies: Sequence[str] = (),
        key_size: int = DEFAULT_KEY_SIZE,
    ) -> None:
        self.key = key
        self.spec = spec
        self.base_name = base_name or key
        self._dependencies = tuple(dependencies)
        self.key_size = key_size
        self.authority: SigningAuthority | None = None

    def dependencies(self) -> Sequence[str]:
        return self._dependencies

    def generate(self, parents: Parents) -> None:
        spec = _spec_from(self.spec, parents)
        self.authority = issue_self_signed(spec, self.base_name, key_size=self.key_size)

    @property
    def name(self) -> str:
        return f"Certificate ({self.base_name})"

    def files(self) -> list[AssetFile]:
        if self.authority is None:
            return []
        return self.authority.files()


class SignedCertKey(WritableAsset):
    """Key pair whose certificate is signed by the authority under ``issuer``."""

    def __init__(
        self,
        key: str,
        issuer: str,
        spec: SpecSource,
        chain_policy: ChainPolicy = ChainPolicy.DO_NOT_APPEND_PARENT,
        base_name: str | None = None,
        dependencies: Sequence[str] = (),
        key_size: int = DEFAULT_KEY_SIZE,
    ) -> None:
        self.key = key
        self.issuer = issuer
        self.spec = spec
        self.chain_policy = chain_policy
        self.base_name = base_name or key
        self._dependencies = (issuer, *dependencies)
        self.key_size = key_size
        self.pair: KeyCertPair | None = None

    def dependencies(self) -> Sequence[str]:
        return self._dependencies

    def generate(self, parents: Parents) -> None:
        issuer = authority_of(parents, self.issuer)
        spec = _spec_from(self.spec, parents)
        self.pair = issue_signed(
            spec, issuer, self.base_name, self.chain_policy, key_size=self.key_size
        )

    @property
    def authority(self) -> SigningAuthority | None:
        """The generated pair when it is itself an authority."""
        if isinstance(self.pair, SigningAuthority):
            return self.pair
        return None

    @property
    def name(self) -> str:
        return f"Certificate ({self.base_name})"

    def files(self) -> list[AssetFile]:
        if self.pair is None:
            return []
        return self.pair.files()


class CertBundle(WritableAsset):
    """Bundle of the authorities under ``authorities``, in declaration order."""

    def __init__(
        self,
        key: str,
        authorities: Sequence[str],
        bundle_name: str | None = None,
    ) -> None:
        self.key = key
        self.authorities = tuple(authorities)
        self.bundle_name = bundle_name or key
        self.bundle: CertBundleArtifact | None = None

    def dependencies(self) -> Sequence[str]:
        return self.authorities

    def generate(self, parents: Parents) -> None:
        members = [authority_of(parents, key) for key in self.authorities]
        self.bundle = aggregate_bundle(self.bundle_name, *members)

    @property
    def name(self) -> str:
        return f"Certificate ({self.bundle_name})"

    def files(self) -> list[AssetFile]:
        if self.bundle is None:
            return []
        return self.bundle.files()
