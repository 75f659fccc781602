"""Assets: nodes of the PKI dependency graph."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, Sequence

from .errors import ConfigurationError, UnknownAssetError
from .models import AssetFile


class Asset(ABC):
    """A node in the dependency graph.

    An asset is identified by ``key``; one executor generates at most one
    instance per key. Dependencies are declared as keys and are handed back
    already generated through ``Parents`` when ``generate`` runs.
    """

    key: str

    def dependencies(self) -> Sequence[str]:
        """Return the keys of the assets ``generate`` reads, in order."""
        return ()

    @abstractmethod
    def generate(self, parents: "Parents") -> None:
        """Produce this asset's artifact from its generated dependencies."""

    @property
    def name(self) -> str:
        """Human-friendly label used in logs and errors."""
        return self.key


class WritableAsset(Asset):
    """An asset whose artifact is persisted to files."""

    @abstractmethod
    def files(self) -> list[AssetFile]:
        """Return files to persist; empty until generated."""


class Parents(Mapping[str, Asset]):
    """Generated assets keyed by asset key.

    Read-only for assets; only the executor records new entries, and each key
    is recorded once.
    """

    def __init__(self) -> None:
        self._assets: dict[str, Asset] = {}

    def __getitem__(self, key: str) -> Asset:
        try:
            return self._assets[key]
        except KeyError:
            raise KeyError(f"asset {key!r} has not been generated") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def _record(self, asset: Asset) -> None:
        if asset.key in self._assets:
            raise ConfigurationError(f"asset {asset.key!r} was already generated")
        self._assets[asset.key] = asset


AssetFactory = Callable[[], Asset]


class AssetCatalog:
    """Registry of asset declarations, keyed by asset key."""

    def __init__(self) -> None:
        self._factories: dict[str, AssetFactory] = {}

    def register(self, key: str, factory: AssetFactory) -> None:
        """Declare how to construct the asset identified by ``key``.

        Raises:
            ConfigurationError: If ``key`` is already registered
        """
        if key in self._factories:
            raise ConfigurationError(f"asset {key!r} is already registered")
        self._factories[key] = factory

    def create(self, key: str) -> Asset:
        """Construct a fresh, ungenerated instance of ``key``.

        Raises:
            UnknownAssetError: If nothing is registered under ``key``
            ConfigurationError: If the factory builds an asset with another key
        """
        try:
            factory = self._factories[key]
        except KeyError:
            raise UnknownAssetError(key) from None
        asset = factory()
        if asset.key != key:
            raise ConfigurationError(f"factory for {key!r} built asset {asset.key!r}")
        return asset

    def keys(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, key: object) -> bool:
        return key in self._factories
