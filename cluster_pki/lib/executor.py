"""Dependency-ordered, generate-once resolution of assets."""

from .asset import Asset, AssetCatalog, Parents
from .errors import AssetError, AssetGenerationError, DependencyCycleError
from .logging_config import LOGGER


class AssetExecutor:
    """Resolves assets depth-first, generating each key at most once.

    Generated assets are memoized in ``parents`` for the lifetime of the
    executor, so resolving several targets on one executor reuses shared
    ancestors. Separate executors share nothing.
    """

    def __init__(self, catalog: AssetCatalog | None = None) -> None:
        """Initialize executor.

        Args:
            catalog: Declarations used to construct dependencies by key
        """
        self.catalog = catalog if catalog is not None else AssetCatalog()
        self.parents = Parents()
        self.generated: list[str] = []
        self._stack: list[str] = []

    def resolve(self, target: str | Asset) -> Asset:
        """Generate ``target`` and everything it depends on.

        Args:
            target: Asset key, or an asset instance to generate directly

        Returns:
            The generated asset (the memoized one if already generated)

        Raises:
            AssetError: If any asset in the closure fails, is unknown, or a
                dependency cycle is found
        """
        asset = self._lookup(target)
        if asset.key in self.parents:
            LOGGER.debug("Reusing %s", asset.name, extra={"asset": asset.key})
            return self.parents[asset.key]

        if asset.key in self._stack:
            raise DependencyCycleError(self._stack[self._stack.index(asset.key) :] + [asset.key])

        self._stack.append(asset.key)
        try:
            for dependency in asset.dependencies():
                try:
                    self.resolve(dependency)
                except AssetError as e:
                    raise AssetGenerationError(
                        f"failed to fetch dependency of {asset.name!r}: {e}", asset.name
                    ) from e

            LOGGER.info("Generating %s", asset.name, extra={"asset": asset.key})
            try:
                asset.generate(self.parents)
            except Exception as e:
                raise AssetGenerationError(
                    f"failed to generate asset {asset.name!r}: {e}", asset.name
                ) from e
        finally:
            self._stack.pop()

        self.parents._record(asset)
        self.generated.append(asset.key)
        return asset

    def _lookup(self, target: str | Asset) -> Asset:
        if isinstance(target, Asset):
            return target
        if target in self.parents:
            return self.parents[target]
        return self.catalog.create(target)
