"""Exception hierarchy for PKI generation."""


class PKIError(Exception):
    """Base class for every error raised while building the cluster PKI."""


class ConfigurationError(PKIError):
    """Invalid input: malformed SANs or CIDRs, inconsistent specs, catalog misuse."""


class CryptographicError(PKIError):
    """Key generation or signing failed."""


class AssetError(PKIError):
    """Dependency graph failure."""


class UnknownAssetError(AssetError):
    """No catalog entry exists for a requested asset key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no asset registered for key {key!r}")
        self.key = key


class DependencyCycleError(AssetError):
    """An asset depends, directly or transitively, on itself."""

    def __init__(self, path: list[str]) -> None:
        super().__init__("dependency cycle detected: " + " -> ".join(path))
        self.path = path


class AssetGenerationError(AssetError):
    """An asset, or one of its dependencies, failed to generate.

    The underlying failure is chained as ``__cause__``; ``root_cause`` walks
    the chain down to the original exception.
    """

    def __init__(self, message: str, asset_name: str) -> None:
        super().__init__(message)
        self.asset_name = asset_name

    @property
    def root_cause(self) -> BaseException:
        err: BaseException = self
        while err.__cause__ is not None:
            err = err.__cause__
        return err
