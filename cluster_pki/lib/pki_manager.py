"""PKI manager: resolves requested assets and writes their artifacts."""

import os
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path

from cryptography import x509

from .asset import AssetCatalog, WritableAsset
from .cert_utils import get_certificate_serial_hex
from .config import PKIConfig
from .executor import AssetExecutor
from .logging_config import LOGGER
from .models import GenerationResult


class PKIManager:
    """Generates cluster PKI assets and persists them to the filesystem."""

    def __init__(self, config: PKIConfig, catalog: AssetCatalog) -> None:
        """Initialize PKI manager.

        Args:
            config: Generation settings (key size, output subdirectory)
            catalog: Asset declarations to resolve targets against
        """
        self.config = config
        self.catalog = catalog

    def generate(self, targets: Sequence[str], output_base_dir: Path) -> GenerationResult:
        """Resolve ``targets`` and write every generated artifact.

        All targets are resolved on one executor, so shared authorities are
        generated once. Nothing is written unless every target resolves.

        Args:
            targets: Asset keys to generate
            output_base_dir: Base directory; files go to ``<base>/<tls_dir>/``

        Returns:
            GenerationResult with written paths and certificate serials

        Raises:
            AssetError: If any asset in the requested closure fails
        """
        executor = AssetExecutor(self.catalog)
        for target in targets:
            executor.resolve(target)

        return self.write(executor, output_base_dir)

    def write(self, executor: AssetExecutor, output_base_dir: Path) -> GenerationResult:
        """Write the files of every writable asset ``executor`` generated.

        Files are first written into a private staging directory next to
        ``tls_dir``, each created with its final mode, and moved into
        ``tls_dir`` only once all of them are on disk. If a move fails the
        files already moved are removed again, so ``tls_dir`` never holds a
        partial set.
        """
        output_base_dir.mkdir(parents=True, exist_ok=True)
        tls_dir = output_base_dir / self.config.tls_dir
        result = GenerationResult(output_dir=tls_dir)

        # mkdtemp creates the directory with mode 0700
        staging_dir = Path(
            tempfile.mkdtemp(prefix=f".{self.config.tls_dir}-", dir=output_base_dir)
        )
        try:
            staged = self._stage(executor, staging_dir, result)
            self._commit(staged, tls_dir, result)
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

        LOGGER.info("Wrote %d files to %s", len(result.written), tls_dir)
        return result

    def _stage(
        self, executor: AssetExecutor, staging_dir: Path, result: GenerationResult
    ) -> list[Path]:
        staged: list[Path] = []
        for key in executor.generated:
            asset = executor.parents[key]
            if not isinstance(asset, WritableAsset):
                continue

            for asset_file in asset.files():
                path = staging_dir / asset_file.filename
                _write_file(path, asset_file.data, asset_file.mode)
                staged.append(path)

            certificate = _certificate_of(asset)
            if certificate is not None:
                result.serials[key] = get_certificate_serial_hex(certificate)
        return staged

    def _commit(self, staged: list[Path], tls_dir: Path, result: GenerationResult) -> None:
        created = not tls_dir.exists()
        tls_dir.mkdir(exist_ok=True)
        committed: list[Path] = []
        try:
            for path in staged:
                target = tls_dir / path.name
                os.replace(path, target)
                committed.append(target)
        except OSError:
            LOGGER.error("Failed to move PKI files into %s, removing partial output", tls_dir)
            for target in committed:
                target.unlink(missing_ok=True)
            if created:
                shutil.rmtree(tls_dir, ignore_errors=True)
            raise
        result.written.extend(committed)


def _write_file(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    with os.fdopen(fd, "wb") as f:
        # open() applies the umask; fix the mode before any data lands
        os.fchmod(f.fileno(), mode)
        f.write(data)


def _certificate_of(asset: WritableAsset) -> x509.Certificate | None:
    pair = getattr(asset, "pair", None) or getattr(asset, "authority", None)
    if pair is None:
        return None
    return pair.certificate
