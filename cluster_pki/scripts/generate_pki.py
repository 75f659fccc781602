#!/usr/bin/env python3
"""Generate the cluster PKI (signers, serving/client certificates, CA bundles)."""

import argparse
import sys
from pathlib import Path

from cluster_pki.lib.catalog import DEFAULT_TARGETS, build_catalog
from cluster_pki.lib.config import DEFAULT_KEY_SIZE, InstallConfig, PKIConfig
from cluster_pki.lib.errors import PKIError
from cluster_pki.lib.logging_config import LOGGER
from cluster_pki.lib.models import GenerationResult
from cluster_pki.lib.pki_manager import PKIManager


def generate_pki(
    install_config: InstallConfig,
    config: PKIConfig,
    output_dir: Path,
    targets: list[str] | None = None,
) -> GenerationResult:
    """Generate the requested PKI assets and write them under ``output_dir``.

    Args:
        install_config: Service network and API address
        config: Generation settings
        output_dir: Output directory for artifacts
        targets: Asset keys to generate (None = every catalog target)

    Returns:
        GenerationResult with written paths and serials
    """
    catalog = build_catalog(install_config, config)
    manager = PKIManager(config, catalog)
    return manager.generate(targets or DEFAULT_TARGETS, output_dir)


def main() -> int:
    """Generate cluster PKI.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(
        description="Generate cluster PKI (signers, certificates, CA bundles)"
    )
    parser.add_argument(
        "--service-cidr",
        required=True,
        help="Service network CIDR (e.g., 172.30.0.0/16)",
    )
    parser.add_argument(
        "--api-address",
        required=True,
        help="Externally reachable API DNS name (e.g., api.mycluster.example.com)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Output directory for PKI artifacts (default: output)",
    )
    parser.add_argument(
        "--target",
        action="append",
        dest="targets",
        choices=DEFAULT_TARGETS,
        help="Asset to generate; repeatable (default: all)",
    )
    parser.add_argument(
        "--key-size",
        type=int,
        default=DEFAULT_KEY_SIZE,
        help=f"RSA key size (default: {DEFAULT_KEY_SIZE})",
    )
    args = parser.parse_args()

    try:
        install_config = InstallConfig(
            service_cidr=args.service_cidr, api_address=args.api_address
        )
        config = PKIConfig(key_size=args.key_size)

        LOGGER.info("Generating cluster PKI...")
        result = generate_pki(install_config, config, args.output_dir, args.targets)

        for key, serial in result.serials.items():
            LOGGER.info("  %s: serial %s", key, serial)
        LOGGER.info("PKI generation complete: %s", result.output_dir)
        return 0

    except PKIError as e:
        LOGGER.error("PKI generation failed: %s", e)
        return 1
    except OSError as e:
        LOGGER.error("Failed to write PKI artifacts: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
