"""Tests for the generic TLS assets resolved through the executor."""

from unittest.mock import patch

import pytest

from cluster_pki.lib import ca_utils
from cluster_pki.lib.asset import AssetCatalog, Parents
from cluster_pki.lib.cert_utils import host_at_offset, serialize_certificate, verify_signed_by
from cluster_pki.lib.config import (
    VALIDITY_ONE_DAY,
    CertificateSpec,
    DistinguishedName,
    ExtKeyUsage,
    InstallConfig,
    KeyUsage,
)
from cluster_pki.lib.errors import AssetGenerationError, ConfigurationError
from cluster_pki.lib.executor import AssetExecutor
from cluster_pki.lib.models import ChainPolicy
from cluster_pki.lib.tls_assets import (
    INSTALL_CONFIG,
    CertBundle,
    InstallConfigAsset,
    SelfSignedCertKey,
    SignedCertKey,
    authority_of,
    install_config_of,
)


def server_spec(parents: Parents) -> CertificateSpec:
    """Spec reading the service network from the install config."""
    config = install_config_of(parents)
    return CertificateSpec(
        subject=DistinguishedName(common_name="api-server"),
        key_usages=KeyUsage.DIGITAL_SIGNATURE | KeyUsage.KEY_ENCIPHERMENT,
        ext_key_usages=(ExtKeyUsage.SERVER_AUTH,),
        validity=VALIDITY_ONE_DAY,
        dns_names=("kubernetes.default",),
        ip_addresses=(host_at_offset(config.service_cidr, 1),),
    )


@pytest.fixture
def catalog(install_config: InstallConfig, root_spec: CertificateSpec) -> AssetCatalog:
    """Catalog with two signers, two leaves sharing one signer, and bundles."""
    other_spec = CertificateSpec(
        subject=DistinguishedName(common_name="other-signer"),
        key_usages=KeyUsage.CERT_SIGN,
        validity=VALIDITY_ONE_DAY,
        is_ca=True,
    )
    client_spec = CertificateSpec(
        subject=DistinguishedName(common_name="client"),
        key_usages=KeyUsage.DIGITAL_SIGNATURE,
        ext_key_usages=(ExtKeyUsage.CLIENT_AUTH,),
        validity=VALIDITY_ONE_DAY,
    )

    catalog = AssetCatalog()
    catalog.register(INSTALL_CONFIG, lambda: InstallConfigAsset(install_config))
    catalog.register("root-signer", lambda: SelfSignedCertKey("root-signer", root_spec))
    catalog.register("other-signer", lambda: SelfSignedCertKey("other-signer", other_spec))
    catalog.register(
        "api-server",
        lambda: SignedCertKey(
            "api-server",
            issuer="root-signer",
            spec=server_spec,
            chain_policy=ChainPolicy.APPEND_PARENT,
            dependencies=[INSTALL_CONFIG],
        ),
    )
    catalog.register(
        "client", lambda: SignedCertKey("client", issuer="root-signer", spec=client_spec)
    )
    catalog.register(
        "ca-bundle", lambda: CertBundle("ca-bundle", ["other-signer", "root-signer"])
    )
    return catalog


class TestSelfSignedCertKey:
    """Tests for SelfSignedCertKey."""

    def test_generates_authority(self, catalog: AssetCatalog) -> None:
        """Generated signer holds a self-signed authority."""
        asset = AssetExecutor(catalog).resolve("root-signer")
        assert isinstance(asset, SelfSignedCertKey)
        assert asset.authority is not None
        cert = asset.authority.certificate
        assert cert.issuer == cert.subject

    def test_name_and_files(self, catalog: AssetCatalog) -> None:
        """Signer persists key and certificate under its base name."""
        asset = AssetExecutor(catalog).resolve("root-signer")
        assert asset.name == "Certificate (root-signer)"
        assert [f.filename for f in asset.files()] == ["root-signer.key", "root-signer.crt"]  # type: ignore[attr-defined]

    def test_files_empty_before_generation(self, root_spec: CertificateSpec) -> None:
        """Nothing to persist until generated."""
        assert SelfSignedCertKey("root-signer", root_spec).files() == []


class TestSignedCertKey:
    """Tests for SignedCertKey."""

    def test_declares_issuer_then_extra_dependencies(self) -> None:
        """Issuer comes first among the declared dependencies."""
        asset = SignedCertKey("leaf", issuer="ca", spec=server_spec, dependencies=["x"])
        assert asset.dependencies() == ("ca", "x")

    def test_signed_by_declared_issuer(self, catalog: AssetCatalog) -> None:
        """Leaf is signed by its issuer and reads the install config."""
        executor = AssetExecutor(catalog)
        leaf = executor.resolve("api-server")
        root = executor.parents["root-signer"]

        assert isinstance(leaf, SignedCertKey) and leaf.pair is not None
        assert isinstance(root, SelfSignedCertKey) and root.authority is not None
        assert verify_signed_by(leaf.pair.certificate, root.authority.certificate)
        assert leaf.pair.cert_pem == serialize_certificate(
            leaf.pair.certificate
        ) + serialize_certificate(root.authority.certificate)

    def test_leaf_is_not_an_authority(self, catalog: AssetCatalog) -> None:
        """A leaf cannot be used as an issuer."""
        executor = AssetExecutor(catalog)
        executor.resolve("client")
        with pytest.raises(ConfigurationError, match="not a signing authority"):
            authority_of(executor.parents, "client")

    def test_shared_issuer_generated_once(self, catalog: AssetCatalog) -> None:
        """Two leaves on one signer cause a single self-signed issuance."""
        executor = AssetExecutor(catalog)
        with (
            patch(
                "cluster_pki.lib.tls_assets.issue_self_signed",
                wraps=ca_utils.issue_self_signed,
            ) as self_signed,
            patch(
                "cluster_pki.lib.tls_assets.issue_signed",
                wraps=ca_utils.issue_signed,
            ) as signed,
        ):
            executor.resolve("api-server")
            executor.resolve("client")
            executor.resolve("api-server")

        assert self_signed.call_count == 1
        assert signed.call_count == 2

    def test_leaves_get_distinct_serials(self, catalog: AssetCatalog) -> None:
        """Leaves issued by the same authority in one run have distinct serials."""
        executor = AssetExecutor(catalog)
        server = executor.resolve("api-server")
        client = executor.resolve("client")
        assert server.pair.certificate.serial_number != client.pair.certificate.serial_number  # type: ignore[attr-defined]


class TestCertBundle:
    """Tests for CertBundle."""

    def test_bundle_follows_declared_order(self, catalog: AssetCatalog) -> None:
        """Bundle bytes follow dependency declaration order."""
        executor = AssetExecutor(catalog)
        bundle = executor.resolve("ca-bundle")
        other = executor.parents["other-signer"]
        root = executor.parents["root-signer"]

        assert isinstance(bundle, CertBundle) and bundle.bundle is not None
        assert bundle.bundle.data == (
            other.authority.cert_pem + root.authority.cert_pem  # type: ignore[attr-defined]
        )
        assert [f.filename for f in bundle.files()] == ["ca-bundle.crt"]

    def test_bundle_of_leaf_fails(self, catalog: AssetCatalog) -> None:
        """Bundling a non-authority fails the bundle's resolution."""
        catalog.register("bad-bundle", lambda: CertBundle("bad-bundle", ["client"]))
        with pytest.raises(AssetGenerationError) as exc:
            AssetExecutor(catalog).resolve("bad-bundle")
        assert isinstance(exc.value.root_cause, ConfigurationError)


def test_install_config_asset(install_config: InstallConfig) -> None:
    """Install config is a root asset exposing its settings."""
    executor = AssetExecutor()
    executor.resolve(InstallConfigAsset(install_config))
    assert install_config_of(executor.parents) is install_config
    assert executor.parents[INSTALL_CONFIG].name == "Install Config"
