"""Test fixtures for cluster_pki tests."""

from datetime import timedelta
from pathlib import Path

import pytest

from cluster_pki.lib.ca_utils import issue_self_signed, issue_signed
from cluster_pki.lib.config import (
    VALIDITY_ONE_DAY,
    VALIDITY_TEN_YEARS,
    CertificateSpec,
    DistinguishedName,
    ExtKeyUsage,
    InstallConfig,
    KeyUsage,
    PKIConfig,
)
from cluster_pki.lib.models import ChainPolicy, KeyCertPair, SigningAuthority

SIGNER_USAGES = KeyUsage.KEY_ENCIPHERMENT | KeyUsage.DIGITAL_SIGNATURE | KeyUsage.CERT_SIGN


@pytest.fixture
def temp_output_dir(tmp_path: Path) -> Path:
    """Return temporary directory for test output artifacts."""
    return tmp_path


@pytest.fixture
def pki_config() -> PKIConfig:
    """Return PKI configuration with the default 2048-bit key size."""
    return PKIConfig(key_size=2048)


@pytest.fixture
def install_config() -> InstallConfig:
    """Return installation settings for a test cluster."""
    return InstallConfig(service_cidr="10.0.0.0/16", api_address="api.test-cluster.example.com")


@pytest.fixture
def root_spec() -> CertificateSpec:
    """Return a ten-year root signer spec."""
    return CertificateSpec(
        subject=DistinguishedName(common_name="root-signer", organizational_unit=("openshift",)),
        key_usages=SIGNER_USAGES,
        validity=VALIDITY_TEN_YEARS,
        is_ca=True,
    )


@pytest.fixture
def root_authority(root_spec: CertificateSpec) -> SigningAuthority:
    """Generate self-signed root authority."""
    return issue_self_signed(root_spec, "root-signer")


@pytest.fixture
def other_authority() -> SigningAuthority:
    """Generate an authority unrelated to root_authority."""
    spec = CertificateSpec(
        subject=DistinguishedName(common_name="other-signer", organizational_unit=("openshift",)),
        key_usages=SIGNER_USAGES,
        validity=timedelta(days=30),
        is_ca=True,
    )
    return issue_self_signed(spec, "other-signer")


@pytest.fixture
def leaf_spec() -> CertificateSpec:
    """Return a one-day API server serving certificate spec."""
    return CertificateSpec(
        subject=DistinguishedName(
            common_name="system:kube-apiserver", organization=("kube-master",)
        ),
        key_usages=KeyUsage.KEY_ENCIPHERMENT | KeyUsage.DIGITAL_SIGNATURE,
        ext_key_usages=(ExtKeyUsage.SERVER_AUTH,),
        validity=VALIDITY_ONE_DAY,
        dns_names=("kubernetes.default",),
        ip_addresses=("10.0.0.1",),
    )


@pytest.fixture
def leaf_pair(
    leaf_spec: CertificateSpec, root_authority: SigningAuthority
) -> KeyCertPair:
    """Generate leaf key pair signed by root_authority, chain not appended."""
    return issue_signed(leaf_spec, root_authority, "api-server", ChainPolicy.DO_NOT_APPEND_PARENT)
