"""Certificate declarations for the kube-apiserver PKI."""

from datetime import timedelta
from functools import partial

from .asset import AssetCatalog, Parents
from .cert_utils import host_at_offset
from .config import (
    VALIDITY_ONE_DAY,
    VALIDITY_ONE_YEAR,
    VALIDITY_TEN_YEARS,
    CertificateSpec,
    DistinguishedName,
    ExtKeyUsage,
    InstallConfig,
    IPAddress,
    KeyUsage,
    PKIConfig,
)
from .models import ChainPolicy
from .tls_assets import (
    INSTALL_CONFIG,
    CertBundle,
    InstallConfigAsset,
    SelfSignedCertKey,
    SignedCertKey,
    install_config_of,
)

KUBE_CA = "kube-ca"
APISERVER = "apiserver"

KUBELET_SIGNER = "kube-apiserver-to-kubelet-signer"
KUBELET_CA_BUNDLE = "kube-apiserver-to-kubelet-ca-bundle"
KUBELET_CLIENT = "kube-apiserver-to-kubelet-client"

LOCALHOST_SIGNER = "kube-apiserver-localhost-signer"
LOCALHOST_CA_BUNDLE = "kube-apiserver-localhost-ca-bundle"
LOCALHOST_SERVER = "kube-apiserver-localhost-server"

SERVICE_NETWORK_SIGNER = "kube-apiserver-service-network-signer"
SERVICE_NETWORK_CA_BUNDLE = "kube-apiserver-service-network-ca-bundle"
SERVICE_NETWORK_SERVER = "kube-apiserver-service-network-server"

LB_SIGNER = "kube-apiserver-lb-signer"
LB_CA_BUNDLE = "kube-apiserver-lb-ca-bundle"
LB_SERVER = "kube-apiserver-lb-server"

COMPLETE_SERVER_CA_BUNDLE = "kube-apiserver-complete-server-ca-bundle"

DEFAULT_TARGETS = [
    KUBE_CA,
    APISERVER,
    KUBELET_SIGNER,
    KUBELET_CA_BUNDLE,
    KUBELET_CLIENT,
    LOCALHOST_SIGNER,
    LOCALHOST_CA_BUNDLE,
    LOCALHOST_SERVER,
    SERVICE_NETWORK_SIGNER,
    SERVICE_NETWORK_CA_BUNDLE,
    SERVICE_NETWORK_SERVER,
    LB_SIGNER,
    LB_CA_BUNDLE,
    LB_SERVER,
    COMPLETE_SERVER_CA_BUNDLE,
]

SIGNER_USAGES = KeyUsage.KEY_ENCIPHERMENT | KeyUsage.DIGITAL_SIGNATURE | KeyUsage.CERT_SIGN
LEAF_USAGES = KeyUsage.KEY_ENCIPHERMENT | KeyUsage.DIGITAL_SIGNATURE

APISERVER_SUBJECT = DistinguishedName(
    common_name="system:kube-apiserver", organization=("kube-master",)
)

KUBERNETES_SERVICE_NAMES = (
    "kubernetes",
    "kubernetes.default",
    "kubernetes.default.svc",
    "kubernetes.default.svc.cluster.local",
)


def signer_spec(common_name: str, validity: timedelta, unit: str = "openshift") -> CertificateSpec:
    """Return the spec shared by every self-signed signer."""
    return CertificateSpec(
        subject=DistinguishedName(common_name=common_name, organizational_unit=(unit,)),
        key_usages=SIGNER_USAGES,
        validity=validity,
        is_ca=True,
    )


def service_address(config: InstallConfig) -> IPAddress:
    """First host of the service network, where the in-cluster API service lives."""
    return host_at_offset(config.service_cidr, 1)


def apiserver_spec(parents: Parents) -> CertificateSpec:
    config = install_config_of(parents)
    return CertificateSpec(
        subject=APISERVER_SUBJECT,
        key_usages=LEAF_USAGES,
        ext_key_usages=(ExtKeyUsage.SERVER_AUTH, ExtKeyUsage.CLIENT_AUTH),
        validity=VALIDITY_TEN_YEARS,
        dns_names=(config.api_address, *KUBERNETES_SERVICE_NAMES, "localhost"),
        ip_addresses=(service_address(config), "127.0.0.1"),
    )


def service_network_server_spec(parents: Parents) -> CertificateSpec:
    config = install_config_of(parents)
    return CertificateSpec(
        subject=APISERVER_SUBJECT,
        key_usages=LEAF_USAGES,
        ext_key_usages=(ExtKeyUsage.SERVER_AUTH,),
        validity=VALIDITY_ONE_DAY,
        dns_names=KUBERNETES_SERVICE_NAMES,
        ip_addresses=(service_address(config),),
    )


def lb_server_spec(parents: Parents) -> CertificateSpec:
    config = install_config_of(parents)
    return CertificateSpec(
        subject=APISERVER_SUBJECT,
        key_usages=LEAF_USAGES,
        ext_key_usages=(ExtKeyUsage.SERVER_AUTH,),
        validity=VALIDITY_ONE_DAY,
        dns_names=(config.api_address,),
    )


KUBELET_CLIENT_SPEC = CertificateSpec(
    subject=APISERVER_SUBJECT,
    key_usages=LEAF_USAGES,
    ext_key_usages=(ExtKeyUsage.CLIENT_AUTH,),
    validity=VALIDITY_ONE_YEAR,
)

LOCALHOST_SERVER_SPEC = CertificateSpec(
    subject=APISERVER_SUBJECT,
    key_usages=LEAF_USAGES,
    ext_key_usages=(ExtKeyUsage.SERVER_AUTH,),
    validity=VALIDITY_ONE_DAY,
    dns_names=("localhost",),
    ip_addresses=("127.0.0.1", "::1"),
)


def build_catalog(install_config: InstallConfig, pki_config: PKIConfig | None = None) -> AssetCatalog:
    """Build the catalog of every kube-apiserver PKI asset.

    Args:
        install_config: Installation settings read by the declarations
        pki_config: Generation settings (key size)

    Returns:
        AssetCatalog keyed by asset key; keys double as persisted base names
    """
    pki_config = pki_config or PKIConfig()
    key_size = pki_config.key_size
    catalog = AssetCatalog()

    catalog.register(INSTALL_CONFIG, partial(InstallConfigAsset, install_config))

    signers = {
        KUBE_CA: signer_spec(KUBE_CA, VALIDITY_TEN_YEARS, unit="bootkube"),
        KUBELET_SIGNER: signer_spec(KUBELET_SIGNER, VALIDITY_ONE_YEAR),
        LOCALHOST_SIGNER: signer_spec(LOCALHOST_SIGNER, VALIDITY_TEN_YEARS),
        SERVICE_NETWORK_SIGNER: signer_spec(SERVICE_NETWORK_SIGNER, VALIDITY_TEN_YEARS),
        LB_SIGNER: signer_spec(LB_SIGNER, VALIDITY_TEN_YEARS),
    }
    for key, spec in signers.items():
        catalog.register(key, partial(SelfSignedCertKey, key=key, spec=spec, key_size=key_size))

    bundles = {
        KUBELET_CA_BUNDLE: [KUBELET_SIGNER],
        LOCALHOST_CA_BUNDLE: [LOCALHOST_SIGNER],
        SERVICE_NETWORK_CA_BUNDLE: [SERVICE_NETWORK_SIGNER],
        LB_CA_BUNDLE: [LB_SIGNER],
        COMPLETE_SERVER_CA_BUNDLE: [LOCALHOST_SIGNER, SERVICE_NETWORK_SIGNER, LB_SIGNER],
    }
    for key, authorities in bundles.items():
        catalog.register(key, partial(CertBundle, key=key, authorities=authorities))

    signed = [
        (APISERVER, KUBE_CA, apiserver_spec, ChainPolicy.APPEND_PARENT, [INSTALL_CONFIG]),
        (KUBELET_CLIENT, KUBELET_SIGNER, KUBELET_CLIENT_SPEC, ChainPolicy.DO_NOT_APPEND_PARENT, []),
        (LOCALHOST_SERVER, LOCALHOST_SIGNER, LOCALHOST_SERVER_SPEC, ChainPolicy.APPEND_PARENT, []),
        (
            SERVICE_NETWORK_SERVER,
            SERVICE_NETWORK_SIGNER,
            service_network_server_spec,
            ChainPolicy.APPEND_PARENT,
            [INSTALL_CONFIG],
        ),
        (LB_SERVER, LB_SIGNER, lb_server_spec, ChainPolicy.APPEND_PARENT, [INSTALL_CONFIG]),
    ]
    for key, issuer, spec, chain_policy, dependencies in signed:
        catalog.register(
            key,
            partial(
                SignedCertKey,
                key=key,
                issuer=issuer,
                spec=spec,
                chain_policy=chain_policy,
                dependencies=dependencies,
                key_size=key_size,
            ),
        )

    return catalog
