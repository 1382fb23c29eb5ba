"""Operator identity and the namespaces treated as privileged."""

from __future__ import annotations

OPERATOR_NAME = "validation-webhook"
OPERATOR_NAMESPACE = "openshift-validation-webhook"

CONFIG_MAP_SOURCES: tuple[str, ...] = (
    "openshift-monitoring/managed-namespaces",
    "openshift-monitoring/ocp-namespaces",
)

# Any namespace starting with one of these is privileged.
PRIVILEGED_PREFIXES: tuple[str, ...] = ("kube-", "redhat-")

_STANDALONE_NAMES = """
    default openshift dedicated-admin goalert keycloak
    configure-goalert-operator kube-system
"""

# Namespaces named "openshift-<suffix>".
_OPENSHIFT_SUFFIXES = """
    addon-operator aqua aws-vpce-operator
    backplane backplane-cee backplane-csa backplane-cse backplane-csm
    backplane-managed-scripts backplane-mobb backplane-srep backplane-tam
    cloud-ingress-operator codeready-workspaces compliance compliance-monkey
    container-security custom-domains-operator customer-monitoring
    deployment-validation-operator managed-node-metadata-operator
    file-integrity logging managed-upgrade-operator must-gather-operator
    observability-operator ocm-agent-operator operators-redhat osd-metrics
    rbac-permissions route-monitor-operator scanning security
    splunk-forwarder-operator sre-pruning suricata validation-webhook velero
    monitoring cluster-version apiserver apiserver-operator
    authentication authentication-operator
    cloud-controller-manager cloud-controller-manager-operator
    cloud-credential-operator cloud-network-config-controller
    cluster-api cluster-csi-drivers cluster-machine-approver
    cluster-node-tuning-operator cluster-samples-operator cluster-storage-operator
    config config-managed config-operator
    console console-operator console-user-settings
    controller-manager controller-manager-operator
    dns dns-operator etcd etcd-operator host-network image-registry
    ingress ingress-canary ingress-operator insights kni-infra
    kube-apiserver kube-apiserver-operator
    kube-controller-manager kube-controller-manager-operator
    kube-scheduler kube-scheduler-operator
    kube-storage-version-migrator kube-storage-version-migrator-operator
    machine-api machine-config-operator marketplace multus
    network-diagnostics network-operator nutanix-infra oauth-apiserver
    openstack-infra operator-lifecycle-manager operators ovirt-infra sdn
    ovn-kubernetes platform-operators route-controller-manager
    service-ca service-ca-operator user-workload-monitoring vsphere-infra
"""

# Namespaces privileged by exact name.
PRIVILEGED_NAMES: frozenset[str] = frozenset(_STANDALONE_NAMES.split()) | frozenset(
    f"openshift-{suffix}" for suffix in _OPENSHIFT_SUFFIXES.split()
)

# The same rules written as regular expressions, for display and export.
PRIVILEGED_NAMESPACES: tuple[str, ...] = tuple(
    f"^{prefix}.*" for prefix in PRIVILEGED_PREFIXES
) + tuple(f"^{name}$" for name in sorted(PRIVILEGED_NAMES))


def is_privileged_namespace(ns: str) -> bool:
    """Return True if the namespace is privileged by name or by prefix."""
    return ns in PRIVILEGED_NAMES or ns.startswith(PRIVILEGED_PREFIXES)