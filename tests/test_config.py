import pytest

from managed_webhooks import config


@pytest.mark.parametrize(
    "namespace",
    [
        "default",
        "openshift",
        "kube-system",
        "kube-public",
        "redhat-rhoam",
        "openshift-monitoring",
        "openshift-backplane-srep",
        "dedicated-admin",
        "openshift-vsphere-infra",
        "configure-goalert-operator",
    ],
)
def test_privileged_namespaces(namespace):
    assert config.is_privileged_namespace(namespace) is True


@pytest.mark.parametrize(
    "namespace",
    [
        "my-app",
        "openshift-foo",
        "defaults",
        "xdefault",
        "",
        "customer-kube",
        "openshift-monitoring-extra",
        "my-kube-system",
        "default\n",
    ],
)
def test_unprivileged_namespaces(namespace):
    assert config.is_privileged_namespace(namespace) is False


def test_operator_namespace_is_privileged():
    assert config.is_privileged_namespace(config.OPERATOR_NAMESPACE) is True


@pytest.mark.parametrize("prefix", ["kube-", "redhat-"])
def test_prefix_alone_is_privileged(prefix):
    assert config.is_privileged_namespace(prefix) is True
    assert config.is_privileged_namespace(prefix.rstrip("-")) is False