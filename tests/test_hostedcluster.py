import pytest

from managed_webhooks.admission import AdmissionRequest, GroupVersionKind, Operation, UserInfo
from managed_webhooks.webhooks.hostedcluster import WEBHOOK_NAME, HostedClusterWebhook

HC_KIND = GroupVersionKind(group="hypershift.openshift.io", kind="HostedCluster")


@pytest.mark.parametrize(
    "username,operation,expected",
    [
        (
            "system:serviceaccount:open-cluster-management-agent:klusterlet-work-sa",
            Operation.DELETE,
            True,
        ),
        ("unknown-user", Operation.DELETE, False),
        ("unknown-user", Operation.CREATE, True),
    ],
)
def test_authorized(username, operation, expected):
    request = AdmissionRequest(
        user_info=UserInfo(username=username), operation=operation, kind=HC_KIND
    )
    assert HostedClusterWebhook().authorized(request).allowed is expected


def test_denied_response_keeps_uid_and_names_account():
    request = AdmissionRequest(
        uid="xyz", user_info=UserInfo(username="someone"), operation=Operation.DELETE
    )
    response = HostedClusterWebhook().authorized(request)
    assert response.uid == "xyz"
    assert "klusterlet-work-sa" in response.status.message


def test_name():
    assert HostedClusterWebhook().name == WEBHOOK_NAME


def test_get_uri():
    uri = HostedClusterWebhook().get_uri()
    assert uri.startswith("/")
    assert uri == "/hostedcluster-validation"


def test_rules():
    rules = HostedClusterWebhook().rules()
    assert len(rules) > 0
    assert rules[0].to_dict()["resources"] == ["hostedclusters"]


def test_doc():
    assert "HostedCluster" in HostedClusterWebhook().doc


def test_timeout_seconds():
    assert HostedClusterWebhook().timeout_seconds == 2


def test_object_selector_is_none():
    assert HostedClusterWebhook().object_selector() is None


@pytest.mark.parametrize(
    "username,group,kind,expected",
    [
        ("test-user", "hypershift.openshift.io", "HostedCluster", True),
        ("", "hypershift.openshift.io", "HostedCluster", False),
        ("test-user", "hypershift.openshift.io", "Pod", False),
        ("test-user", "apps", "HostedCluster", False),
    ],
)
def test_validate(username, group, kind, expected):
    request = AdmissionRequest(
        user_info=UserInfo(username=username), kind=GroupVersionKind(group=group, kind=kind)
    )
    assert HostedClusterWebhook().validate(request) is expected