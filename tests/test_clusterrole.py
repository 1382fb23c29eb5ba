import json

import pytest

from managed_webhooks.admission import (
    AdmissionRequest,
    GroupVersionKind,
    GroupVersionResource,
    Operation,
    UserInfo,
)
from managed_webhooks.webhooks.clusterrole import (
    WEBHOOK_NAME,
    ClusterRoleWebhook,
    is_allowed_user_group,
    is_protected_cluster_role,
)

CLUSTER_ADMIN_ROLE = """{
    "apiVersion": "rbac.authorization.k8s.io/v1",
    "kind": "ClusterRole",
    "metadata": {"name": "cluster-admin"},
    "rules": [{"apiGroups": ["*"], "resources": ["*"], "verbs": ["*"]}]
}"""

OTHER_ROLE = """{
    "apiVersion": "rbac.authorization.k8s.io/v1",
    "kind": "ClusterRole",
    "metadata": {"name": "some-custom-role"},
    "rules": [{"apiGroups": [""], "resources": ["pods"], "verbs": ["get", "list"]}]
}"""

GVK = GroupVersionKind("rbac.authorization.k8s.io", "v1", "ClusterRole")
GVR = GroupVersionResource("rbac.authorization.k8s.io", "v1", "clusterroles")


def make_request(username, groups, target, operation=Operation.DELETE, old_object=None):
    if old_object is None:
        old_object = CLUSTER_ADMIN_ROLE if target == "cluster-admin" else OTHER_ROLE
    return AdmissionRequest(
        uid="test-uid",
        kind=GVK,
        resource=GVR,
        operation=operation,
        user_info=UserInfo(username=username, groups=list(groups)),
        old_object=old_object,
    )


@pytest.mark.parametrize(
    "username,groups,target",
    [
        ("test-user", ["system:authenticated"], "cluster-admin"),
        ("cluster-admin", ["system:authenticated"], "cluster-admin"),
        ("customer-user", ["system:authenticated", "customer-admin"], "cluster-admin"),
    ],
)
def test_deletion_negative(username, groups, target):
    response = ClusterRoleWebhook().authorized(make_request(username, groups, target))
    assert response.allowed is False
    assert response.uid == "test-uid"


@pytest.mark.parametrize(
    "username,groups,target",
    [
        ("backplane-cluster-admin", ["system:authenticated"], "cluster-admin"),
        (
            "test-user",
            ["system:authenticated", "system:serviceaccounts:openshift-backplane-srep"],
            "cluster-admin",
        ),
        ("regular-user", ["system:authenticated"], "some-custom-role"),
        ("system:kube-controller-manager", ["system:authenticated"], "cluster-admin"),
    ],
)
def test_deletion_positive(username, groups, target):
    response = ClusterRoleWebhook().authorized(make_request(username, groups, target))
    assert response.allowed is True
    assert response.uid == "test-uid"


def test_denied_message_names_role():
    response = ClusterRoleWebhook().authorized(
        make_request("test-user", [], "cluster-admin")
    )
    assert response.status.message == "Deleting ClusterRole cluster-admin is not allowed"


def test_unauthenticated_is_denied():
    response = ClusterRoleWebhook().authorized(
        make_request("system:unauthenticated", [], "some-custom-role")
    )
    assert response.allowed is False
    assert response.status.message == "Unauthenticated"


def test_system_admin_is_not_auto_allowed():
    response = ClusterRoleWebhook().authorized(
        make_request("system:admin", [], "cluster-admin")
    )
    assert response.allowed is False


def test_kube_user_is_allowed():
    response = ClusterRoleWebhook().authorized(make_request("kube:admin", [], "cluster-admin"))
    assert response.allowed is True


def test_non_delete_on_protected_role_allowed():
    response = ClusterRoleWebhook().authorized(
        make_request("test-user", [], "cluster-admin", operation=Operation.UPDATE)
    )
    assert response.allowed is True


def test_dict_old_object_is_accepted():
    response = ClusterRoleWebhook().authorized(
        make_request("test-user", [], "", old_object=json.loads(CLUSTER_ADMIN_ROLE))
    )
    assert response.allowed is False


def test_invalid_old_object_is_errored():
    response = ClusterRoleWebhook().authorized(
        make_request("test-user", [], "", old_object="{not json")
    )
    assert response.allowed is False
    assert response.status.code == 400


@pytest.mark.parametrize(
    "name,expected",
    [
        ("cluster-admin", True),
        ("view", True),
        ("system:node", True),
        ("backplane-readers", True),
        ("system:node-proxier", False),
        ("some-custom-role", False),
    ],
)
def test_is_protected_cluster_role(name, expected):
    assert is_protected_cluster_role(name) is expected


def test_is_allowed_user_group():
    assert is_allowed_user_group(make_request("backplane-cluster-admin", [], "x")) is True
    assert (
        is_allowed_user_group(
            make_request("u", ["system:serviceaccounts:openshift-backplane-srep"], "x")
        )
        is True
    )
    assert is_allowed_user_group(make_request("u", ["dedicated-admins"], "x")) is False


@pytest.mark.parametrize(
    "username,kind,expected",
    [
        ("user", "ClusterRole", True),
        ("", "ClusterRole", False),
        ("user", "Role", False),
    ],
)
def test_validate(username, kind, expected):
    request = AdmissionRequest(
        kind=GroupVersionKind(kind=kind), user_info=UserInfo(username=username)
    )
    assert ClusterRoleWebhook().validate(request) is expected


def test_metadata():
    hook = ClusterRoleWebhook()
    assert hook.get_uri() == "/" + WEBHOOK_NAME
    assert hook.timeout_seconds == 2
    assert hook.object_selector() is None
    rules = hook.rules()
    assert rules[0].to_dict() == {
        "operations": ["DELETE"],
        "apiGroups": ["rbac.authorization.k8s.io"],
        "apiVersions": ["v1"],
        "resources": ["clusterroles"],
        "scope": "Cluster",
    }