import json

import pytest

from managed_webhooks.admission import GroupVersionKind, GroupVersionResource, Operation
from managed_webhooks.dispatcher import Dispatcher
from managed_webhooks.fakes import create_fake_request_json
from managed_webhooks.registry import registered_webhooks
from managed_webhooks.webhooks.clusterrole import ClusterRoleWebhook

GVK = GroupVersionKind("rbac.authorization.k8s.io", "v1", "ClusterRole")
GVR = GroupVersionResource("rbac.authorization.k8s.io", "v1", "clusterroles")
ROLE = {"apiVersion": "rbac.authorization.k8s.io/v1", "kind": "ClusterRole",
        "metadata": {"name": "cluster-admin"}}


@pytest.fixture
def dispatcher():
    return Dispatcher(registered_webhooks())


def _body(username, gvk=GVK):
    return create_fake_request_json(
        "test-uid", gvk, GVR, Operation.DELETE, username, ["system:authenticated"], "", ROLE
    )


def test_uris_cover_all_hooks(dispatcher):
    expected = sorted(factory().get_uri() for factory in registered_webhooks().values())
    assert dispatcher.uris == expected


def test_denied_request(dispatcher):
    uri = ClusterRoleWebhook().get_uri()
    status, payload = dispatcher.handle_request(uri, _body("test-user"))
    review = json.loads(payload)
    assert status == 200
    assert review["kind"] == "AdmissionReview"
    assert review["response"]["allowed"] is False
    assert review["response"]["uid"] == "test-uid"
    assert review["response"]["auditAnnotations"] == {"owner": "srep-managed-webhook"}


def test_allowed_request_with_query(dispatcher):
    uri = ClusterRoleWebhook().get_uri() + "?timeout=2s"
    status, payload = dispatcher.handle_request(uri, _body("backplane-cluster-admin"))
    assert status == 200
    assert json.loads(payload)["response"]["allowed"] is True


def test_unknown_path_is_404(dispatcher):
    status, payload = dispatcher.handle_request("/nothing-here", _body("test-user"))
    response = json.loads(payload)["response"]
    assert status == 404
    assert response["status"]["code"] == 400
    assert response["status"]["message"] == "request is not for a registered webhook"


@pytest.mark.parametrize("body", [b"", b"not json", b"{}"])
def test_unparsable_body_is_400(dispatcher, body):
    status, payload = dispatcher.handle_request(ClusterRoleWebhook().get_uri(), body)
    assert status == 400
    assert json.loads(payload)["response"]["allowed"] is False


def test_invalid_request_is_reported_in_body(dispatcher):
    body = _body("test-user", gvk=GroupVersionKind("", "v1", "Pod"))
    status, payload = dispatcher.handle_request(ClusterRoleWebhook().get_uri(), body)
    response = json.loads(payload)["response"]
    assert status == 200
    assert response["allowed"] is False
    assert response["status"]["code"] == 400
    assert response["status"]["message"] == "not a valid webhook request"