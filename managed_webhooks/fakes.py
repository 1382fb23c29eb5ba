"""Helpers to build fake admission requests and run them through a webhook."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from typing import Any, Protocol

from managed_webhooks.admission import (
    AdmissionRequest,
    AdmissionResponse,
    GroupVersionKind,
    GroupVersionResource,
    Operation,
    UserInfo,
    parse_admission_review,
    send_response,
)


class _Authorizer(Protocol):
    def authorized(self, request: AdmissionRequest) -> AdmissionResponse: ...


@dataclass(frozen=True)
class FakeHTTPRequest:
    """An HTTP request as a webhook server would receive it."""

    method: str
    uri: str
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)


def can_can_not(flag: bool) -> str:
    """Render a boolean as 'can' or 'can not'."""
    words = ["can"]
    if not flag:
        words.append("not")
    return " ".join(words)


def _as_json_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, str)):
        return json.loads(value)
    return value


def create_fake_request_json(
    uid: str,
    gvk: GroupVersionKind,
    gvr: GroupVersionResource,
    operation: Operation | str,
    username: str,
    user_groups: list[str] | None,
    namespace: str,
    obj: Any,
    old_object: Any = None,
) -> bytes:
    """Render an AdmissionReview body.

    The object lands in 'object' or 'oldObject' according to the operation:
    deletes carry it as the old object, updates carry both.
    """
    operation = Operation(operation)
    request = AdmissionRequest(
        uid=uid,
        kind=gvk,
        request_kind=gvk,
        resource=gvr,
        operation=operation,
        namespace=namespace,
        user_info=UserInfo(username=username, groups=list(user_groups or [])),
    )
    value = _as_json_value(obj)
    if operation is Operation.CREATE:
        request.obj = value
    elif operation is Operation.UPDATE:
        request.obj = value
        request.old_object = _as_json_value(old_object) if old_object is not None else value
    elif operation is Operation.DELETE:
        request.old_object = value
    return json.dumps({"request": request.to_dict()}).encode()


def create_http_request(
    uri: str,
    uid: str,
    gvk: GroupVersionKind,
    gvr: GroupVersionResource,
    operation: Operation | str,
    username: str,
    user_groups: list[str] | None,
    namespace: str,
    obj: Any,
    old_object: Any = None,
) -> FakeHTTPRequest:
    """Build a POST request carrying an AdmissionReview body."""
    body = create_fake_request_json(
        uid, gvk, gvr, operation, username, user_groups, namespace, obj, old_object
    )
    return FakeHTTPRequest(
        method="POST", uri=uri, body=body, headers={"Content-Type": "application/json"}
    )


def send_http_request(request: FakeHTTPRequest, webhook: _Authorizer) -> AdmissionResponse:
    """Hand the request to the webhook and decode the response it sends back."""
    admission_request = parse_admission_review(request.body)
    response = webhook.authorized(admission_request)
    buf = io.StringIO()
    send_response(buf, response)
    review = json.loads(buf.getvalue())
    return AdmissionResponse.from_dict(review["response"])