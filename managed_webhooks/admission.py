"""Admission review types and helpers to build and send admission responses."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from http import HTTPStatus
from typing import Any, TextIO

log = logging.getLogger(__name__)

ADMISSION_API_VERSION = "admission.k8s.io/v1"
AUDIT_ANNOTATIONS = {"owner": "srep-managed-webhook"}

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class Operation(str, Enum):
    """Kind of operation an admission request gates."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


class RequestParseError(ValueError):
    """The body could not be read as an AdmissionReview request."""


@dataclass
class UserInfo:
    username: str = ""
    groups: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.username:
            data["username"] = self.username
        if self.groups:
            data["groups"] = list(self.groups)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UserInfo:
        data = data or {}
        return cls(username=data.get("username") or "", groups=list(data.get("groups") or []))


@dataclass(frozen=True)
class GroupVersionKind:
    group: str = ""
    version: str = ""
    kind: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"group": self.group, "version": self.version, "kind": self.kind}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GroupVersionKind:
        data = data or {}
        return cls(data.get("group", ""), data.get("version", ""), data.get("kind", ""))


@dataclass(frozen=True)
class GroupVersionResource:
    group: str = ""
    version: str = ""
    resource: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"group": self.group, "version": self.version, "resource": self.resource}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> GroupVersionResource:
        data = data or {}
        return cls(data.get("group", ""), data.get("version", ""), data.get("resource", ""))


@dataclass
class LabelSelectorRequirement:
    key: str
    operator: str
    values: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"key": self.key, "operator": self.operator}
        if self.values:
            data["values"] = list(self.values)
        return data


@dataclass
class LabelSelector:
    match_labels: dict[str, str] = field(default_factory=dict)
    match_expressions: list[LabelSelectorRequirement] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.match_labels:
            data["matchLabels"] = dict(self.match_labels)
        if self.match_expressions:
            data["matchExpressions"] = [expr.to_dict() for expr in self.match_expressions]
        return data


@dataclass
class Rule:
    api_groups: list[str] = field(default_factory=list)
    api_versions: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    scope: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.api_groups:
            data["apiGroups"] = list(self.api_groups)
        if self.api_versions:
            data["apiVersions"] = list(self.api_versions)
        if self.resources:
            data["resources"] = list(self.resources)
        if self.scope is not None:
            data["scope"] = self.scope
        return data


@dataclass
class RuleWithOperations:
    operations: list[Operation | str] = field(default_factory=list)
    rule: Rule = field(default_factory=Rule)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.operations:
            data["operations"] = [
                op.value if isinstance(op, Operation) else op for op in self.operations
            ]
        data.update(self.rule.to_dict())
        return data


@dataclass
class AdmissionRequest:
    uid: str = ""
    kind: GroupVersionKind = field(default_factory=GroupVersionKind)
    resource: GroupVersionResource = field(default_factory=GroupVersionResource)
    request_kind: GroupVersionKind | None = None
    name: str = ""
    namespace: str = ""
    operation: Operation | None = None
    user_info: UserInfo = field(default_factory=UserInfo)
    obj: Any = None
    old_object: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdmissionRequest:
        """Build a request from the 'request' member of an AdmissionReview."""
        operation = data.get("operation")
        request_kind = data.get("requestKind")
        return cls(
            uid=data.get("uid") or "",
            kind=GroupVersionKind.from_dict(data.get("kind")),
            resource=GroupVersionResource.from_dict(data.get("resource")),
            request_kind=GroupVersionKind.from_dict(request_kind) if request_kind else None,
            name=data.get("name") or "",
            namespace=data.get("namespace") or "",
            operation=Operation(operation) if operation else None,
            user_info=UserInfo.from_dict(data.get("userInfo")),
            obj=data.get("object"),
            old_object=data.get("oldObject"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "uid": self.uid,
            "kind": self.kind.to_dict(),
            "resource": self.resource.to_dict(),
        }
        if self.request_kind is not None:
            data["requestKind"] = self.request_kind.to_dict()
        if self.name:
            data["name"] = self.name
        if self.namespace:
            data["namespace"] = self.namespace
        data["operation"] = self.operation.value if self.operation else ""
        data["userInfo"] = self.user_info.to_dict()
        if self.obj is not None:
            data["object"] = self.obj
        if self.old_object is not None:
            data["oldObject"] = self.old_object
        return data


@dataclass
class Status:
    code: int = 0
    message: str = ""
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"metadata": {}}
        if self.message:
            data["message"] = self.message
        if self.reason:
            data["reason"] = self.reason
        if self.code:
            data["code"] = self.code
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Status:
        return cls(
            code=int(data.get("code") or 0),
            message=data.get("message") or "",
            reason=data.get("reason") or "",
        )


@dataclass
class AdmissionResponse:
    uid: str = ""
    allowed: bool = False
    status: Status | None = None
    audit_annotations: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uid": self.uid, "allowed": self.allowed}
        if self.status is not None:
            data["status"] = self.status.to_dict()
        if self.audit_annotations:
            data["auditAnnotations"] = dict(self.audit_annotations)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdmissionResponse:
        status = data.get("status")
        annotations = data.get("auditAnnotations")
        return cls(
            uid=data.get("uid") or "",
            allowed=bool(data.get("allowed", False)),
            status=Status.from_dict(status) if status is not None else None,
            audit_annotations=dict(annotations) if annotations else None,
        )


class Webhook(ABC):
    """Base class of every admission webhook."""

    name: str = ""
    doc: str = ""
    timeout_seconds: int = 2
    failure_policy: str = "Ignore"
    match_policy: str = "Equivalent"
    side_effects: str = "None"
    classic_enabled: bool = True
    hypershift_enabled: bool = True

    @abstractmethod
    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        """Decide whether the request is allowed."""

    @abstractmethod
    def validate(self, request: AdmissionRequest) -> bool:
        """Check that the request is one this webhook can judge."""

    @abstractmethod
    def rules(self) -> list[RuleWithOperations]:
        """Admission rules the webhook registers for."""

    def object_selector(self) -> LabelSelector | None:
        return None

    def get_uri(self) -> str:
        return "/" + self.name


def _validation_response(is_allowed: bool, message: str) -> AdmissionResponse:
    if is_allowed:
        status = Status(code=int(HTTPStatus.OK), message=message)
    else:
        status = Status(code=int(HTTPStatus.FORBIDDEN), message=message, reason="Forbidden")
    return AdmissionResponse(allowed=is_allowed, status=status)


def allowed(message: str) -> AdmissionResponse:
    """A response allowing the request."""
    return _validation_response(True, message)


def denied(message: str) -> AdmissionResponse:
    """A response denying the request."""
    return _validation_response(False, message)


def errored(code: int, error: BaseException | str) -> AdmissionResponse:
    """A response reporting an error with the given status code."""
    return AdmissionResponse(allowed=False, status=Status(code=int(code), message=str(error)))


def parse_admission_review(body: bytes | str) -> AdmissionRequest:
    """Read the request out of an AdmissionReview body."""
    if not body:
        raise RequestParseError("request body is empty")
    try:
        review = json.loads(body)
    except ValueError as exc:
        raise RequestParseError(f"couldn't decode admission review: {exc}") from exc
    if not isinstance(review, dict) or not isinstance(review.get("request"), dict):
        raise RequestParseError("admission review holds no request")
    try:
        return AdmissionRequest.from_dict(review["request"])
    except (ValueError, TypeError, AttributeError) as exc:
        raise RequestParseError(f"invalid admission request: {exc}") from exc


def _escape_html(text: str) -> str:
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def encode_review(response: AdmissionResponse) -> str:
    """Encode the response as a compact AdmissionReview JSON document."""
    review = {
        "kind": "AdmissionReview",
        "apiVersion": ADMISSION_API_VERSION,
        "response": response.to_dict(),
    }
    text = json.dumps(review, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return _escape_html(text)


def send_response(stream: TextIO, response: AdmissionResponse) -> None:
    """Write the response, with the ownership audit annotation, as an AdmissionReview line."""
    annotated = replace(response, audit_annotations=dict(AUDIT_ANNOTATIONS))
    try:
        payload = encode_review(annotated)
    except (TypeError, ValueError) as exc:
        log.error("Failed to encode response %r: %s", response, exc)
        send_response(stream, errored(HTTPStatus.INTERNAL_SERVER_ERROR, exc))
        return
    stream.write(payload + "\n")