"""Webhook protecting ClusterRoleBindings of managed service accounts from deletion."""

from __future__ import annotations

import json
import logging
import re
from http import HTTPStatus
from typing import Any

from managed_webhooks.admission import (
    AdmissionRequest,
    AdmissionResponse,
    Operation,
    Rule,
    RuleWithOperations,
    Webhook,
    allowed,
    denied,
    errored,
)

WEBHOOK_NAME = "clusterrolebindings-validation"
MANAGED_NAMESPACES = "(^openshift-.*|kube-system)"
DOC_STRING = (
    "Managed OpenShift Customers may not delete the cluster role bindings under the "
    "managed namespaces: %s"
)

log = logging.getLogger(WEBHOOK_NAME)

RULES = [
    RuleWithOperations(
        operations=[Operation.DELETE],
        rule=Rule(
            api_groups=["rbac.authorization.k8s.io"],
            api_versions=["v1"],
            resources=["clusterrolebindings"],
            scope="Cluster",
        ),
    )
]

_PROTECTED_NAMESPACES = re.compile(MANAGED_NAMESPACES)

EXCEPTION_NAMESPACES: tuple[str, ...] = (
    "openshift-logging",
    "openshift-user-workload-monitoring",
    "openshift-operators",
    "openshift-backplane-managed-scripts",
    "openshift-gitops",
)

ALLOWED_USERS: tuple[str, ...] = ("backplane-cluster-admin",)

ALLOWED_GROUPS: tuple[str, ...] = ("system:serviceaccounts:openshift-backplane-srep",)

_MUST_GATHER_ANNOTATION = "oc.openshift.io/command"
_MUST_GATHER_COMMAND = "oc adm must-gather"


def is_allowed_user_group(request: AdmissionRequest) -> bool:
    """True if the requesting user or one of its groups may delete protected bindings."""
    if request.user_info.username in ALLOWED_USERS:
        return True
    return any(group in request.user_info.groups for group in ALLOWED_GROUPS)


def is_protected_namespace(binding: dict[str, Any]) -> bool:
    """True if the binding has a service account subject in a managed namespace."""
    for subject in binding.get("subjects") or []:
        if not isinstance(subject, dict) or subject.get("kind") != "ServiceAccount":
            continue
        namespace = subject.get("namespace") or ""
        if _PROTECTED_NAMESPACES.search(namespace) and namespace not in EXCEPTION_NAMESPACES:
            return True
    return False


def _decode_old_object(raw: Any) -> dict[str, Any]:
    """The old object of the request as a mapping; empty when there is none."""
    if raw is None or (isinstance(raw, (bytes, bytearray, str)) and not raw):
        return {}
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ValueError(f"couldn't decode ClusterRoleBinding: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError("ClusterRoleBinding is not an object")
    subjects = raw.get("subjects")
    if subjects is not None and not isinstance(subjects, list):
        raise ValueError("subjects is not a list")
    metadata = raw.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise ValueError("metadata is not an object")
    return raw


class ClusterRoleBindingWebhook(Webhook):
    """Denies deletion of bindings that grant roles to managed service accounts."""

    name = WEBHOOK_NAME
    doc = DOC_STRING % MANAGED_NAMESPACES
    timeout_seconds = 2
    classic_enabled = True
    hypershift_enabled = True

    def rules(self) -> list[RuleWithOperations]:
        return RULES

    def object_selector(self) -> None:
        return None

    def validate(self, request: AdmissionRequest) -> bool:
        return bool(request.user_info.username) and request.kind.kind == "ClusterRoleBinding"

    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        username = request.user_info.username

        if username == "system:unauthenticated":
            log.info("system:unauthenticated made a webhook request. Check RBAC rules")
            return self._with_uid(denied("Unauthenticated"), request)
        if username.startswith("system:"):
            return self._with_uid(allowed("authenticated system: users are allowed"), request)
        if username.startswith("kube:"):
            return self._with_uid(allowed("kube: users are allowed"), request)

        try:
            binding = _decode_old_object(request.old_object)
        except ValueError as exc:
            log.error("Couldn't render a ClusterRoleBinding from the incoming request: %s", exc)
            return errored(HTTPStatus.BAD_REQUEST, exc)

        metadata = binding.get("metadata") or {}
        binding_name = metadata.get("name") or ""
        log.info("Found clusterrolebinding: %s", binding_name)

        if (
            is_protected_namespace(binding)
            and not is_allowed_user_group(request)
            and request.operation is Operation.DELETE
        ):
            log.info("Deleting operation detected on ClusterRoleBinding: %s", binding_name)
            annotations = metadata.get("annotations") or {}
            if (
                annotations.get(_MUST_GATHER_ANNOTATION) == _MUST_GATHER_COMMAND
                and username == "cluster-admin"
            ):
                return self._with_uid(
                    allowed("cluster-admin: cluster-admin may manage must-gather resources"),
                    request,
                )
            return self._with_uid(
                denied(f"Deleting ClusterRoleBinding {binding_name} is not allowed"), request
            )

        return self._with_uid(allowed("Request is allowed"), request)

    @staticmethod
    def _with_uid(response: AdmissionResponse, request: AdmissionRequest) -> AdmissionResponse:
        response.uid = request.uid
        return response