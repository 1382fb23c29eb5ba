"""Webhook protecting well-known ClusterRoles from deletion."""

from __future__ import annotations

import json
import logging
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

WEBHOOK_NAME = "clusterroles-validation"
BACKPLANE_PREFIX = "backplane-"
DOC_STRING = (
    "Managed OpenShift Customers may not delete protected ClusterRoles including "
    "cluster-admin, view, edit, admin, specific system roles (system:admin, system:node, "
    "system:node-proxier, system:kube-scheduler, system:kube-controller-manager), "
    "and backplane-* roles"
)

log = logging.getLogger(WEBHOOK_NAME)

RULES = [
    RuleWithOperations(
        operations=[Operation.DELETE],
        rule=Rule(
            api_groups=["rbac.authorization.k8s.io"],
            api_versions=["v1"],
            resources=["clusterroles"],
            scope="Cluster",
        ),
    )
]

PROTECTED_CLUSTER_ROLES: tuple[str, ...] = (
    "cluster-admin",
    "view",
    "edit",
    "admin",
    "system:admin",
    "system:node",
    "system:kube-scheduler",
    "system:kube-controller-manager",
)

ALLOWED_USERS: tuple[str, ...] = ("backplane-cluster-admin",)

ALLOWED_GROUPS: tuple[str, ...] = ("system:serviceaccounts:openshift-backplane-srep",)


def is_protected_cluster_role(name: str) -> bool:
    """True if the ClusterRole name is protected explicitly or as a backplane role."""
    return name in PROTECTED_CLUSTER_ROLES or name.startswith(BACKPLANE_PREFIX)


def is_allowed_user_group(request: AdmissionRequest) -> bool:
    """True if the requesting user or one of its groups may delete protected roles."""
    if request.user_info.username in ALLOWED_USERS:
        return True
    return any(group in request.user_info.groups for group in ALLOWED_GROUPS)


def _decode_old_object(raw: Any) -> dict[str, Any]:
    """The old object of the request as a mapping; empty when there is none."""
    if raw is None or (isinstance(raw, (bytes, bytearray, str)) and not raw):
        return {}
    if isinstance(raw, (bytes, bytearray, str)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ValueError(f"couldn't decode ClusterRole: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError("ClusterRole is not an object")
    return raw


def _object_name(obj: dict[str, Any]) -> str:
    metadata = obj.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("metadata is not an object")
    return metadata.get("name") or ""


class ClusterRoleWebhook(Webhook):
    """Denies deletion of protected ClusterRoles by unprivileged users."""

    name = WEBHOOK_NAME
    doc = DOC_STRING
    timeout_seconds = 2
    classic_enabled = True
    hypershift_enabled = True

    def rules(self) -> list[RuleWithOperations]:
        return RULES

    def object_selector(self) -> None:
        return None

    def validate(self, request: AdmissionRequest) -> bool:
        return bool(request.user_info.username) and request.kind.kind == "ClusterRole"

    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        username = request.user_info.username

        if username == "system:unauthenticated":
            log.info("system:unauthenticated made a webhook request. Check RBAC rules")
            return self._with_uid(denied("Unauthenticated"), request)

        if username.startswith("system:") and username != "system:admin":
            return self._with_uid(allowed("authenticated system: users are allowed"), request)

        if username.startswith("kube:"):
            return self._with_uid(allowed("kube: users are allowed"), request)

        try:
            role_name = _object_name(_decode_old_object(request.old_object))
        except ValueError as exc:
            log.error("Couldn't render a ClusterRole from the incoming request: %s", exc)
            return errored(HTTPStatus.BAD_REQUEST, exc)

        log.info("Found clusterrole: %s", role_name)

        if (
            is_protected_cluster_role(role_name)
            and not is_allowed_user_group(request)
            and request.operation is Operation.DELETE
        ):
            log.info("Deleting operation detected on ClusterRole: %s", role_name)
            return self._with_uid(
                denied(f"Deleting ClusterRole {role_name} is not allowed"), request
            )

        return self._with_uid(allowed("Request is allowed"), request)

    @staticmethod
    def _with_uid(response: AdmissionResponse, request: AdmissionRequest) -> AdmissionResponse:
        response.uid = request.uid
        return response