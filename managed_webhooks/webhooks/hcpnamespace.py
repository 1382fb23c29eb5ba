"""Webhook restricting deletion of hosted control plane namespaces."""

from __future__ import annotations

import logging
import re

from managed_webhooks.admission import (
    AdmissionRequest,
    AdmissionResponse,
    Operation,
    Rule,
    RuleWithOperations,
    Webhook,
    allowed,
    denied,
)

WEBHOOK_NAME = "hcpnamespace-validation"
DOC_STRING = (
    "Validates HCP namespace deletion operations are only performed by authorized "
    "service accounts"
)

log = logging.getLogger(WEBHOOK_NAME)

ALLOWED_USERS: tuple[str, ...] = (
    "system:admin",
    "system:serviceaccount:open-cluster-management-agent:klusterlet-work-sa",
    "system:serviceaccount:open-cluster-management-agent:klusterlet",
    "system:serviceaccount:hypershift:operator",
    "system:serviceaccount:ocm:ocm",
    "system:serviceaccount:kube-system:namespace-controller",
)

PROTECTED_NAMESPACE_PATTERNS: tuple[str, ...] = (
    "^ocm-staging-.*",
    "^ocm-production-.*",
    "^ocm-integration-.*",
    "^klusterlet-.*",
    "^hs-mc-.*",
)

_PROTECTED_NAMESPACE_REGEXPS = tuple(re.compile(p) for p in PROTECTED_NAMESPACE_PATTERNS)

RULES = [
    RuleWithOperations(
        operations=[Operation.DELETE],
        rule=Rule(
            api_groups=[""],
            api_versions=["*"],
            resources=["namespaces"],
            scope="Cluster",
        ),
    )
]


def is_protected_namespace(name: str) -> bool:
    """True if the namespace name matches one of the protected patterns."""
    return any(regexp.search(name) for regexp in _PROTECTED_NAMESPACE_REGEXPS)


class HCPNamespaceWebhook(Webhook):
    """Allows only authorized accounts to delete hosted control plane namespaces."""

    name = WEBHOOK_NAME
    doc = DOC_STRING
    timeout_seconds = 2
    classic_enabled = True
    hypershift_enabled = False

    def rules(self) -> list[RuleWithOperations]:
        return RULES

    def object_selector(self) -> None:
        return None

    def get_uri(self) -> str:
        return "/hcpnamespace-validation"

    def validate(self, request: AdmissionRequest) -> bool:
        return bool(request.user_info.username) and request.kind.kind == "Namespace"

    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        if request.user_info.username in ALLOWED_USERS:
            response = allowed("User/ServiceAccount is authorized to delete HCP namespaces")
        elif not is_protected_namespace(request.name):
            response = allowed("Namespace is not protected")
        elif request.operation is not Operation.DELETE:
            response = allowed("Only DELETE operations are restricted")
        else:
            log.info(
                "Unauthorized attempt to delete protected namespace user=%s namespace=%s groups=%s",
                request.user_info.username,
                request.name,
                request.user_info.groups,
            )
            response = denied(
                "Only authorized users/service accounts can delete this namespace "
                f"{request.name}"
            )
        response.uid = request.uid
        return response