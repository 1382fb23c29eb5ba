"""Webhook restricting deletion of HostedCluster resources."""

from __future__ import annotations

import logging

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

WEBHOOK_NAME = "hostedcluster-validation"
DOC_STRING = (
    "Validates HostedCluster deletion operations are only performed by authorized "
    "service accounts"
)
ALLOWED_SERVICE_ACCOUNT = "system:serviceaccount:open-cluster-management-agent:klusterlet-work-sa"

log = logging.getLogger(WEBHOOK_NAME)

RULES = [
    RuleWithOperations(
        operations=[Operation.DELETE],
        rule=Rule(
            api_groups=["hypershift.openshift.io"],
            api_versions=["*"],
            resources=["hostedclusters"],
            scope="Namespaced",
        ),
    )
]


class HostedClusterWebhook(Webhook):
    """Allows only the klusterlet work service account to delete HostedClusters."""

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
        return "/hostedcluster-validation"

    def validate(self, request: AdmissionRequest) -> bool:
        return (
            bool(request.user_info.username)
            and request.kind.kind == "HostedCluster"
            and request.kind.group == "hypershift.openshift.io"
        )

    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        if request.user_info.username == ALLOWED_SERVICE_ACCOUNT:
            response = allowed("Service account is authorized to delete HostedCluster resources")
        elif request.operation is not Operation.DELETE:
            response = allowed("Only DELETE operations are restricted")
        else:
            log.info(
                "Unauthorized attempt to delete HostedCluster user=%s groups=%s",
                request.user_info.username,
                request.user_info.groups,
            )
            response = denied(
                f"Only {ALLOWED_SERVICE_ACCOUNT} is authorized to delete HostedCluster resources"
            )
        response.uid = request.uid
        return response