"""Webhook keeping customers from editing hive-managed resources."""

from __future__ import annotations

from managed_webhooks.admission import (
    AdmissionRequest,
    AdmissionResponse,
    LabelSelector,
    Operation,
    Rule,
    RuleWithOperations,
    Webhook,
    allowed,
    denied,
)

WEBHOOK_NAME = "hiveownership-validation"
DOC_STRING = (
    "Managed OpenShift customers may not edit certain managed resources. A managed "
    'resource has a "hive.openshift.io/managed": "true" label.'
)
MANAGED_LABEL = "hive.openshift.io/managed"

PRIVILEGED_USERS: tuple[str, ...] = (
    "kube:admin",
    "system:admin",
    "system:serviceaccount:kube-system:generic-garbage-collector",
    "backplane-cluster-admin",
)
ADMIN_GROUPS: tuple[str, ...] = ("system:serviceaccounts:openshift-backplane-srep",)

RULES = [
    RuleWithOperations(
        operations=[Operation.UPDATE, Operation.DELETE],
        rule=Rule(
            api_groups=["quota.openshift.io"],
            api_versions=["*"],
            resources=["clusterresourcequotas"],
            scope="Cluster",
        ),
    )
]

_DENIED_MESSAGE = (
    "Prevented from accessing Red Hat managed resources. This is in an effort to prevent "
    "harmful actions that may cause unintended consequences or affect the stability of the "
    "cluster. If you have any questions about this, please reach out to Red Hat support at "
    "https://access.redhat.com/support"
)


class HiveOwnershipWebhook(Webhook):
    """Denies changes to hive-labelled resources unless made by administrators."""

    name = WEBHOOK_NAME
    doc = DOC_STRING
    timeout_seconds = 2
    classic_enabled = True
    hypershift_enabled = False

    def rules(self) -> list[RuleWithOperations]:
        return RULES

    def object_selector(self) -> LabelSelector:
        return LabelSelector(match_labels={MANAGED_LABEL: "true"})

    def validate(self, request: AdmissionRequest) -> bool:
        return bool(request.user_info.username)

    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        if request.user_info.username in PRIVILEGED_USERS:
            response = allowed("Admin users may edit managed resources")
        elif any(group in ADMIN_GROUPS for group in request.user_info.groups):
            response = allowed("Members of admin group may edit managed resources")
        else:
            response = denied(_DENIED_MESSAGE)
        response.uid = request.uid
        return response