"""Webhook keeping ClusterLogging retention policies within the allowed range."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
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

CLUSTER_LOGGING_KIND = "ClusterLogging"
WEBHOOK_NAME = "clusterlogging-validation"
DOC_STRING = (
    "Managed OpenShift Customers may set log retention outside the allowed range of 0-7 days"
)

log = logging.getLogger(WEBHOOK_NAME)

_TIME_UNIT = re.compile(r"(?P<number>[0-9]+)(?P<unit>[yMwdhHms])")
_MAX_UINT64 = 2**64 - 1

RULES = [
    RuleWithOperations(
        operations=[Operation.CREATE, Operation.UPDATE],
        rule=Rule(
            api_groups=["logging.openshift.io"],
            api_versions=["v1"],
            resources=["clusterloggings"],
            scope="Namespaced",
        ),
    )
]


class TimeUnitError(ValueError):
    """A duration such as '7d' could not be parsed."""


def parse_time_unit(value: str) -> tuple[int, str]:
    """Split a duration like '7d' into its number and unit."""
    match = _TIME_UNIT.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise TimeUnitError(f"unable to parse timeunit '{value}' for invalid timeunit")
    digits = match["number"]
    number = int(digits)
    if number > _MAX_UINT64:
        raise TimeUnitError(f"unable to parse uint '{digits}' ")
    return number, match["unit"]


def to_seconds(number: int, unit: str) -> int:
    """Convert a duration to seconds; months and years are rough approximations."""
    if unit == "y":
        number, unit = number * 365, "d"
    if unit == "M":
        number, unit = number * 31, "d"
    if unit == "w":
        number, unit = number * 7, "d"
    if unit == "d":
        number, unit = number * 24, "h"
    if unit in ("h", "H"):
        number, unit = number * 60, "m"
    if unit == "m":
        number *= 60
    return number


def time_unit_le(lhs: str, rhs: str) -> bool:
    """True if the duration lhs is no longer than rhs."""
    return to_seconds(*parse_time_unit(lhs)) <= to_seconds(*parse_time_unit(rhs))


@dataclass(frozen=True)
class _RetentionPolicyValidator:
    name: str
    hint: str
    lower_bound: str
    upper_bound: str

    def check(self, policy: dict[str, Any] | None) -> AdmissionResponse:
        if policy is None:
            return denied(
                f"The entered retention policy is not allowed. {self.name} must not be unset. "
                f"Hint: {self.hint}"
            )
        max_age = policy.get("maxAge") or ""
        try:
            within = time_unit_le(self.lower_bound, max_age) and time_unit_le(
                max_age, self.upper_bound
            )
        except TimeUnitError as exc:
            log.error("Couldn't compare timeunits: %s", exc)
            return errored(HTTPStatus.BAD_REQUEST, exc)
        if not within:
            return denied(
                f"The entered RetentionPolicy {self.name} is not allowed. {self.hint}"
            )
        return allowed("Allowed to create ClusterLogging")


_VALIDATORS = (
    ("application", _RetentionPolicyValidator("app", "Set MaxAge to a value <= 7d, >= 1h", "1h", "7d")),
    ("infra", _RetentionPolicyValidator("infra", "MaxAge must be 1h", "1h", "1h")),
    ("audit", _RetentionPolicyValidator("audit", "audit log must be 1h", "1h", "1h")),
)


def _mapping(parent: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = parent.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"field '{key}' is not an object")
    return value


def _has_content(raw: Any) -> bool:
    return raw is not None and not (isinstance(raw, (bytes, bytearray, str)) and not raw)


class ClusterLoggingWebhook(Webhook):
    """Checks the log retention policies of ClusterLogging resources."""

    name = WEBHOOK_NAME
    doc = DOC_STRING
    timeout_seconds = 1
    classic_enabled = True
    hypershift_enabled = False

    def rules(self) -> list[RuleWithOperations]:
        return RULES

    def object_selector(self) -> None:
        return None

    def validate(self, request: AdmissionRequest) -> bool:
        return bool(request.user_info.username) and request.kind.kind == CLUSTER_LOGGING_KIND

    def authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        response = self._authorized(request)
        response.uid = request.uid
        return response

    def _authorized(self, request: AdmissionRequest) -> AdmissionResponse:
        try:
            policies = self._retention_policies(request)
        except ValueError as exc:
            return errored(HTTPStatus.BAD_REQUEST, exc)

        response = allowed("Allowed to create ClusterLogging")
        for key, validator in _VALIDATORS:
            try:
                policy = _mapping(policies, key)
            except ValueError as exc:
                return errored(HTTPStatus.BAD_REQUEST, exc)
            response = validator.check(policy)
            if not response.allowed:
                return response
        return response

    @staticmethod
    def _render_cluster_logging(request: AdmissionRequest) -> dict[str, Any]:
        """The ClusterLogging of the request, preferring the old object when present."""
        raw = request.old_object if _has_content(request.old_object) else request.obj
        if isinstance(raw, (bytes, bytearray, str)) and raw:
            try:
                raw = json.loads(raw)
            except ValueError as exc:
                raise ValueError(f"couldn't decode ClusterLogging: {exc}") from exc
        if raw is None or raw == "" or raw == b"":
            raise ValueError("there is no content to decode")
        if not isinstance(raw, dict):
            raise ValueError("ClusterLogging is not an object")
        return raw

    def _retention_policies(self, request: AdmissionRequest) -> dict[str, Any]:
        cluster_logging = self._render_cluster_logging(request)
        spec = _mapping(cluster_logging, "spec") or {}
        log_store = _mapping(spec, "logStore") or {}
        return _mapping(log_store, "retentionPolicy") or {}