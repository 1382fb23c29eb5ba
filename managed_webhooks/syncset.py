"""Group resources by cluster label selector and render SelectorSyncSets from them."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from managed_webhooks.admission import LabelSelector

SYNC_SET_NAME_PREFIX = "managed-cluster-validating-webhooks"
SELECTOR_SYNC_SET_KIND = "SelectorSyncSet"
HIVE_API_VERSION = "hive.openshift.io/v1"
SYNC_RESOURCE_APPLY_MODE = "Sync"


class EncodingError(ValueError):
    """An object could not be encoded as JSON."""


@dataclass
class _Entry:
    key: LabelSelector
    values: list[Any] = field(default_factory=list)


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def encode(obj: Any) -> bytes:
    """Encode an object as compact JSON bytes."""
    try:
        text = json.dumps(
            obj, default=_json_default, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        )
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Error encoding {obj!r}: {exc}") from exc
    return text.encode("utf-8")


def _raw_resource(value: Any) -> Any:
    """Resources handed over as raw JSON bytes are embedded as the document they hold."""
    if isinstance(value, (bytes, bytearray)):
        try:
            return json.loads(value)
        except ValueError as exc:
            raise EncodingError(f"resource is not valid JSON: {exc}") from exc
    return value


class SyncSetResourcesByLabelSelector:
    """Resources keyed by the label selector of the clusters they are synced to.

    Keys are compared by value, so two equal selectors share one entry.
    """

    def __init__(self) -> None:
        self._entries: list[_Entry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, key: LabelSelector, obj: Any) -> None:
        """Add a resource under the given selector."""
        entry = self.get(key)
        if entry is not None:
            entry.values.append(obj)
            return
        self._entries.append(_Entry(key=key, values=[obj]))

    def get(self, key: LabelSelector) -> _Entry | None:
        """The entry for the selector, or None if there is none."""
        return next((entry for entry in self._entries if entry.key == key), None)

    def render_selector_sync_sets(self, labels: Mapping[str, str] | None) -> list[bytes]:
        """One encoded SelectorSyncSet per distinct selector, in insertion order."""
        return [
            encode(
                _selector_sync_set(
                    f"{SYNC_SET_NAME_PREFIX}-{index}", entry.values, entry.key, labels
                )
            )
            for index, entry in enumerate(self._entries)
        ]


def _selector_sync_set(
    name: str,
    resources: list[Any],
    selector: LabelSelector,
    labels: Mapping[str, str] | None,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "creationTimestamp": None}
    if labels:
        metadata["labels"] = dict(labels)
    return {
        "kind": SELECTOR_SYNC_SET_KIND,
        "apiVersion": HIVE_API_VERSION,
        "metadata": metadata,
        "spec": {
            "resourceApplyMode": SYNC_RESOURCE_APPLY_MODE,
            "resources": [_raw_resource(resource) for resource in resources],
            "clusterDeploymentSelector": selector.to_dict(),
        },
        "status": {},
    }


def encode_and_fix_daemonset(daemonset: Mapping[str, Any]) -> bytes:
    """Encode a DaemonSet with its service account fields present and emptied.

    serviceAccountName is only emptied when it is not already set; the
    deprecated serviceAccount is always emptied.
    """
    decoded = json.loads(encode(daemonset))
    pod_spec = decoded.setdefault("spec", {}).setdefault("template", {}).setdefault("spec", {})
    if not pod_spec.get("serviceAccountName"):
        pod_spec["serviceAccountName"] = ""
    pod_spec["serviceAccount"] = ""
    return encode(decoded)


def _ca_bundle_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _encode_fixing_ca(configuration: Mapping[str, Any]) -> bytes:
    webhooks = configuration.get("webhooks") or []
    if not webhooks:
        raise EncodingError("Require at least one webhook")
    client_config = webhooks[0].get("clientConfig") or {}
    ca_bundle = _ca_bundle_text(client_config.get("caBundle"))

    encoded = encode(configuration)
    if not ca_bundle:
        return encoded

    decoded = json.loads(encoded)
    decoded["webhooks"][0].setdefault("clientConfig", {})["caBundle"] = ca_bundle
    return encode(decoded)


def encode_validating_and_fix_ca(configuration: Mapping[str, Any]) -> bytes:
    """Encode a ValidatingWebhookConfiguration keeping the first caBundle as plain text."""
    return _encode_fixing_ca(configuration)


def encode_mutating_and_fix_ca(configuration: Mapping[str, Any]) -> bytes:
    """Encode a MutatingWebhookConfiguration keeping the first caBundle as plain text."""
    return _encode_fixing_ca(configuration)