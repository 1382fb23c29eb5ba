"""Registry of the admission webhooks the server offers, keyed by name."""

from __future__ import annotations

import threading
from collections.abc import Callable

from managed_webhooks.admission import Webhook
from managed_webhooks.webhooks import (
    clusterlogging,
    clusterrole,
    clusterrolebinding,
    hcpnamespace,
    hiveownership,
    hostedcluster,
)

WebhookFactory = Callable[[], Webhook]

_registry: dict[str, WebhookFactory] = {}
_lock = threading.Lock()


class DuplicateWebhookError(ValueError):
    """A webhook was registered twice under the same name."""


def register(name: str, factory: WebhookFactory) -> None:
    """Register a factory that builds the webhook of the given name."""
    with _lock:
        if name in _registry:
            raise DuplicateWebhookError(f"webhook {name!r} is already registered")
        _registry[name] = factory


def registered_webhooks() -> dict[str, WebhookFactory]:
    """A copy of the registered webhook factories, keyed by name."""
    with _lock:
        return dict(_registry)


register(clusterlogging.WEBHOOK_NAME, clusterlogging.ClusterLoggingWebhook)
register(clusterrole.WEBHOOK_NAME, clusterrole.ClusterRoleWebhook)
register(clusterrolebinding.WEBHOOK_NAME, clusterrolebinding.ClusterRoleBindingWebhook)
register(hcpnamespace.WEBHOOK_NAME, hcpnamespace.HCPNamespaceWebhook)
register(hiveownership.WEBHOOK_NAME, hiveownership.HiveOwnershipWebhook)
register(hostedcluster.WEBHOOK_NAME, hostedcluster.HostedClusterWebhook)