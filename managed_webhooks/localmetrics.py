"""Counters the webhooks expose in the Prometheus text format."""

from __future__ import annotations

import threading
from collections.abc import Sequence


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


class CounterVec:
    """A family of counters keyed by label values."""

    def __init__(self, name: str, help: str, label_names: Sequence[str]) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._counts: dict[tuple[str, ...], int] = {}
        self._lock = threading.Lock()

    def _key(self, values: tuple[str, ...]) -> tuple[str, ...]:
        if len(values) != len(self.label_names):
            raise ValueError(
                f"{self.name}: expected {len(self.label_names)} label values, got {len(values)}"
            )
        return tuple(str(value) for value in values)

    def inc(self, *args: str) -> None:
        """Add one to the counter with these label values."""
        key = self._key(args)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + 1

    def value(self, *args: str) -> int:
        """Current count for these label values."""
        key = self._key(args)
        with self._lock:
            return self._counts.get(key, 0)

    def render(self) -> str:
        """The family in the Prometheus text exposition format."""
        lines = [
            f"# HELP {self.name} {_escape_help(self.help)}",
            f"# TYPE {self.name} counter",
        ]
        with self._lock:
            items = sorted(self._counts.items())
        for key, count in items:
            labels = ",".join(
                f'{label}="{_escape_label_value(value)}"'
                for label, value in zip(self.label_names, key)
            )
            lines.append(f"{self.name}{{{labels}}} {count}")
        return "\n".join(lines) + "\n"


NODE_WEBHOOK_BLOCKED_REQUEST = CounterVec(
    "managed_webhook_node_blocked_request",
    "Report how many times the managed node webhook has blocked requests",
    ["user"],
)

METRICS_LIST: tuple[CounterVec, ...] = (NODE_WEBHOOK_BLOCKED_REQUEST,)


def increment_node_webhook_blocked_request(user: str) -> None:
    """Count one request of this user blocked by the node webhook."""
    NODE_WEBHOOK_BLOCKED_REQUEST.inc(user)


def render_metrics() -> str:
    """All registered metrics in the Prometheus text exposition format."""
    return "".join(metric.render() for metric in METRICS_LIST)