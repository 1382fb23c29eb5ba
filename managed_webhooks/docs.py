"""Generate JSON documentation of the registered webhooks."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable, Mapping
from typing import Any, TextIO

from managed_webhooks.admission import Webhook
from managed_webhooks.registry import registered_webhooks


def build_docs(
    hooks: Mapping[str, Callable[[], Webhook]], hide_rules: bool = False
) -> list[dict[str, Any]]:
    """Documentation entries for the hooks, sorted by registered name."""
    docs: list[dict[str, Any]] = []
    for name in sorted(hooks):
        hook = hooks[name]()
        entry: dict[str, Any] = {"webhookName": hook.name}
        if not hide_rules:
            rules = [rule.to_dict() for rule in hook.rules()]
            if rules:
                entry["rules"] = rules
            selector = hook.object_selector()
            if selector is not None:
                entry["webhookObjectSelector"] = selector.to_dict()
        entry["documentString"] = hook.doc
        docs.append(entry)
    return docs


def write_docs(stream: TextIO, hide_rules: bool = False) -> None:
    """Write the documentation of every registered webhook as indented JSON."""
    docs = build_docs(registered_webhooks(), hide_rules)
    stream.write(json.dumps(docs, indent=2, ensure_ascii=False))
    stream.write("\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Document the admission webhooks.")
    parser.add_argument(
        "-hideRules", "--hide-rules", dest="hide_rules", action="store_true",
        help="Hide the Admission Rules?",
    )
    args = parser.parse_args(argv)
    write_docs(sys.stdout, args.hide_rules)
    return 0


if __name__ == "__main__":
    sys.exit(main())