import io
import json

from managed_webhooks.docs import build_docs, main, write_docs
from managed_webhooks.registry import registered_webhooks
from managed_webhooks.webhooks import hiveownership, hostedcluster


def _by_name(docs):
    return {entry["webhookName"]: entry for entry in docs}


def test_entries_sorted_and_complete():
    docs = build_docs(registered_webhooks())
    names = [entry["webhookName"] for entry in docs]
    assert names == sorted(registered_webhooks())


def test_entry_contents():
    docs = _by_name(build_docs(registered_webhooks()))
    hc = docs[hostedcluster.WEBHOOK_NAME]
    assert hc["documentString"] == hostedcluster.DOC_STRING
    assert hc["rules"] == [rule.to_dict() for rule in hostedcluster.RULES]
    assert "webhookObjectSelector" not in hc
    hive = docs[hiveownership.WEBHOOK_NAME]
    assert hive["webhookObjectSelector"] == {
        "matchLabels": {"hive.openshift.io/managed": "true"}
    }


def test_hide_rules():
    docs = build_docs(registered_webhooks(), hide_rules=True)
    for entry in docs:
        assert set(entry) == {"webhookName", "documentString"}


def test_key_order():
    entry = _by_name(build_docs(registered_webhooks()))[hiveownership.WEBHOOK_NAME]
    assert list(entry) == ["webhookName", "rules", "webhookObjectSelector", "documentString"]


def test_write_docs_round_trip():
    buf = io.StringIO()
    write_docs(buf)
    text = buf.getvalue()
    assert text.endswith("\n")
    assert json.loads(text) == build_docs(registered_webhooks())


def test_main_hide_rules(capsys):
    assert main(["-hideRules"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == build_docs(registered_webhooks(), hide_rules=True)