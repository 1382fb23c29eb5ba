import pytest

from managed_webhooks import k8sutil
from managed_webhooks.k8sutil import (
    NoNamespaceError,
    RunLocalError,
    get_operator_name,
    get_operator_namespace,
)


def test_namespace_forced_local(monkeypatch, tmp_path):
    monkeypatch.setenv("OSDK_FORCE_RUN_MODE", "local")
    path = tmp_path / "namespace"
    path.write_text("ns\n")
    with pytest.raises(RunLocalError, match="operator run mode forced to local"):
        get_operator_namespace(path)


def test_namespace_read_and_stripped(monkeypatch, tmp_path):
    monkeypatch.delenv("OSDK_FORCE_RUN_MODE", raising=False)
    path = tmp_path / "namespace"
    path.write_text("  openshift-validation-webhook\n")
    assert get_operator_namespace(path) == "openshift-validation-webhook"


def test_namespace_cluster_mode_reads_file(monkeypatch, tmp_path):
    monkeypatch.setenv("OSDK_FORCE_RUN_MODE", "cluster")
    path = tmp_path / "namespace"
    path.write_text("my-ns")
    assert get_operator_namespace(path) == "my-ns"


def test_namespace_missing_file(monkeypatch, tmp_path):
    monkeypatch.delenv("OSDK_FORCE_RUN_MODE", raising=False)
    with pytest.raises(NoNamespaceError, match="namespace not found"):
        get_operator_namespace(tmp_path / "absent")


def test_operator_name(monkeypatch):
    monkeypatch.setenv("OPERATOR_NAME", "validation-webhook")
    assert get_operator_name() == "validation-webhook"


def test_operator_name_unset(monkeypatch):
    monkeypatch.delenv("OPERATOR_NAME", raising=False)
    with pytest.raises(LookupError, match="OPERATOR_NAME must be set"):
        get_operator_name()


def test_operator_name_empty(monkeypatch):
    monkeypatch.setenv("OPERATOR_NAME", "")
    with pytest.raises(ValueError, match="OPERATOR_NAME must not be empty"):
        get_operator_name()


def test_run_mode_values():
    assert k8sutil.RunMode("local") is k8sutil.RunMode.LOCAL
    assert k8sutil.RunMode("cluster") is k8sutil.RunMode.CLUSTER