"""Helpers to learn how and where the operator runs."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

log = logging.getLogger(__name__)

OPERATOR_NAME_ENV_VAR = "OPERATOR_NAME"
FORCE_RUN_MODE_ENV = "OSDK_FORCE_RUN_MODE"
NAMESPACE_FILE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


class RunMode(str, Enum):
    LOCAL = "local"
    CLUSTER = "cluster"


class RunLocalError(Exception):
    """The run mode is forced to local."""

    def __init__(self, message: str = "operator run mode forced to local") -> None:
        super().__init__(message)


class NoNamespaceError(Exception):
    """No namespace could be found for the current environment."""

    def __init__(self, message: str = "namespace not found for current environment") -> None:
        super().__init__(message)


def _is_run_mode_local() -> bool:
    return os.environ.get(FORCE_RUN_MODE_ENV) == RunMode.LOCAL.value


def get_operator_namespace(namespace_file: str | os.PathLike[str] = NAMESPACE_FILE) -> str:
    """Return the namespace the operator runs in, read from the service account."""
    if _is_run_mode_local():
        raise RunLocalError()
    try:
        text = Path(namespace_file).read_text()
    except FileNotFoundError as exc:
        raise NoNamespaceError() from exc
    namespace = text.strip()
    log.debug("Found namespace %s", namespace)
    return namespace


def get_operator_name() -> str:
    """Return the operator name from the environment."""
    name = os.environ.get(OPERATOR_NAME_ENV_VAR)
    if name is None:
        raise LookupError(f"{OPERATOR_NAME_ENV_VAR} must be set")
    if not name:
        raise ValueError(f"{OPERATOR_NAME_ENV_VAR} must not be empty")
    return name