[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "managed-webhooks"
version = "0.1.0"
description = "Validating admission webhooks that guard managed resources on Kubernetes and OpenShift clusters"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "kubernetes",
    "openshift",
    "admission",
    "webhook",
    "validation",
    "rbac",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
managed-webhooks = "managed_webhooks.server:main"
managed-webhooks-docs = "managed_webhooks.docs:main"

[tool.hatch.build.targets.wheel]
packages = ["managed_webhooks"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
