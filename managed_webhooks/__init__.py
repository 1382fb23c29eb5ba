"""Validating admission webhooks that guard managed cluster resources, with a server to host them."""

__version__ = "0.1.0"