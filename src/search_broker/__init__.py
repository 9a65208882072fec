"""Provisioning layer for managed search clusters behind a service broker."""

__version__ = "0.1.0"
