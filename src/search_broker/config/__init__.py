"""Configuration management for the search broker providers."""

from .models import (
    ClusterConfig,
    DomainSettings,
    ProviderSettings,
    VPCOptions,
)
from .parser import load_settings, parse_domain_settings

__all__ = [
    "ClusterConfig",
    "DomainSettings",
    "ProviderSettings",
    "VPCOptions",
    "load_settings",
    "parse_domain_settings",
]
