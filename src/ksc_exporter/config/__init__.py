"""
Configuration package initialization.

Exports runtime settings plus the exporter/product configuration models.
"""

from .product import CredentialConfig, ExporterConfig, ProductConfig
from .settings import (
    CollectorSettings,
    Environment,
    LogLevel,
    MonitoringSettings,
    Settings,
    settings,
)

__all__ = [
    "Settings",
    "settings",
    "Environment",
    "LogLevel",
    "CollectorSettings",
    "MonitoringSettings",
    "CredentialConfig",
    "ExporterConfig",
    "ProductConfig",
]
