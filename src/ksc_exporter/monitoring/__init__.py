"""
Monitoring package initialization.

Exports:
- ExporterMetrics: Prometheus metrics about the exporter itself.
"""

from .metrics import ExporterMetrics

__all__ = ["ExporterMetrics"]
