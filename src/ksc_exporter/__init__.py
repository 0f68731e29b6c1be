"""
KSC Exporter - Prometheus exporter for Kingsoft Cloud monitoring

Discovers the instances of each configured cloud product, works out which
monitoring metrics they expose, and republishes the fetched samples for a
Prometheus scrape.
"""

__version__ = "1.0.0"

from .config.settings import Settings

__all__ = ["Settings"]
