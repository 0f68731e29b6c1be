"""
Collector package initialization.

Exports the product collector, its background reloader and the handler
registry.
"""

from .handler import (
    DefaultProductHandler,
    KS3Handler,
    ProductHandler,
    get_handler_factory,
    register_handler,
)
from .product import ProductCollector, ProjectRefresher, SampleSink
from .reloader import ProductCollectorReloader

__all__ = [
    "ProductCollector",
    "ProductCollectorReloader",
    "ProjectRefresher",
    "SampleSink",
    "ProductHandler",
    "DefaultProductHandler",
    "KS3Handler",
    "get_handler_factory",
    "register_handler",
]
