"""
Per-namespace product handlers

A handler decides where a product's instances come from and how a metric
is expanded into concrete series. Handlers are looked up by namespace in a
factory registry filled with the register_handler decorator.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from ..errors import HandlerNotFoundError
from ..instance.base import KscInstance
from ..metric.metric import Metric, Series

if TYPE_CHECKING:
    from .product import ProductCollector


class ProductHandler(Protocol):
    async def get_instances(self) -> list[KscInstance]:
        ...

    async def get_series_by_instances(self, metric: Metric, instances: list[KscInstance]) -> list[Series]:
        ...


HandlerFactory = Callable[["ProductCollector"], ProductHandler]

_handler_factories: dict[str, HandlerFactory] = {}


def register_handler(*namespaces: str) -> Callable[[HandlerFactory], HandlerFactory]:
    """Register a handler factory for one or more namespaces"""

    def decorator(factory: HandlerFactory) -> HandlerFactory:
        for namespace in namespaces:
            _handler_factories[namespace.upper()] = factory
        return factory

    return decorator


def get_handler_factory(namespace: str) -> HandlerFactory:
    try:
        return _handler_factories[namespace.upper()]
    except KeyError:
        raise HandlerNotFoundError(namespace) from None


@register_handler(
    "KEC", "EPC", "KCE", "EBS", "SLB", "EIP", "NAT", "PEER", "BWS",
    "KRDS", "KCS", "MONGODB", "KAFKA", "POSTGRESQL",
)
class DefaultProductHandler:
    """Instances come from the collector's instance cache; one series per instance"""

    dimension_name = "InstanceId"

    def __init__(self, collector: ProductCollector):
        self.collector = collector

    async def get_instances(self) -> list[KscInstance]:
        product_conf = self.collector.product_conf
        cache = self.collector.instance_cache
        if cache is None:
            # No discovery API, fall back to the configured instances
            return [KscInstance(instance_id=i) for i in product_conf.only_include_instances]
        return self.filter_instances(await cache.list_instances())

    def filter_instances(self, instances: list[KscInstance]) -> list[KscInstance]:
        include = set(self.collector.product_conf.only_include_instances)
        exclude = set(self.collector.product_conf.exclude_instances)
        return [
            ins for ins in instances
            if (not include or ins.instance_id in include) and ins.instance_id not in exclude
        ]

    def dimension_value(self, instance: KscInstance) -> str:
        return instance.instance_id

    async def get_series_by_instances(self, metric: Metric, instances: list[KscInstance]) -> list[Series]:
        return [
            Series(
                metric_name=metric.name,
                instance_id=ins.instance_id,
                dimensions={self.dimension_name: self.dimension_value(ins)},
            )
            for ins in instances
        ]


@register_handler("KS3")
class KS3Handler(DefaultProductHandler):
    """Object storage buckets are addressed by bucket name"""

    dimension_name = "BucketName"

    def dimension_value(self, instance: KscInstance) -> str:
        return instance.name or instance.instance_id
