"""
Exporter and per-product configuration
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, validator

from ..errors import ConfigError


class CredentialConfig(BaseModel):
    """Access credentials passed through to the remote API clients"""

    access_key: str = Field(default="")
    secret_key: str = Field(default="")
    region: str = Field(default="cn-beijing-6")
    project_ids: list[str] = Field(default_factory=list)


class ProductConfig(BaseModel):
    """Collection options for one cloud product"""

    namespace: str = Field(..., description="Product namespace, e.g. KEC")
    exclude_metrics: list[str] = Field(default_factory=list)
    only_include_metrics: list[str] = Field(default_factory=list)
    only_include_instances: list[str] = Field(default_factory=list)
    exclude_instances: list[str] = Field(default_factory=list)
    max_instances: int | None = Field(default=None, ge=1)
    reload_interval_minutes: int = Field(default=60, ge=1)
    period_seconds: int = Field(default=60, ge=1)
    statistic_types: list[str] = Field(default=["Average"])
    extra_labels: dict[str, str] = Field(default_factory=dict)

    @validator("namespace")
    def normalize_namespace(cls, v):
        if not v.strip():
            raise ValueError("namespace must not be empty")
        return v.strip().upper()

    @validator("exclude_metrics", "only_include_metrics", each_item=True)
    def normalize_metric_name(cls, v):
        return v.lower()

    @validator("statistic_types")
    def validate_statistic_types(cls, v):
        if not v:
            raise ValueError("at least one statistic type is required")
        return v

    @property
    def reload_interval_seconds(self) -> float:
        return self.reload_interval_minutes * 60.0

    def is_metric_wanted(self, metric_name: str) -> bool:
        """Apply the include and exclude lists to a metric name"""
        name = metric_name.lower()
        if name in self.exclude_metrics:
            return False
        if self.only_include_metrics and name not in self.only_include_metrics:
            return False
        return True


class ExporterConfig(BaseModel):
    """Credentials plus the list of products to export"""

    credential: CredentialConfig = Field(default_factory=CredentialConfig)
    products: list[ProductConfig] = Field(default_factory=list)

    @validator("products")
    def validate_unique_namespaces(cls, v):
        seen = set()
        for product in v:
            if product.namespace in seen:
                raise ValueError(f"duplicate product namespace: {product.namespace}")
            seen.add(product.namespace)
        return v

    def get_product_config(self, namespace: str) -> ProductConfig:
        for product in self.products:
            if product.namespace == namespace.upper():
                return product
        raise ConfigError(f"product config not found, namespace={namespace}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExporterConfig":
        try:
            return cls(**(data or {}))
        except ValidationError as e:
            raise ConfigError(f"invalid exporter config: {e}") from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ExporterConfig":
        """Load exporter configuration from a YAML file"""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read exporter config {path}: {e}") from e

        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"exporter config {path} must be a mapping")
        return cls.from_dict(data)
