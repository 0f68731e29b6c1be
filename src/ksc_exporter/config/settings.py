"""
Configuration settings for KSC Exporter
"""

from enum import Enum
from pathlib import Path

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Environment types"""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log levels"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CollectorSettings(BaseSettings):
    """Collection pipeline tuning"""

    query_metric_batch_size: int = Field(default=50, ge=1)
    ks3_query_metric_batch_size: int = Field(default=10, ge=1)

    # Upper bound of instances loaded for multi-dimension products
    default_support_instances: int = Field(default=100, ge=1)

    # A metric is queried only if loaded within this many seconds of cycle start
    recency_window_seconds: float = Field(default=60.0, gt=0)

    multi_dimension_namespaces: list[str] = Field(
        default=["KEC", "EPC", "KCE", "EBS", "SLB", "EIP", "NAT", "PEER", "BWS"]
    )
    not_support_instance_namespaces: list[str] = Field(default=["KS3"])

    @validator("multi_dimension_namespaces", "not_support_instance_namespaces", each_item=True)
    def normalize_namespace(cls, v):
        return v.upper()

    def batch_size_for(self, namespace: str) -> int:
        """Query batch size accepted by the monitoring API for a namespace"""
        if namespace.upper() == "KS3":
            return self.ks3_query_metric_batch_size
        return self.query_metric_batch_size

    def is_multi_dimension(self, namespace: str) -> bool:
        return namespace.upper() in self.multi_dimension_namespaces

    def supports_instance_discovery(self, namespace: str) -> bool:
        return namespace.upper() not in self.not_support_instance_namespaces

    class Config:
        env_prefix = "KSC_COLLECTOR_"


class MonitoringSettings(BaseSettings):
    """Self-monitoring configuration"""

    metric_prefix: str = Field(default="ksc_exporter")

    class Config:
        env_prefix = "KSC_MONITORING_"


class Settings(BaseSettings):
    """Main application settings"""

    # Environment
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    log_level: LogLevel = Field(default=LogLevel.INFO)

    # Exposition endpoint
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=9123)

    app_name: str = Field(default="KSC Exporter")
    app_version: str = Field(default="1.0.0")

    # Products, credentials and per-product options
    config_file: Path = Field(default=Path("ksc-exporter.yml"))

    # Component settings
    collector: CollectorSettings = Field(default_factory=CollectorSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @validator("environment", pre=True)
    def validate_environment(cls, v):
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @validator("log_level", pre=True)
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development"""
        return self.environment == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing"""
        return self.environment == Environment.TESTING

    class Config:
        env_prefix = "KSC_EXPORTER_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
