"""
Exceptions raised by KSC Exporter
"""


class KscExporterError(Exception):
    """Base exception for the exporter"""


class ConfigError(KscExporterError):
    """Exporter or product configuration is missing or invalid"""


class HandlerNotFoundError(KscExporterError):
    """No product handler is registered for a namespace"""

    def __init__(self, namespace: str):
        super().__init__(f"product handler not found, namespace={namespace}")
        self.namespace = namespace


class MetricConfigError(KscExporterError):
    """A metric could not be built from its metadata and product config"""


class SeriesLoadError(KscExporterError):
    """A series could not be attached to a metric"""
