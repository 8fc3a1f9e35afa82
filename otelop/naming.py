"""Names for the components derived from a collector instance."""

from __future__ import annotations

from .model import Collector


def config_map(otelcol: Collector) -> str:
    """Name of the config map used by the collector containers."""
    return f"{otelcol.metadata.name}-collector"


def config_map_volume() -> str:
    """Name of the config map's volume in the pod."""
    return "otc-internal"


def container() -> str:
    """Name of the collector container in the pod."""
    return "otc-container"


def collector(otelcol: Collector) -> str:
    """Name of the collector workload (deployment, daemonset, statefulset)."""
    return f"{otelcol.metadata.name}-collector"


def headless_service(otelcol: Collector) -> str:
    """Name of the headless service."""
    return f"{service(otelcol)}-headless"


def monitoring_service(otelcol: Collector) -> str:
    """Name of the monitoring service."""
    return f"{service(otelcol)}-monitoring"


def service(otelcol: Collector) -> str:
    """Name of the main service."""
    return f"{otelcol.metadata.name}-collector"


def service_account(otelcol: Collector) -> str:
    """Name of the self-provisioned service account."""
    return f"{otelcol.metadata.name}-collector"