"""Service account name, volumes and volume claim templates for an instance."""

from __future__ import annotations

from . import naming
from .model import Collector, Mode, ObjectMeta, PersistentVolumeClaim, Volume

DEFAULT_CONFIG_MAP_ENTRY = "collector.yaml"


def service_account_name(instance: Collector) -> str:
    """Name of the existing or self-provisioned service account to use."""
    return instance.spec.service_account or naming.service_account(instance)


def volumes(otelcol: Collector, config_map_entry: str = DEFAULT_CONFIG_MAP_ENTRY) -> list[Volume]:
    """Volumes for the instance, starting with the config map volume."""
    config_volume = Volume(
        name=naming.config_map_volume(),
        config_map=naming.config_map(otelcol),
        items=[(config_map_entry, config_map_entry)],
    )
    return [config_volume, *otelcol.spec.volumes]


def volume_claim_templates(otelcol: Collector) -> list[PersistentVolumeClaim]:
    """Volume claim templates; only stateful sets have any."""
    if otelcol.spec.mode != Mode.STATEFULSET:
        return []
    if otelcol.spec.volume_claim_templates:
        return list(otelcol.spec.volume_claim_templates)
    return [
        PersistentVolumeClaim(
            metadata=ObjectMeta(name="default-volume"),
            access_modes=["ReadWriteOnce"],
            storage="50Mi",
        )
    ]