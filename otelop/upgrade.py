"""Bring managed collector instances up to the current version."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import semver

from . import upgrade_steps as steps
from .model import Collector
from .upgrade_steps import UpgradeError

COLLECTOR_KIND = "OpenTelemetryCollector"
MANAGED_BY_LABELS = {"app.kubernetes.io/managed-by": "opentelemetry-operator"}

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionStep:
    """A known version and the step that migrates an instance to it."""

    version: semver.Version
    upgrade: Callable[[Any, Collector], Collector]

    def __str__(self) -> str:
        return str(self.version)


def _step(text: str, upgrade: Callable[[Any, Collector], Collector]) -> VersionStep:
    return VersionStep(semver.Version.parse(text), upgrade)


VERSIONS: tuple[VersionStep, ...] = (
    _step("0.2.10", steps.upgrade_0_2_10),
    _step("0.9.0", steps.upgrade_0_9_0),
    _step("0.15.0", steps.upgrade_0_15_0),
    _step("0.19.0", steps.upgrade_0_19_0),
    _step("0.24.0", steps.upgrade_0_24_0),
)

# The latest version that needs an upgrade step, not necessarily the latest known version.
LATEST = VERSIONS[-1]


def _parse_version(text: str) -> semver.Version:
    candidate = text[1:] if text[:1] in ("v", "V") else text
    return semver.Version.parse(candidate, optional_minor_and_patch=True)


def managed_instance(current_version: str, client: Any, otelcol: Collector) -> Collector:
    """Return a copy of the instance brought to ``current_version``.

    Instances without a version are taken as new and returned unchanged, as
    are instances newer than the latest known upgrade step. Raises
    :class:`UpgradeError` when the version cannot be parsed or a step fails.
    """
    if not otelcol.status.version:
        return otelcol

    try:
        instance_version = _parse_version(otelcol.status.version)
    except (ValueError, TypeError) as err:
        _log.error(
            "failed to parse version for collector instance %s/%s: %s",
            otelcol.metadata.namespace,
            otelcol.metadata.name,
            otelcol.status.version,
        )
        raise UpgradeError(
            f"failed to parse version {otelcol.status.version!r}: {err}"
        ) from err

    if instance_version > LATEST.version:
        _log.info(
            "skipping upgrade for collector instance %s/%s, version %s is newer than latest %s",
            otelcol.metadata.namespace,
            otelcol.metadata.name,
            otelcol.status.version,
            LATEST,
        )
        return otelcol

    result = otelcol.copy()
    for step in VERSIONS:
        if not step.version > instance_version:
            continue
        try:
            result = step.upgrade(client, result)
        except UpgradeError:
            _log.error(
                "failed to upgrade collector instance %s/%s",
                otelcol.metadata.namespace,
                otelcol.metadata.name,
            )
            raise
        _log.debug(
            "step upgrade of %s/%s to %s",
            otelcol.metadata.namespace,
            otelcol.metadata.name,
            step,
        )
        result.status.version = str(step)

    result.status.version = current_version
    _log.debug(
        "final version of %s/%s: %s",
        result.metadata.namespace,
        result.metadata.name,
        result.status.version,
    )
    return result


def managed_instances(current_version: str, client: Any) -> list[Collector]:
    """Upgrade every instance managed by the operator; return those that were changed."""
    _log.info("looking for managed instances to upgrade")
    items = list(client.list(COLLECTOR_KIND, None, dict(MANAGED_BY_LABELS)))

    changed: list[Collector] = []
    for original in items:
        try:
            upgraded = managed_instance(current_version, client, original)
        except UpgradeError:
            continue

        if upgraded == original:
            continue

        # the resource update overrides the status, keep it to reset it afterwards
        status = upgraded.status
        try:
            client.patch(upgraded)
        except Exception:
            _log.exception(
                "failed to apply changes to instance %s/%s",
                upgraded.metadata.namespace,
                upgraded.metadata.name,
            )
            continue

        upgraded.status = status
        try:
            client.patch_status(upgraded)
        except Exception:
            _log.exception(
                "failed to apply changes to the status of instance %s/%s",
                upgraded.metadata.namespace,
                upgraded.metadata.name,
            )
            continue

        _log.info(
            "instance %s/%s upgraded to %s",
            upgraded.metadata.namespace,
            upgraded.metadata.name,
            upgraded.status.version,
        )
        changed.append(upgraded)

    if not items:
        _log.info("no instances to upgrade")

    return changed