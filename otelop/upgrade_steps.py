"""Per-version upgrade steps for collector instances.

Each step takes a client (unused by the current steps) and a collector
instance, changes the instance in place and returns it. A step raises
:class:`UpgradeError` when the instance cannot be migrated.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from .model import Collector


class UpgradeError(Exception):
    """Raised when an instance cannot be brought to a newer version."""


class _Dumper(yaml.SafeDumper):
    """YAML dumper that quotes with double quotes whenever quoting is needed."""

    def choose_scalar_style(self) -> str:
        style = super().choose_scalar_style()
        return '"' if style == "'" else style


def _quote(value: Any) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _require_collector(otelcol: Any) -> Collector:
    if not isinstance(otelcol, Collector):
        raise TypeError(
            f"expected a collector instance, got {type(otelcol).__name__}"
        )
    return otelcol


def _load_config(text: str, target: str) -> dict[Any, Any]:
    try:
        cfg = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise UpgradeError(
            f"couldn't upgrade to {target}, failed to parse configuration: {err}"
        ) from err
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise UpgradeError(
            f"couldn't upgrade to {target}, failed to parse configuration: "
            "the configuration is not a mapping"
        )
    return cfg


def _dump_config(cfg: dict[Any, Any], target: str) -> str:
    try:
        return yaml.dump(
            cfg,
            Dumper=_Dumper,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
        )
    except yaml.YAMLError as err:
        raise UpgradeError(
            f"couldn't upgrade to {target}, failed to marshall back configuration: {err}"
        ) from err


def _key(key: Any, target: str) -> str:
    if not isinstance(key, str):
        raise UpgradeError(f"couldn't upgrade to {target}, the key {key!r} is not a string")
    return key


def noop(client: Any, otelcol: Collector) -> Collector:
    """Check that a collector instance was given and hand it back unchanged."""
    return _require_collector(otelcol)


def upgrade_0_2_10(client: Any, otelcol: Collector) -> Collector:
    """First version under the current image; nothing to migrate beyond a check."""
    return _require_collector(otelcol)


def upgrade_0_9_0(client: Any, otelcol: Collector) -> Collector:
    """Drop the reconnection_delay property from opencensus exporters."""
    target = "v0.9.0"
    if not otelcol.spec.config:
        return otelcol

    cfg = _load_config(otelcol.spec.config, target)
    exporters = cfg.get("exporters")
    if not isinstance(exporters, dict):
        raise UpgradeError(
            f"couldn't upgrade to {target}, failed to extract list of exporters "
            f"from the configuration: {_quote(exporters)}"
        )

    for key, exporter in list(exporters.items()):
        name = _key(key, target)
        if not "opencensus".startswith(name):
            continue
        if isinstance(exporter, dict):
            exporter.pop("reconnection_delay", None)
            otelcol.status.messages.append(
                f"upgrade to {target} removed the property reconnection_delay "
                f"for exporter {_quote(name)}"
            )
            exporters[key] = exporter
        elif isinstance(exporter, str):
            continue
        else:
            raise UpgradeError(
                f"couldn't upgrade to {target}, the exporter {_quote(name)} is "
                "invalid (neither a string nor map)"
            )

    cfg["exporters"] = exporters
    otelcol.spec.config = _dump_config(cfg, target)
    return otelcol


def upgrade_0_15_0(client: Any, otelcol: Collector) -> Collector:
    """Remove the obsolete metrics-type command line flags."""
    otelcol.spec.args.pop("--new-metrics", None)
    otelcol.spec.args.pop("--legacy-metrics", None)
    return otelcol


def _existing_attributes(processor: dict[Any, Any], name: str, target: str) -> list[dict[str, str]]:
    if "attributes" not in processor:
        return []
    attrs = processor["attributes"]
    valid = isinstance(attrs, list) and all(
        isinstance(item, dict)
        and all(isinstance(k, str) and isinstance(v, str) for k, v in item.items())
        for item in attrs
    )
    if not valid:
        raise UpgradeError(
            f"couldn't upgrade to {target}, the attributes list for processors "
            f"{_quote(name)} couldn't be parsed based on the previous value. "
            f"Type: {type(attrs).__name__}, value: {attrs!r}"
        )
    return list(attrs)


def _upsert(key: Any, value: Any, name: str, target: str) -> dict[str, str]:
    if not isinstance(key, str) or not isinstance(value, str):
        raise UpgradeError(
            f"couldn't upgrade to {target}, the processor {_quote(name)} has a "
            "non-string key or value"
        )
    return {"key": key, "value": value, "action": "upsert"}


def upgrade_0_19_0(client: Any, otelcol: Collector) -> Collector:
    """Remove queued_retry processors and migrate resource processor properties."""
    target = "v0.19.0"
    if not otelcol.spec.config:
        return otelcol

    cfg = _load_config(otelcol.spec.config, target)
    processors = cfg.get("processors")
    if not isinstance(processors, dict):
        return otelcol

    for key, processor in list(processors.items()):
        name = _key(key, target)

        if name.startswith("queued_retry"):
            del processors[key]
            otelcol.status.messages.append(
                f"upgrade to {target} removed the processor {_quote(name)}"
            )
            continue

        if not name.startswith("resource"):
            continue

        if isinstance(processor, dict):
            if "type" in processor:
                attributes = _existing_attributes(processor, name, target)
                attributes.append(_upsert("opencensus.type", processor["type"], name, target))
                processor["attributes"] = attributes
                del processor["type"]
                otelcol.status.messages.append(
                    f"upgrade to {target} migrated the property 'type' for processor {_quote(name)}"
                )

            if "labels" in processor:
                attributes = _existing_attributes(processor, name, target)
                labels = processor["labels"]
                if isinstance(labels, dict):
                    attributes.extend(
                        _upsert(label_key, label_value, name, target)
                        for label_key, label_value in labels.items()
                    )
                processor["attributes"] = attributes
                del processor["labels"]
                otelcol.status.messages.append(
                    f"upgrade to {target} migrated the property 'labels' for processor {_quote(name)}"
                )

            processors[key] = processor
        elif isinstance(processor, str):
            continue
        else:
            raise UpgradeError(
                f"couldn't upgrade to {target}, the processor {_quote(name)} is "
                "invalid (neither a string nor map)"
            )

    cfg["processors"] = processors
    otelcol.spec.config = _dump_config(cfg, target)
    return otelcol


def upgrade_0_24_0(client: Any, otelcol: Collector) -> Collector:
    """Replace the health_check 'port' property with 'endpoint'."""
    target = "v0.24.0"
    if not otelcol.spec.config:
        return otelcol

    cfg = _load_config(otelcol.spec.config, target)
    extensions = cfg.get("extensions")
    if not isinstance(extensions, dict):
        return otelcol

    for key, extension in extensions.items():
        name = _key(key, target)
        if not name.startswith("health_check"):
            continue
        if isinstance(extension, dict):
            if "port" in extension:
                port = extension.pop("port")
                extension["endpoint"] = f"0.0.0.0:{port}"
                otelcol.status.messages.append(
                    f"upgrade to {target} migrated the property 'port' to 'endpoint' "
                    f"for extension {_quote(name)}"
                )
        elif extension is None or isinstance(extension, str):
            continue
        else:
            raise UpgradeError(
                f"couldn't upgrade to {target}, the extension {_quote(name)} is "
                f"invalid (expected string or map but was {type(extension).__name__})"
            )

    otelcol.spec.config = _dump_config(cfg, target)
    return otelcol