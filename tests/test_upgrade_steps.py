import pytest
import yaml

from otelop.model import Collector, CollectorSpec, ObjectMeta
from otelop.upgrade_steps import (
    UpgradeError,
    noop,
    upgrade_0_2_10,
    upgrade_0_9_0,
    upgrade_0_15_0,
    upgrade_0_19_0,
    upgrade_0_24_0,
)


def make_instance(config="", args=None):
    return Collector(
        metadata=ObjectMeta(
            name="my-instance",
            namespace="default",
            labels={"app.kubernetes.io/managed-by": "opentelemetry-operator"},
        ),
        spec=CollectorSpec(config=config, args=dict(args or {})),
    )


def test_noop_returns_same_instance():
    inst = make_instance(config="a: b")
    assert noop(None, inst) is inst
    assert inst.spec.config == "a: b"


def test_0_2_10_leaves_instance_unchanged():
    inst = make_instance(config="a: b")
    result = upgrade_0_2_10(None, inst)
    assert result.spec.config == "a: b"
    assert result.status.messages == []


def test_remove_connection_delay():
    inst = make_instance(
        config="""exporters:
  opencensus:
    compression: "on"
    reconnection_delay: 15
    num_workers: 123"""
    )
    assert "reconnection_delay" in inst.spec.config

    res = upgrade_0_9_0(None, inst)

    assert "opencensus:" in res.spec.config
    assert 'compression: "on"' in res.spec.config
    assert "reconnection_delay" not in res.spec.config
    assert "num_workers: 123" in res.spec.config
    assert res.status.messages[0] == (
        'upgrade to v0.9.0 removed the property reconnection_delay for exporter "opencensus"'
    )


def test_0_9_0_requires_exporters():
    inst = make_instance(config="receivers:\n  jaeger: {}\n")
    with pytest.raises(UpgradeError):
        upgrade_0_9_0(None, inst)


def test_0_9_0_rejects_invalid_exporter():
    inst = make_instance(config="exporters:\n  opencensus: [1, 2]\n")
    with pytest.raises(UpgradeError):
        upgrade_0_9_0(None, inst)


def test_0_9_0_empty_config_untouched():
    inst = make_instance()
    assert upgrade_0_9_0(None, inst).spec.config == ""


def test_unparseable_config_raises():
    inst = make_instance(config="just a scalar")
    with pytest.raises(UpgradeError):
        upgrade_0_9_0(None, inst)


def test_remove_metrics_type_flags():
    inst = make_instance(args={"--new-metrics": "true", "--legacy-metrics": "true"})
    assert "--new-metrics" in inst.spec.args

    res = upgrade_0_15_0(None, inst)

    assert "--new-metrics" not in res.spec.args
    assert "--legacy-metrics" not in res.spec.args


def test_0_15_0_keeps_other_args():
    inst = make_instance(args={"--new-metrics": "true", "--other": "x"})
    assert upgrade_0_15_0(None, inst).spec.args == {"--other": "x"}


def test_remove_queued_retry_processor():
    inst = make_instance(
        config="""processors:
  queued_retry:
  otherprocessor:
  queued_retry/second:
    compression: "on"
    reconnection_delay: 15
    num_workers: 123"""
    )

    res = upgrade_0_19_0(None, inst)

    assert "queued_retry:" not in res.spec.config
    assert "otherprocessor:" in res.spec.config
    assert "queued_retry/second:" not in res.spec.config
    assert "num_workers: 123" not in res.spec.config
    assert "upgrade to v0.19.0 removed the processor" in res.status.messages[0]


def test_migrate_resource_type():
    inst = make_instance(config="processors:\n  resource:\n    type: some-type\n")

    res = upgrade_0_19_0(None, inst)

    assert res.spec.config == """processors:
  resource:
    attributes:
    - action: upsert
      key: opencensus.type
      value: some-type
"""
    assert (
        "upgrade to v0.19.0 migrated the property 'type' for processor"
        in res.status.messages[0]
    )


def test_migrate_labels():
    inst = make_instance(
        config="""processors:
  resource:
    labels:
      cloud.zone: zone-1
      host.name: k8s-node
"""
    )

    res = upgrade_0_19_0(None, inst)

    actual = yaml.safe_load(res.spec.config)
    processor = actual["processors"]["resource"]
    assert len(processor["attributes"]) == 2
    assert processor.get("labels") is None
    assert {"key": "cloud.zone", "value": "zone-1", "action": "upsert"} in processor["attributes"]
    assert (
        "upgrade to v0.19.0 migrated the property 'labels' for processor"
        in res.status.messages[0]
    )


def test_0_19_0_invalid_resource_processor():
    inst = make_instance(config="processors:\n  resource: [a, b]\n")
    with pytest.raises(UpgradeError):
        upgrade_0_19_0(None, inst)


def test_0_19_0_without_processors_untouched():
    config = "exporters:\n  logging:\n"
    inst = make_instance(config=config)
    assert upgrade_0_19_0(None, inst).spec.config == config


def test_health_check_endpoint_migration():
    inst = make_instance(
        config="""extensions:
  health_check:
  health_check/1: ""
  health_check/2:
    endpoint: "localhost:13133"
  health_check/3:
    port: 13133
"""
    )

    res = upgrade_0_24_0(None, inst)

    assert res.spec.config == """extensions:
  health_check: null
  health_check/1: ""
  health_check/2:
    endpoint: localhost:13133
  health_check/3:
    endpoint: 0.0.0.0:13133
"""
    assert res.status.messages[0] == (
        "upgrade to v0.24.0 migrated the property 'port' to 'endpoint' "
        'for extension "health_check/3"'
    )


def test_0_24_0_invalid_extension():
    inst = make_instance(config="extensions:\n  health_check: 42\n")
    with pytest.raises(UpgradeError):
        upgrade_0_24_0(None, inst)


def test_0_24_0_without_extensions_untouched():
    config = "receivers:\n  jaeger:\n"
    inst = make_instance(config=config)
    res = upgrade_0_24_0(None, inst)
    assert res.spec.config == config
    assert res.status.messages == []