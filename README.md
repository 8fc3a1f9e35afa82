# otelop

`otelop` works out the names, volumes and service ports of an OpenTelemetry
Collector instance, reconciles the cluster objects it needs through a client, and
steps an instance's configuration through the collector releases that changed its
format.

## Modules

- `otelop.model`: dataclasses for collector instances (`Collector`,
  `CollectorSpec`, `CollectorStatus`), the generic managed object `Resource`, pods,
  namespaces, volumes, claims, service ports, the deployment `Mode` enum and the
  `Params` bundle handed to every reconciliation step.
- `otelop.naming`: names of the config map, config map volume, container,
  workload, services and service account of an instance
  (`config_map`, `config_map_volume`, `container`, `collector`, `service`,
  `headless_service`, `monitoring_service`, `service_account`).
- `otelop.volumes`: `service_account_name` (the spec's service account or the
  self-provisioned one), `volumes` (the config map volume followed by the
  instance's own volumes; the config map entry defaults to `collector.yaml`) and
  `volume_claim_templates` (only in statefulset mode; the instance's own
  templates, or a default `default-volume` claim of 50Mi, `ReadWriteOnce`).
- `otelop.sidecar`: `annotation_value` works out the effective
  `sidecar.opentelemetry.io/inject` annotation from a pod and its namespace;
  `exists_in` tells whether a pod holds the `otc-container` sidecar; `remove`
  returns the pod without it.
- `otelop.ports`: `merge_ports` puts the declared ports first, then those inferred
  ports whose number is free; an inferred port whose name is taken is renamed
  `port-<number>`, or dropped if that name is taken too (`filter_port`,
  `extract_port_numbers_and_names`).
- `otelop.reconcile`: an in-memory `Client` store with `get`, `create`, `patch`,
  `patch_status`, `list` and `delete`, raising `NotFoundError` and
  `AlreadyExistsError`; `expected_objects` creates objects or merges them into
  existing ones and sets the instance as their controller; `delete_objects`
  removes managed objects of a kind that are no longer wanted;
  `desired_config_map`, `config_maps`, `deployments` and `self_status` (records a
  version in the status of an instance that has none). When a config map's data
  changes, `Params.recorder` is called with the object, `"Normal"`, the reason and
  a message.
- `otelop.kinds`: `daemon_sets`, `service_accounts` and `stateful_sets`, built on
  the same create/merge/delete steps. Desired daemon sets and stateful sets are
  kept only in the matching mode; sidecar instances get no service account.
- `otelop.upgrade_steps`: one function per release that needs a migration
  (`upgrade_0_2_10`, `upgrade_0_9_0`, `upgrade_0_15_0`, `upgrade_0_19_0`,
  `upgrade_0_24_0`), plus `noop`. They drop `reconnection_delay` from opencensus
  exporters, remove the `--new-metrics` and `--legacy-metrics` arguments, remove
  `queued_retry` processors and turn resource processors' `type` and `labels`
  into `attributes` upserts, and turn a health_check extension's `port` into an
  `endpoint`. Each change is noted in `status.messages`.
- `otelop.upgrade`: `VersionStep`, the ordered `VERSIONS` and `LATEST`;
  `managed_instance` runs every step newer than an instance's version and then
  sets the version given; `managed_instances` does that for every instance the
  client lists as managed by the operator, patches those that changed and returns
  them.
- `otelop.platform`: the `Platform` enum (`UNKNOWN`, `OPENSHIFT`, `KUBERNETES`).

## Usage

Names for an instance:

```python
from otelop import naming
from otelop.model import Collector, ObjectMeta

otelcol = Collector(metadata=ObjectMeta(name="my-instance", namespace="default"))
naming.service(otelcol)           # "my-instance-collector"
naming.headless_service(otelcol)  # "my-instance-collector-headless"
```

Deciding whether a pod wants a sidecar:

```python
from otelop import sidecar

value = sidecar.annotation_value(namespace, pod)
if value.lower() != "false" and not sidecar.exists_in(pod):
    ...
```

Reconciling the config map of an instance against the in-memory store:

```python
from otelop.model import Collector, CollectorSpec, ObjectMeta, Params
from otelop.reconcile import Client, config_maps

instance = Collector(
    metadata=ObjectMeta(name="test", namespace="default", uid="uid-1"),
    spec=CollectorSpec(config="receivers:\n  jaeger:\n"),
)
params = Params(instance=instance, client=Client())
config_maps(params, {
    "app.kubernetes.io/instance": "default.test",
    "app.kubernetes.io/managed-by": "opentelemetry-operator",
})
params.client.get("ConfigMap", "default", "test-collector").data["collector.yaml"]
```

Upgrading an instance to the current collector version:

```python
from otelop import upgrade

upgraded = upgrade.managed_instance("0.24.0", client, otelcol)
print(upgraded.status.version, upgraded.status.messages)
```

An instance with no version is returned as it is, and so is one newer than
`upgrade.LATEST`. A version that cannot be parsed, or a configuration a step
cannot read, raises `otelop.upgrade_steps.UpgradeError`. Failures while
reconciling raise `otelop.reconcile.ReconcileError`.

## What it does not do

- It does not talk to a real cluster: `otelop.reconcile.Client` keeps objects in
  memory. Any object with the same methods can be passed as `Params.client`.
- It does not build the collector container or the deployment, daemon set or
  stateful set specs; the desired workloads are passed in as `Resource` objects.
- It does not infer service ports from a collector configuration, nor build the
  services themselves; `otelop.ports` only merges declared and inferred ports.
- It does not inject sidecars into pods, and has no admission webhook, controller
  loop or command line.

## Running the tests

```
pip install -e ".[test]"
pytest
```