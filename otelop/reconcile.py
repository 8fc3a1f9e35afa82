"""Reconcile the cluster objects required by a collector instance.

The :class:`Client` is an in-memory object store with the same
get/create/patch/list/delete semantics the reconciliation relies on.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from . import naming
from .model import Collector, Mode, ObjectMeta, Params, Resource
from .upgrade import COLLECTOR_KIND

CONFIG_MAP_ENTRY = "collector.yaml"
MANAGED_BY = "opentelemetry-operator"

Object = Union[Resource, Collector]


class NotFoundError(LookupError):
    """Raised when an object does not exist in the store."""


class AlreadyExistsError(Exception):
    """Raised when creating an object that exists already."""


class ReconcileError(Exception):
    """Raised when a reconciliation step fails."""


def _kind_of(obj: Object) -> str:
    if isinstance(obj, Collector):
        return COLLECTOR_KIND
    return obj.kind


def _key(obj: Object) -> tuple[str, str, str]:
    return _kind_of(obj), obj.metadata.namespace, obj.metadata.name


class Client:
    """An in-memory store of cluster objects."""

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str, str], Object] = {}

    def get(self, kind: str, namespace: str, name: str) -> Object:
        """Return a copy of the stored object; raise NotFoundError if absent."""
        try:
            return copy.deepcopy(self._objects[(kind, namespace, name)])
        except KeyError:
            raise NotFoundError(f'{kind} "{namespace}/{name}" not found') from None

    def create(self, obj: Object) -> None:
        """Store a new object; raise AlreadyExistsError if one has its identity."""
        key = _key(obj)
        if key in self._objects:
            kind, namespace, name = key
            raise AlreadyExistsError(f'{kind} "{namespace}/{name}" already exists')
        self._objects[key] = copy.deepcopy(obj)

    def patch(self, obj: Object) -> None:
        """Replace a stored object; a collector's status is left as stored."""
        key = _key(obj)
        stored = self._existing(key)
        replacement = copy.deepcopy(obj)
        if isinstance(stored, Collector) and isinstance(replacement, Collector):
            replacement.status = copy.deepcopy(stored.status)
        self._objects[key] = replacement

    def patch_status(self, obj: Object) -> None:
        """Replace only the status of a stored collector."""
        if not isinstance(obj, Collector):
            raise TypeError(f"{_kind_of(obj)} objects have no status")
        stored = self._existing(_key(obj))
        stored.status = copy.deepcopy(obj.status)

    def list(
        self, kind: str, namespace: Optional[str], labels: Optional[Mapping[str, str]]
    ) -> list[Object]:
        """Copies of the objects of a kind, in a namespace (None for all), matching labels."""
        wanted = dict(labels or {})
        return [
            copy.deepcopy(obj)
            for (obj_kind, obj_namespace, _), obj in self._objects.items()
            if obj_kind == kind
            and (namespace is None or obj_namespace == namespace)
            and all(obj.metadata.labels.get(k) == v for k, v in wanted.items())
        ]

    def delete(self, obj: Object) -> None:
        """Remove a stored object; raise NotFoundError if absent."""
        key = _key(obj)
        self._existing(key)
        del self._objects[key]

    def _existing(self, key: tuple[str, str, str]) -> Object:
        try:
            return self._objects[key]
        except KeyError:
            kind, namespace, name = key
            raise NotFoundError(f'{kind} "{namespace}/{name}" not found') from None


def _set_controller_reference(owner: Collector, obj: Resource) -> None:
    owner_ns = owner.metadata.namespace
    if owner_ns and obj.metadata.namespace and owner_ns != obj.metadata.namespace:
        raise ReconcileError(
            "failed to set controller reference: cross-namespace owner references "
            f"are disallowed, owner's namespace {owner_ns}, obj's namespace "
            f"{obj.metadata.namespace}"
        )
    obj.metadata.owner_references = [owner.metadata.uid]


def _merge_into(updated: Resource, desired: Resource) -> None:
    updated.metadata.owner_references = list(desired.metadata.owner_references)
    updated.metadata.annotations.update(desired.metadata.annotations)
    updated.metadata.labels.update(desired.metadata.labels)
    if desired.kind == "ConfigMap":
        updated.data = dict(desired.data)
        updated.binary_data = dict(desired.binary_data)
    elif desired.kind != "ServiceAccount":
        updated.spec = copy.deepcopy(desired.spec)


def config_map_changed(desired: Resource, actual: Resource) -> bool:
    """Tell whether the config map data differs."""
    return desired.data != actual.data


def expected_objects(params: Params, expected: Iterable[Resource], retry: bool = False) -> None:
    """Create the expected objects, or merge them into the existing ones."""
    expected = list(expected)
    client = params.client
    for obj in expected:
        desired = obj.copy()
        _set_controller_reference(params.instance, desired)
        kind = desired.kind.lower()
        name, namespace = desired.metadata.name, desired.metadata.namespace

        try:
            existing = client.get(desired.kind, namespace, name)
        except NotFoundError:
            try:
                client.create(desired)
            except AlreadyExistsError as err:
                if retry:
                    # several updates at once: the object exists by now, try once more
                    expected_objects(params, expected, False)
                    return
                raise ReconcileError(f"failed to create: {err}") from err
            params.log.debug("created %s %s/%s", kind, namespace, name)
            continue

        updated = existing.copy()
        _merge_into(updated, desired)
        try:
            client.patch(updated)
        except NotFoundError as err:
            raise ReconcileError(f"failed to apply changes: {err}") from err

        if (
            desired.kind == "ConfigMap"
            and params.recorder is not None
            and config_map_changed(desired, existing)
        ):
            params.recorder(
                updated,
                "Normal",
                "ConfigUpdate ",
                f"OpenTelemetry Config changed - {namespace}/{name}",
            )
        params.log.debug("applied %s %s/%s", kind, namespace, name)


def delete_objects(params: Params, kind: str, expected: Iterable[Resource]) -> None:
    """Delete the managed objects of a kind that are not expected."""
    instance = params.instance
    keep = {(obj.metadata.name, obj.metadata.namespace) for obj in expected}
    labels = {
        "app.kubernetes.io/instance": f"{instance.metadata.namespace}.{instance.metadata.name}",
        "app.kubernetes.io/managed-by": MANAGED_BY,
    }
    for existing in params.client.list(kind, instance.metadata.namespace, labels):
        if (existing.metadata.name, existing.metadata.namespace) in keep:
            continue
        try:
            params.client.delete(existing)
        except NotFoundError as err:
            raise ReconcileError(f"failed to delete: {err}") from err
        params.log.debug(
            "deleted %s %s/%s", kind.lower(), existing.metadata.namespace, existing.metadata.name
        )


def _reconcile(params: Params, kind: str, plural: str, desired: list[Resource], retry: bool) -> None:
    try:
        expected_objects(params, desired, retry)
    except (ReconcileError, NotFoundError) as err:
        raise ReconcileError(f"failed to reconcile the expected {plural}: {err}") from err
    try:
        delete_objects(params, kind, desired)
    except (ReconcileError, NotFoundError) as err:
        raise ReconcileError(f"failed to reconcile the {plural} to be deleted: {err}") from err


def desired_config_map(params: Params, labels: Mapping[str, str]) -> Resource:
    """The config map holding the instance's collector configuration."""
    instance = params.instance
    name = naming.config_map(instance)
    all_labels = dict(labels)
    all_labels["app.kubernetes.io/name"] = name
    return Resource(
        kind="ConfigMap",
        metadata=ObjectMeta(
            name=name,
            namespace=instance.metadata.namespace,
            labels=all_labels,
            annotations=dict(instance.metadata.annotations),
        ),
        data={CONFIG_MAP_ENTRY: instance.spec.config},
    )


def config_maps(params: Params, labels: Mapping[str, str]) -> None:
    """Reconcile the config maps required by the instance."""
    _reconcile(params, "ConfigMap", "configmaps", [desired_config_map(params, labels)], True)


def deployments(params: Params, desired: Optional[Iterable[Resource]]) -> None:
    """Reconcile the deployments; the desired ones are kept only in deployment mode."""
    wanted = list(desired or []) if params.instance.spec.mode == Mode.DEPLOYMENT else []
    _reconcile(params, "Deployment", "deployments", wanted, False)


def self_status(params: Params, version: str) -> None:
    """Record the version in the status of a new instance."""
    if params.instance.status.version:
        # a version is set already, the upgrade mechanism takes care of it
        return
    changed = params.instance.copy()
    changed.status.version = version
    try:
        params.client.patch_status(changed)
    except NotFoundError as err:
        raise ReconcileError(
            f"failed to apply status changes to the OpenTelemetry CR: {err}"
        ) from err