"""Data model for collector instances and the cluster objects derived from them."""

from __future__ import annotations

import copy as _copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class Mode(str, Enum):
    """How a collector instance is deployed."""

    DEPLOYMENT = "deployment"
    DAEMONSET = "daemonset"
    SIDECAR = "sidecar"
    STATEFULSET = "statefulset"


@dataclass
class ObjectMeta:
    """Identity and metadata shared by every cluster object."""

    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    uid: str = ""
    owner_references: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ServicePort:
    """A port exposed by a service."""

    name: str = ""
    port: int = 0
    protocol: str = ""
    target_port: int = 0
    node_port: int = 0


@dataclass
class Container:
    """A container inside a pod."""

    name: str = ""
    image: str = ""
    args: list[str] = field(default_factory=list)


@dataclass
class Volume:
    """A pod volume, optionally backed by a config map."""

    name: str = ""
    config_map: Optional[str] = None
    items: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class PodSpec:
    """The desired state of a pod."""

    containers: list[Container] = field(default_factory=list)
    volumes: list[Volume] = field(default_factory=list)
    service_account_name: str = ""
    tolerations: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class Pod:
    """A pod with its metadata and spec."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: PodSpec = field(default_factory=PodSpec)


@dataclass
class Namespace:
    """A namespace; only its metadata matters here."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)


@dataclass
class PersistentVolumeClaim:
    """A volume claim template used by stateful sets."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    access_modes: list[str] = field(default_factory=list)
    storage: str = ""


@dataclass
class CollectorSpec:
    """The user-facing specification of a collector instance."""

    mode: Mode | str = Mode.DEPLOYMENT
    config: str = ""
    args: dict[str, str] = field(default_factory=dict)
    replicas: Optional[int] = None
    service_account: str = ""
    image: str = ""
    volumes: list[Volume] = field(default_factory=list)
    volume_claim_templates: list[PersistentVolumeClaim] = field(default_factory=list)
    ports: list[ServicePort] = field(default_factory=list)
    tolerations: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CollectorStatus:
    """Observed state of a collector instance."""

    version: str = ""
    messages: list[str] = field(default_factory=list)


@dataclass
class Collector:
    """A collector custom resource."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: CollectorSpec = field(default_factory=CollectorSpec)
    status: CollectorStatus = field(default_factory=CollectorStatus)

    def copy(self) -> "Collector":
        """Return an independent deep copy."""
        return _copy.deepcopy(self)


@dataclass
class Resource:
    """A generic cluster object managed on behalf of a collector."""

    kind: str
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: Any = None
    data: dict[str, str] = field(default_factory=dict)
    binary_data: dict[str, bytes] = field(default_factory=dict)

    def copy(self) -> "Resource":
        """Return an independent deep copy."""
        return _copy.deepcopy(self)


@dataclass
class Params:
    """Everything a reconciliation step needs."""

    instance: Collector = field(default_factory=Collector)
    client: Any = None
    config: Any = None
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("otelop"))
    recorder: Optional[Callable[[Any, str, str, str], None]] = None