"""Sidecar annotation handling and sidecar container removal."""

from __future__ import annotations

import copy

from . import naming
from .model import Namespace, Pod

ANNOTATION = "sidecar.opentelemetry.io/inject"
LABEL = "sidecar.opentelemetry.io/injected"


def annotation_value(ns: Namespace, pod: Pod) -> str:
    """Return the effective injection annotation from the pod and its namespace."""
    pod_value = pod.metadata.annotations.get(ANNOTATION, "")
    ns_value = ns.metadata.annotations.get(ANNOTATION, "")

    if not ns_value:
        return pod_value
    if not pod_value:
        return ns_value
    # an instance name or an explicit false on the pod decides
    if pod_value.casefold() != "true":
        return pod_value
    if ns_value.casefold() == "false":
        return pod_value
    # pod says true, namespace names an instance or says true
    return ns_value


def exists_in(pod: Pod) -> bool:
    """Tell whether a sidecar container exists in the pod."""
    return any(c.name == naming.container() for c in pod.spec.containers)


def remove(pod: Pod) -> Pod:
    """Return the pod without any sidecar containers."""
    if not exists_in(pod):
        return pod
    result = copy.deepcopy(pod)
    result.spec.containers = [
        c for c in result.spec.containers if c.name != naming.container()
    ]
    return result