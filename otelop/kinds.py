"""Reconcile the daemon sets, service accounts and stateful sets of a collector instance."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from .model import Mode, Params, Resource
from .reconcile import NotFoundError, ReconcileError, delete_objects, expected_objects


def _reconcile_kind(params: Params, kind: str, plural: str, desired: list[Resource]) -> None:
    try:
        expected_objects(params, desired, False)
    except (ReconcileError, NotFoundError) as err:
        raise ReconcileError(f"failed to reconcile the expected {plural}: {err}") from err
    try:
        delete_objects(params, kind, desired)
    except (ReconcileError, NotFoundError) as err:
        raise ReconcileError(f"failed to reconcile the {plural} to be deleted: {err}") from err


def daemon_sets(params: Params, desired: Optional[Iterable[Resource]]) -> None:
    """Reconcile the daemon sets; the desired ones are kept only in daemonset mode."""
    wanted = list(desired or []) if params.instance.spec.mode == Mode.DAEMONSET else []
    _reconcile_kind(params, "DaemonSet", "daemon sets", wanted)


def service_accounts(params: Params, desired: Optional[Iterable[Resource]]) -> None:
    """Reconcile the service accounts; sidecar instances need none."""
    wanted = list(desired or []) if params.instance.spec.mode != Mode.SIDECAR else []
    _reconcile_kind(params, "ServiceAccount", "service accounts", wanted)


def stateful_sets(params: Params, desired: Optional[Iterable[Resource]]) -> None:
    """Reconcile the stateful sets; the desired ones are kept only in statefulset mode."""
    wanted = list(desired or []) if params.instance.spec.mode == Mode.STATEFULSET else []
    _reconcile_kind(params, "StatefulSet", "stateful sets", wanted)