"""Combine the ports declared on an instance with those inferred from its configuration."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from typing import Optional

from .model import ServicePort

_log = logging.getLogger(__name__)


def extract_port_numbers_and_names(ports: Iterable[ServicePort]) -> tuple[set[int], set[str]]:
    """Return the port numbers and the port names in use."""
    ports = list(ports)
    return {p.port for p in ports}, {p.name for p in ports}


def filter_port(
    candidate: ServicePort, port_numbers: set[int], port_names: set[str]
) -> Optional[ServicePort]:
    """Return the candidate, renamed if its name clashes, or None if it must be dropped."""
    if candidate.port in port_numbers:
        return None

    if candidate.name in port_names:
        fallback_name = f"port-{candidate.port}"
        if fallback_name in port_names:
            _log.debug(
                "inferred port name %r and fallback name %r both clash, skipping the port",
                candidate.name,
                fallback_name,
            )
            return None
        return dataclasses.replace(candidate, name=fallback_name)

    return candidate


def merge_ports(
    declared: Iterable[ServicePort], inferred: Iterable[ServicePort]
) -> list[ServicePort]:
    """Declared ports first, then the inferred ports that don't clash with them."""
    declared = list(declared)
    inferred = list(inferred)
    if not declared:
        return inferred

    numbers, names = extract_port_numbers_and_names(declared)
    kept = (filter_port(port, numbers, names) for port in inferred)
    return declared + [port for port in kept if port is not None]