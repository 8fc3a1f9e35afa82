"""Target platforms the operator might run on."""

from __future__ import annotations

from enum import IntEnum


class Platform(IntEnum):
    """The auto-detected platform type."""

    UNKNOWN = 0
    OPENSHIFT = 1
    KUBERNETES = 2

    def __str__(self) -> str:
        return ("Unknown", "OpenShift", "Kubernetes")[self.value]