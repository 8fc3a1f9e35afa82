"""Name, reconcile and upgrade OpenTelemetry Collector resources."""

__version__ = "0.1.0"

__all__ = [
    "kinds",
    "model",
    "naming",
    "platform",
    "ports",
    "reconcile",
    "sidecar",
    "upgrade",
    "upgrade_steps",
    "volumes",
]