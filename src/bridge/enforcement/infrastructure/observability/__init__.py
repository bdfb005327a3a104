"""Observability for enforcement infrastructure adapters."""

from enforcement.infrastructure.observability.policy_backend_probe import (
    DefaultPolicyBackendProbe,
    PolicyBackendProbe,
)

__all__ = [
    "DefaultPolicyBackendProbe",
    "PolicyBackendProbe",
]
