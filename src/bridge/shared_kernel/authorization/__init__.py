"""Authorization primitives shared across bounded contexts.

This module provides the action and principal types understood by every
policy backend binding.
"""

from shared_kernel.authorization.types import (
    Action,
    Principal,
    PrincipalKind,
    format_principal,
)

__all__ = [
    "Action",
    "Principal",
    "PrincipalKind",
    "format_principal",
]
