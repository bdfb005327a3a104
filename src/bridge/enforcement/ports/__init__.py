"""Ports (interfaces) for the enforcement bounded context.

Ports define the contracts for the policy backend and the identity provider
without specifying implementation details, plus the exception taxonomy shared
by every layer of the context. Import from the submodules directly:
``enforcement.ports.backend`` and ``enforcement.ports.exceptions``.
"""
