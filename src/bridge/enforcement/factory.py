"""Authorization engine factory.

Wires an AuthorizationEngine from settings so callers only supply the
policy backend (and optionally a group resolver).
"""

from __future__ import annotations

from enforcement.application.engine import AuthorizationEngine
from enforcement.application.observability import DecisionCacheProbe, EngineProbe
from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.ports.backend import IdentityResolver, PolicyBackendClient
from infrastructure.settings import AuthorizationSettings, get_authorization_settings


def create_authorization_engine(
    backend: PolicyBackendClient,
    identity_resolver: IdentityResolver | None = None,
    settings: AuthorizationSettings | None = None,
    probe: EngineProbe | None = None,
    cache_probe: DecisionCacheProbe | None = None,
) -> AuthorizationEngine:
    """Create an AuthorizationEngine configured from settings.

    Args:
        backend: Role-based policy backend the engine writes to and checks against
        identity_resolver: Optional group lookup for users
        settings: Explicit settings; defaults to the cached environment settings
        probe: Optional engine probe
        cache_probe: Optional decision cache probe

    Returns:
        AuthorizationEngine with its own decision cache
    """
    settings = settings or get_authorization_settings()
    return AuthorizationEngine(
        backend=backend,
        identity_resolver=identity_resolver,
        path_resolver=ResourcePathResolver(instance_name=settings.instance_name),
        cache_max_entries=settings.cache_max_entries,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        superusers=settings.superuser_names,
        admin_group_name=settings.admin_group_name,
        probe=probe,
        cache_probe=cache_probe,
    )
