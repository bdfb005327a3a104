"""Enforcement bounded context.

Bridges entity-level authorization requests to a role-based policy backend:
resolves hierarchical entities into resource paths, memoizes decisions, and
delegates user and group grants through private shadow roles.
"""
