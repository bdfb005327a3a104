"""Cross-cutting infrastructure: settings and logging configuration.

Does NOT import from bounded contexts to maintain DDD boundaries.
"""
