"""Unit test fixtures shared across the enforcement tests."""

import pytest

from enforcement.domain.resource_path import ResourcePathResolver
from enforcement.domain.value_objects import namespace_id, stream_id


class FakeTimer:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_timer():
    """Provide a clock that only moves when advanced."""
    return FakeTimer()


@pytest.fixture
def path_resolver():
    """Provide a resolver for the default instance."""
    return ResourcePathResolver(instance_name="cdap")


@pytest.fixture
def ns1():
    """Provide namespace ns1."""
    return namespace_id("ns1")


@pytest.fixture
def stream_s1():
    """Provide stream s1 inside ns1."""
    return stream_id("ns1", "s1")
