"""Shared fixtures for fern generator tests."""

import pytest

from fern_generator.core.fern import make_random_stream


class ScriptedStream:
    """Random stream returning fixed values.

    ``random()`` cycles through ``values``; ``integers(low, high)``
    returns ``low`` unless an explicit integer script is given.
    """

    def __init__(self, values=(0.5,), integer_values=None):
        self.values = list(values)
        self.integer_values = list(integer_values) if integer_values else None
        self.random_calls = 0
        self.integer_calls = 0

    def random(self):
        value = self.values[self.random_calls % len(self.values)]
        self.random_calls += 1
        return value

    def integers(self, low, high=None):
        self.integer_calls += 1
        if self.integer_values:
            return self.integer_values.pop(0)
        return 0 if high is None else low


@pytest.fixture
def zero_jitter_rng():
    """Stream whose jitter is always exactly zero."""
    return ScriptedStream((0.5,))


@pytest.fixture
def scripted_stream():
    """Factory for scripted streams."""
    return ScriptedStream


@pytest.fixture
def seeded_rng():
    return make_random_stream(1234)
