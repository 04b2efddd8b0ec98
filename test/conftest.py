"""Shared test fixtures."""

import pytest

from _helper import FakeModeStore, FakePublisher


@pytest.fixture
def store() -> FakeModeStore:
    return FakeModeStore(mode="combat")


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()
