from __future__ import annotations

import pytest

from builders import StubClassifier


@pytest.fixture
def classifier():
    return StubClassifier()
