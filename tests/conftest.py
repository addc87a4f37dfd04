from __future__ import annotations

from pathlib import Path

import pytest

from gotab.models import Candidate
from tests._fixtures.go_tree import GoTreeBuilder


@pytest.fixture
def go_tree(tmp_path: Path) -> GoTreeBuilder:
    """Provide a GOPATH/GOROOT/cwd layout rooted at the pytest tmp_path."""
    return GoTreeBuilder(tmp_path)


class Collector(list):
    """Emit target that records rendered candidates in order."""

    def __call__(self, candidate: Candidate) -> None:
        self.append(candidate.render())


@pytest.fixture
def collector() -> Collector:
    return Collector()
