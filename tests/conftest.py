from __future__ import annotations

from pathlib import Path

import pytest

from extbundler.context import BuildContext
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable workspace builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def ctx() -> BuildContext:
    return BuildContext(namespace="Ext", app_namespace="MyApp")
