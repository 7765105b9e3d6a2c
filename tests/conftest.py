"""
Pytest configuration and fixtures.
"""

from pathlib import Path

import pytest


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated home directory with no tool overrides in the environment."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    for name in ("CODEX_HOME", "CLAUDE_CONFIG_DIR", "SKILLDEPLOY_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return home_dir


@pytest.fixture
def project(tmp_path, home, monkeypatch):
    """Project directory used as the working directory."""
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    monkeypatch.chdir(project_dir)
    return project_dir


@pytest.fixture
def codex_home(home):
    return home / ".codex-home"


@pytest.fixture
def source_root(tmp_path):
    """Minimal source tree with two commands, one workflow and one agent."""
    root = tmp_path / "sources"
    (root / "commands" / "gsd").mkdir(parents=True)
    (root / "get-shit-done" / "workflows").mkdir(parents=True)
    (root / "agents").mkdir()
    (root / "commands" / "gsd" / "a.md").write_text(
        "---\nname: gsd:a\ndescription: First\n---\nThen run /gsd:b.\n"
    )
    (root / "commands" / "gsd" / "b.md").write_text(
        "---\nname: gsd:b\ndescription: Second\n---\nSee ~/.claude/get-shit-done/workflows/w.md\n"
    )
    (root / "get-shit-done" / "workflows" / "w.md").write_text(
        'Task(subagent_type="gsd-helper")\n'
    )
    (root / "agents" / "gsd-helper.md").write_text(
        "---\nname: gsd-helper\ndescription: Helps\n---\nYou help.\n"
    )
    return root


@pytest.fixture
def snapshot():
    return _snapshot


def _snapshot(root: Path) -> dict[str, bytes | None]:
    """Every path under ``root`` mapped to its bytes (``None`` for directories)."""
    if not root.exists():
        return {}
    return {
        path.relative_to(root).as_posix(): path.read_bytes() if path.is_file() else None
        for path in sorted(root.rglob("*"))
    }
