from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from skilldeploy.types import FileKind

ASSETS_DIR = Path(__file__).parent / "assets"
NAMESPACE = "gsd"

# directory (relative to the source root) -> (kind, glob)
_LAYOUT = {
    f"commands/{NAMESPACE}": (FileKind.COMMAND, "*.md"),
    "get-shit-done/workflows": (FileKind.WORKFLOW, "*.md"),
    "agents": (FileKind.AGENT, "*.md"),
    "hooks": (FileKind.HOOK, "*.js"),
}


class SourceFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    kind: FileKind
    relative_path: str
    content: str

    @property
    def name(self) -> str:
        """Identifier without its namespace: ``gsd:help`` -> ``help``."""
        return self.identifier.rsplit(":", 1)[-1]

    @property
    def filename(self) -> str:
        return Path(self.relative_path).name


def _identifier(kind: FileKind, path: Path) -> str:
    if kind == FileKind.COMMAND:
        return f"{NAMESPACE}:{path.stem}"
    return path.stem


def discover_sources(
    root: Path | None = None, only: Iterable[str] | None = None
) -> list[SourceFile]:
    """Collect every source file under ``root``, optionally filtered by identifier."""
    root = root or ASSETS_DIR
    wanted = set(only) if only else None
    sources = []
    for directory, (kind, pattern) in _LAYOUT.items():
        base = root / directory
        if not base.is_dir():
            continue
        for path in sorted(base.glob(pattern)):
            if not path.is_file():
                continue
            identifier = _identifier(kind, path)
            if wanted is not None and identifier not in wanted:
                continue
            sources.append(
                SourceFile(
                    identifier=identifier,
                    kind=kind,
                    relative_path=path.relative_to(root).as_posix(),
                    content=path.read_text(encoding="utf-8"),
                )
            )
    return sources
