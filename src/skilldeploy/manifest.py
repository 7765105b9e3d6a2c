from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from skilldeploy.exceptions import ManifestCorruptError
from skilldeploy.types import EntryKind, FileScope, RootKind

logger = logging.getLogger(__name__)

MANIFEST_NAME = "gsd-file-manifest.json"
MANIFEST_VERSION = 1


class FileEntry(BaseModel):
    adapter: str
    identifier: str
    root: RootKind = RootKind.CONFIG
    kind: EntryKind = EntryKind.FILE
    sha256: str | None = None
    stanzas: list[str] = Field(default_factory=list)
    created: bool = True
    replaced: dict[str, Any] = Field(default_factory=dict)


class DirectoryEntry(BaseModel):
    root: RootKind = RootKind.CONFIG
    owners: list[str] = Field(default_factory=list)


class Manifest(BaseModel):
    version: int = MANIFEST_VERSION
    files: dict[str, FileEntry] = Field(default_factory=dict)
    directories: dict[str, DirectoryEntry] = Field(default_factory=dict)

    def record_file(self, path: str, entry: FileEntry) -> None:
        self.files[path] = entry

    def forget_file(self, path: str) -> FileEntry | None:
        return self.files.pop(path, None)

    def record_directory(self, path: str, root: RootKind, adapter: str) -> None:
        entry = self.directories.setdefault(path, DirectoryEntry(root=root))
        if adapter not in entry.owners:
            entry.owners.append(adapter)

    def release_directory(self, path: str, adapter: str) -> bool:
        """Drop ``adapter`` from a directory's owners; True if nobody owns it now."""
        entry = self.directories.get(path)
        if entry is None:
            return False
        if adapter in entry.owners:
            entry.owners.remove(adapter)
        return not entry.owners

    def forget_directory(self, path: str) -> None:
        self.directories.pop(path, None)

    def owned_by(self, adapter: str) -> dict[str, FileEntry]:
        return {
            path: entry for path, entry in self.files.items() if entry.adapter == adapter
        }

    def directories_owned_by(self, adapter: str) -> dict[str, DirectoryEntry]:
        return {
            path: entry
            for path, entry in self.directories.items()
            if adapter in entry.owners
        }

    def is_empty(self) -> bool:
        return not self.files and not self.directories


def fingerprint(content: str | bytes) -> str:
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def manifest_path(config_root: Path) -> Path:
    return config_root / MANIFEST_NAME


def load_manifest(scope: FileScope, config_root: Path) -> Manifest:
    path = manifest_path(config_root)
    if not path.exists():
        return Manifest()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestCorruptError(
            f"Cannot read manifest: {exc}", scope=scope.value, path=path
        ) from exc

    try:
        return Manifest.model_validate_json(raw)
    except ValidationError as exc:
        raise ManifestCorruptError(
            f"Manifest is not valid: {exc.error_count()} error(s)",
            scope=scope.value,
            path=path,
        ) from exc


def dump_manifest(manifest: Manifest) -> str:
    return manifest.model_dump_json(indent=2) + "\n"


def save_manifest(manifest: Manifest, scope: FileScope, config_root: Path) -> Path:
    path = manifest_path(config_root)
    if manifest.is_empty():
        if path.exists():
            path.unlink()
            logger.debug("Removed empty %s manifest %s", scope.value, path)
        return path

    content = dump_manifest(manifest)
    if path.exists() and path.read_text(encoding="utf-8") == content:
        return path
    atomic_write(path, content)
    logger.debug("Saved %s manifest %s", scope.value, path)
    return path


def atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to a sibling temp file and rename it over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
