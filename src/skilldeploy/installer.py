"""
Manifest-driven install and uninstall.

Every file and directory the installer creates is recorded in the manifest
under the adapter that created it; uninstall only ever removes what the
manifest attributes to the adapter being uninstalled.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field

from skilldeploy.adapters import Adapter, Destination, InstallRoots, get_adapter
from skilldeploy.config import Settings, get_settings
from skilldeploy.exceptions import SkillDeployError, WriteError
from skilldeploy.manifest import (
    FileEntry,
    Manifest,
    atomic_write,
    fingerprint,
    load_manifest,
    manifest_path,
    save_manifest,
)
from skilldeploy.sources import discover_sources
from skilldeploy.types import EntryKind, FileScope, RootKind

logger = logging.getLogger(__name__)

PATCHES_DIR = "gsd-local-patches"


class InstallOptions(BaseModel):
    config_dir: Path | None = None
    project_root: Path | None = None
    only: list[str] | None = None
    source_root: Path | None = None


class InstallResult(BaseModel):
    adapter: str
    scope: FileScope
    files_written: int = 0
    manifest_path: Path
    paths: list[Path] = Field(default_factory=list)
    backed_up: list[Path] = Field(default_factory=list)


class UninstallResult(BaseModel):
    adapter: str
    scope: FileScope
    files_removed: int = 0
    manifest_path: Path
    paths: list[Path] = Field(default_factory=list)
    missing: list[Path] = Field(default_factory=list)
    stanzas_removed: list[str] = Field(default_factory=list)


def _resolve(
    adapter_name: str,
    scope: FileScope,
    options: InstallOptions,
    settings: Settings | None,
) -> tuple[Adapter, InstallRoots]:
    adapter = get_adapter(adapter_name)
    roots = adapter.resolve_roots(
        scope,
        settings or get_settings(),
        config_dir=options.config_dir,
        project_root=options.project_root,
    )
    return adapter, roots


def _ensure_directory(
    manifest: Manifest, adapter: str, base: Path, root: RootKind, relative: str
) -> None:
    """Create ``base/relative`` and every missing parent, recording what was created.

    The base itself is only tracked for the config root; the skills root is
    the home or project directory and is never ours. Missing ancestors of the
    config root are recorded relative to it (``..``, ``../..``).
    """
    if root == RootKind.CONFIG:
        _ensure_config_root(manifest, adapter, base)

    chain = []
    for part in PurePosixPath(relative).parts:
        chain.append(chain[-1] / part if chain else PurePosixPath(part))

    for rel in chain:
        key = rel.as_posix()
        directory = base / key
        if directory.is_dir():
            if key in manifest.directories:
                manifest.record_directory(key, root, adapter)
            continue
        directory.mkdir()
        manifest.record_directory(key, root, adapter)
        logger.debug("Created directory %s", directory)


def _ensure_config_root(manifest: Manifest, adapter: str, base: Path) -> None:
    missing = []
    directory = base
    while not directory.is_dir():
        missing.append(directory)
        directory = directory.parent

    for directory in reversed(missing):
        directory.mkdir()
        logger.debug("Created directory %s", directory)
    for directory in [base, *base.parents]:
        key = Path(os.path.relpath(directory, base)).as_posix()
        if directory not in missing and key not in manifest.directories:
            break
        manifest.record_directory(key, RootKind.CONFIG, adapter)


def _backup_local_patch(
    manifest: Manifest,
    destination: Destination,
    target: Path,
    content: str,
    roots: InstallRoots,
) -> Path | None:
    """Copy a file aside if it holds changes neither we nor the new content made."""
    if not target.is_file():
        return None
    current = fingerprint(target.read_bytes())
    if current == fingerprint(content):
        return None
    entry = manifest.files.get(destination.path)
    if entry is not None and entry.sha256 == current:
        return None

    backup = roots.config_root / PATCHES_DIR / destination.path
    backup.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(target, backup)
    logger.warning("Backed up modified %s to %s", target, backup)
    return backup


def _save_partial(manifest: Manifest, scope: FileScope, config_root: Path) -> None:
    try:
        save_manifest(manifest, scope, config_root)
    except OSError:
        logger.exception("Could not record partial progress in the manifest")


def install(
    adapter_name: str,
    scope: FileScope,
    options: InstallOptions | None = None,
    settings: Settings | None = None,
) -> InstallResult:
    """Deploy the sources for ``adapter_name`` at ``scope``."""
    options = options or InstallOptions()
    adapter, roots = _resolve(adapter_name, scope, options, settings)
    try:
        return _install(adapter, roots, options)
    except SkillDeployError as exc:
        exc.adapter = exc.adapter or adapter.name
        exc.scope = exc.scope or scope.value
        raise


def _install(adapter: Adapter, roots: InstallRoots, options: InstallOptions) -> InstallResult:
    scope = roots.scope
    manifest = load_manifest(scope, roots.config_root)
    sources = discover_sources(options.source_root, options.only)
    registrations = adapter.get_registrations(sources, roots)
    config_key = adapter.config_file.relative_path
    config_path = roots.config_root / config_key
    if registrations:
        adapter.config_file.check(config_path)

    result = InstallResult(
        adapter=adapter.name, scope=scope, manifest_path=manifest_path(roots.config_root)
    )
    target = roots.config_root
    try:
        _ensure_directory(manifest, adapter.name, roots.config_root, RootKind.CONFIG, ".")
        for source in sources:
            destination = adapter.get_destination(source, roots)
            if destination is None:
                continue
            content = adapter.get_pipeline(source, roots).apply(source.content)
            content = adapter.render(source, content, roots)

            base = roots.base(destination.root)
            target = base / destination.path
            backup = _backup_local_patch(manifest, destination, target, content, roots)
            if backup is not None:
                result.backed_up.append(backup)
            _ensure_directory(
                manifest,
                adapter.name,
                base,
                destination.root,
                PurePosixPath(destination.path).parent.as_posix(),
            )
            if not target.is_file() or target.read_bytes() != content.encode("utf-8"):
                atomic_write(target, content)
            manifest.record_file(
                destination.path,
                FileEntry(
                    adapter=adapter.name,
                    identifier=source.identifier,
                    root=destination.root,
                    sha256=fingerprint(content),
                ),
            )
            result.paths.append(target)
            logger.debug("Installed %s -> %s", source.identifier, target)

        if registrations:
            target = config_path
            previous = manifest.files.get(config_key)
            created = not config_path.exists()
            replaced = adapter.config_file.upsert(config_path, registrations)
            stanzas = [stanza.name for stanza in registrations]
            if previous is not None and previous.adapter == adapter.name:
                created = previous.created
                # the first value seen for a stanza is the user's, later ones are ours
                replaced = {
                    **{k: v for k, v in replaced.items() if k not in previous.stanzas},
                    **previous.replaced,
                }
                stanzas = previous.stanzas + [s for s in stanzas if s not in previous.stanzas]
            manifest.record_file(
                config_key,
                FileEntry(
                    adapter=adapter.name,
                    identifier=adapter.name,
                    root=RootKind.CONFIG,
                    kind=EntryKind.CONFIG,
                    stanzas=stanzas,
                    created=created,
                    replaced=replaced,
                ),
            )
            result.paths.append(config_path)
    except OSError as exc:
        _save_partial(manifest, scope, roots.config_root)
        raise WriteError(f"Failed to write: {exc}", path=target) from exc
    except SkillDeployError:
        _save_partial(manifest, scope, roots.config_root)
        raise

    save_manifest(manifest, scope, roots.config_root)
    result.files_written = len(result.paths)
    logger.info(
        "Installed %d files for %s (%s) into %s",
        result.files_written,
        adapter.name,
        scope.value,
        roots.config_root,
    )
    return result


def uninstall(
    adapter_name: str,
    scope: FileScope,
    options: InstallOptions | None = None,
    settings: Settings | None = None,
) -> UninstallResult:
    """Remove everything the manifest attributes to ``adapter_name`` at ``scope``."""
    options = options or InstallOptions()
    adapter, roots = _resolve(adapter_name, scope, options, settings)
    try:
        return _uninstall(adapter, roots)
    except SkillDeployError as exc:
        exc.adapter = exc.adapter or adapter.name
        exc.scope = exc.scope or scope.value
        raise


def _uninstall(adapter: Adapter, roots: InstallRoots) -> UninstallResult:
    scope = roots.scope
    result = UninstallResult(
        adapter=adapter.name, scope=scope, manifest_path=manifest_path(roots.config_root)
    )
    if not result.manifest_path.exists():
        logger.info("Nothing installed for %s (%s)", adapter.name, scope.value)
        return result

    manifest = load_manifest(scope, roots.config_root)
    target = roots.config_root
    try:
        for key, entry in manifest.owned_by(adapter.name).items():
            target = roots.base(entry.root) / key
            if entry.kind == EntryKind.CONFIG:
                if target.exists():
                    result.stanzas_removed += adapter.config_file.remove(
                        target, entry.stanzas, entry.replaced
                    )
                    if entry.created and adapter.config_file.is_blank(target):
                        target.unlink()
                        result.paths.append(target)
            elif target.exists():
                target.unlink()
                result.paths.append(target)
                logger.debug("Removed %s", target)
            else:
                logger.warning("%s was already removed; dropping it from the manifest", target)
                result.missing.append(target)
            manifest.forget_file(key)
    except OSError as exc:
        _save_partial(manifest, scope, roots.config_root)
        raise WriteError(f"Failed to remove: {exc}", path=target) from exc
    except SkillDeployError:
        _save_partial(manifest, scope, roots.config_root)
        raise

    released = []
    for key, entry in manifest.directories_owned_by(adapter.name).items():
        if manifest.release_directory(key, adapter.name):
            base = roots.base(entry.root)
            released.append(Path(os.path.normpath(base / key)))
            manifest.forget_directory(key)

    save_manifest(manifest, scope, roots.config_root)

    for directory in sorted(released, key=lambda p: len(p.parts), reverse=True):
        if directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
            logger.debug("Removed empty directory %s", directory)

    result.files_removed = len(result.paths)
    logger.info(
        "Removed %d files for %s (%s) from %s",
        result.files_removed,
        adapter.name,
        scope.value,
        roots.config_root,
    )
    return result
