from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from skilldeploy.config import Settings
from skilldeploy.registration import ConfigFile, Stanza
from skilldeploy.sources import SourceFile
from skilldeploy.transform import Pipeline
from skilldeploy.types import FileScope, RootKind


class InstallRoots(BaseModel):
    scope: FileScope
    config_root: Path
    skills_root: Path
    # How content should spell the config root, e.g. "~/.codex" or "./.codex".
    config_ref: str

    def base(self, root: RootKind) -> Path:
        return self.skills_root if root == RootKind.SKILLS else self.config_root


class Destination(BaseModel):
    root: RootKind
    path: str


@runtime_checkable
class Adapter(Protocol):
    name: str
    config_file: ConfigFile

    def resolve_roots(
        self,
        scope: FileScope,
        settings: Settings,
        config_dir: Path | None = None,
        project_root: Path | None = None,
    ) -> InstallRoots: ...
    def get_destination(
        self, source: SourceFile, roots: InstallRoots
    ) -> Destination | None: ...
    def get_pipeline(self, source: SourceFile, roots: InstallRoots) -> Pipeline: ...
    def render(self, source: SourceFile, content: str, roots: InstallRoots) -> str: ...
    def get_registrations(
        self, sources: list[SourceFile], roots: InstallRoots
    ) -> list[Stanza]: ...
