from __future__ import annotations

from pathlib import Path

from skilldeploy.adapters.protocol import InstallRoots
from skilldeploy.config import Settings
from skilldeploy.sources import SourceFile
from skilldeploy.types import FileScope

# Places the bundled sources refer to Claude's config directory.
CLAUDE_HOME_REFS = ("~/.claude", "$HOME/.claude")


class BaseAdapter:
    """Shared scope resolution; subclasses set ``dir_name`` and ``env_setting``."""

    name: str = ""
    dir_name: str = ""
    env_setting: str = ""

    def resolve_roots(
        self,
        scope: FileScope,
        settings: Settings,
        config_dir: Path | None = None,
        project_root: Path | None = None,
    ) -> InstallRoots:
        if scope == FileScope.GLOBAL:
            if project_root is not None:
                raise ValueError("project_root is not supported for global scope")
            override = config_dir or getattr(settings, self.env_setting, None)
            if override is not None:
                config_root = Path(override).expanduser().absolute()
                config_ref = config_root.as_posix()
            else:
                config_root = settings.home / self.dir_name
                config_ref = f"~/{self.dir_name}"
            return InstallRoots(
                scope=scope,
                config_root=config_root,
                skills_root=settings.home,
                config_ref=config_ref,
            )

        if config_dir is not None:
            raise ValueError("config_dir is not supported for local scope")
        base = (project_root or Path.cwd()).absolute()
        return InstallRoots(
            scope=scope,
            config_root=base / self.dir_name,
            skills_root=base,
            config_ref=f"./{self.dir_name}",
        )

    def render(self, source: SourceFile, content: str, roots: InstallRoots) -> str:
        return content
