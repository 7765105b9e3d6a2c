from __future__ import annotations

from skilldeploy.adapters.base import CLAUDE_HOME_REFS, BaseAdapter
from skilldeploy.adapters.protocol import Destination, InstallRoots
from skilldeploy.registration import JsonConfigFile, Stanza
from skilldeploy.sources import NAMESPACE, SourceFile
from skilldeploy.transform import Pipeline, rewrite_home_path
from skilldeploy.types import FileKind, RootKind

_PATHS = {
    FileKind.COMMAND: f"commands/{NAMESPACE}",
    FileKind.WORKFLOW: "get-shit-done/workflows",
    FileKind.AGENT: "agents",
    FileKind.HOOK: "hooks",
}

STATUSLINE_HOOK = "gsd-statusline"


class ClaudeAdapter(BaseAdapter):
    name = "claude"
    dir_name = ".claude"
    env_setting = "claude_config_dir"

    def __init__(self) -> None:
        self.config_file = JsonConfigFile("settings.json")

    def get_destination(
        self, source: SourceFile, roots: InstallRoots
    ) -> Destination | None:
        return Destination(
            root=RootKind.CONFIG, path=f"{_PATHS[source.kind]}/{source.filename}"
        )

    def get_pipeline(self, source: SourceFile, roots: InstallRoots) -> Pipeline:
        return Pipeline(rewrite_home_path(CLAUDE_HOME_REFS, roots.config_ref))

    def get_registrations(
        self, sources: list[SourceFile], roots: InstallRoots
    ) -> list[Stanza]:
        for source in sources:
            if source.kind == FileKind.HOOK and source.identifier == STATUSLINE_HOOK:
                script = f"{roots.config_ref}/hooks/{source.filename}"
                return [
                    Stanza(
                        name="statusLine",
                        body={"type": "command", "command": f"node {script}"},
                    )
                ]
        return []
