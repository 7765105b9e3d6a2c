from __future__ import annotations

import tomli_w

import skilldeploy.frontmatter as fm
from skilldeploy.adapters.base import CLAUDE_HOME_REFS, BaseAdapter
from skilldeploy.adapters.protocol import Destination, InstallRoots
from skilldeploy.registration import Stanza, TomlConfigFile
from skilldeploy.sources import NAMESPACE, SourceFile
from skilldeploy.transform import (
    Pipeline,
    annotate_compatibility,
    redelimit_identifiers,
    rewrite_home_path,
    rewrite_invocations,
)
from skilldeploy.types import FileKind, RootKind

_ROLES_DIR = "get-shit-done/codex/roles"

_TASK_NOTE = (
    "Task(...) calls in this workflow spawn the Codex agent role named by "
    "subagent_type; roles are registered under [agents.*] in config.toml."
)


class CodexAdapter(BaseAdapter):
    name = "codex"
    dir_name = ".codex"
    env_setting = "codex_home"

    def __init__(self) -> None:
        self.config_file = TomlConfigFile("config.toml")

    def skill_name(self, source: SourceFile) -> str:
        return f"{NAMESPACE}-{source.name}"

    def get_destination(
        self, source: SourceFile, roots: InstallRoots
    ) -> Destination | None:
        if source.kind == FileKind.COMMAND:
            return Destination(
                root=RootKind.SKILLS,
                path=f".agents/skills/{self.skill_name(source)}/SKILL.md",
            )
        if source.kind == FileKind.WORKFLOW:
            return Destination(
                root=RootKind.CONFIG, path=f"get-shit-done/workflows/{source.filename}"
            )
        if source.kind == FileKind.AGENT:
            return Destination(
                root=RootKind.CONFIG, path=f"{_ROLES_DIR}/{source.identifier}.toml"
            )
        return None

    def get_pipeline(self, source: SourceFile, roots: InstallRoots) -> Pipeline:
        rules = [
            *rewrite_invocations(NAMESPACE, ["/prompts:gsd-", f"/{NAMESPACE}:"], "${name}"),
            redelimit_identifiers(NAMESPACE),
            *rewrite_home_path(CLAUDE_HOME_REFS, roots.config_ref),
        ]
        if source.kind == FileKind.WORKFLOW:
            rules.append(annotate_compatibility("Codex", _TASK_NOTE))
        return Pipeline(rules)

    def render(self, source: SourceFile, content: str, roots: InstallRoots) -> str:
        if source.kind != FileKind.AGENT:
            return content
        _, body = fm.parse(content)
        instructions = body.strip() + "\n"
        return f"# Codex role: {source.identifier}\n" + tomli_w.dumps(
            {"developer_instructions": instructions}, multiline_strings=True
        )

    def get_registrations(
        self, sources: list[SourceFile], roots: InstallRoots
    ) -> list[Stanza]:
        return [
            Stanza(
                name=f"agents.{source.identifier}",
                body={
                    "description": fm.get_description(source.content)
                    or source.identifier,
                    "config_file": f"{_ROLES_DIR}/{source.identifier}.toml",
                },
            )
            for source in sources
            if source.kind == FileKind.AGENT
        ]
