from __future__ import annotations

from enum import Enum


class FileScope(str, Enum):
    GLOBAL = "global"
    LOCAL = "local"


class FileKind(str, Enum):
    COMMAND = "command"
    WORKFLOW = "workflow"
    AGENT = "agent"
    HOOK = "hook"


class RootKind(str, Enum):
    CONFIG = "config"
    SKILLS = "skills"


class EntryKind(str, Enum):
    FILE = "file"
    CONFIG = "config"
