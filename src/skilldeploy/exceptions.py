"""
Exceptions raised by the install/uninstall engine.
"""

from __future__ import annotations

from pathlib import Path


class SkillDeployError(Exception):
    """Base exception for all skilldeploy errors."""

    def __init__(
        self,
        message: str,
        *,
        adapter: str | None = None,
        scope: str | None = None,
        path: Path | None = None,
    ) -> None:
        self.adapter = adapter
        self.scope = scope
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        context = [
            f"{label}={value}"
            for label, value in (
                ("adapter", self.adapter),
                ("scope", self.scope),
                ("path", self.path),
            )
            if value is not None
        ]
        if not context:
            return message
        return f"{message} ({', '.join(context)})"


class AdapterLookupError(SkillDeployError):
    """Raised when an adapter name is not registered."""

    pass


class WriteError(SkillDeployError):
    """Raised when a destination file cannot be written during install."""

    pass


class ManifestCorruptError(SkillDeployError):
    """Raised when a manifest file exists but cannot be read."""

    pass


class ConfigRegistrationError(SkillDeployError):
    """Raised when a target config file cannot be parsed or edited safely."""

    pass
