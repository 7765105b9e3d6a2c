"""
Named-stanza editing of a target tool's shared config file.

Only the stanza being registered is ever touched: TOML files are edited as
text (block splice) and re-parsed to prove the result is valid, JSON files
are edited as an ordered mapping so unrelated keys keep their position. A
stanza that replaced someone else's value is put back on removal.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import tomli_w
from pydantic import BaseModel, Field

from skilldeploy.exceptions import ConfigRegistrationError
from skilldeploy.manifest import atomic_write

logger = logging.getLogger(__name__)

_BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_HEADER_RE = re.compile(r"^\s*\[(?!\[)\s*([^\[\]]+?)\s*\]\s*(?:#.*)?$")
_ANY_HEADER_RE = re.compile(r"^\s*\[")
_JSON_INDENT_RE = re.compile(r"\s*\{[ \t]*\r?\n([ \t]+)\S")


class Stanza(BaseModel):
    name: str
    body: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class ConfigFile(Protocol):
    """A shared config file holding named stanzas.

    ``upsert`` returns the values it displaced so that ``remove`` can put them
    back through ``restore``.
    """

    relative_path: str

    def check(self, path: Path) -> None: ...
    def upsert(self, path: Path, stanzas: list[Stanza]) -> dict[str, Any]: ...
    def remove(
        self, path: Path, names: list[str], restore: dict[str, Any] | None = None
    ) -> list[str]: ...
    def is_blank(self, path: Path) -> bool: ...


def _split_key(name: str) -> list[str]:
    parts = name.split(".")
    for part in parts:
        if not _BARE_KEY_RE.match(part):
            raise ConfigRegistrationError(f"Unsupported stanza name {name!r}")
    return parts


def _normalize_header(raw: str) -> str:
    return ".".join(part.strip().strip('"').strip("'") for part in raw.split("."))


def _lookup(data: dict[str, Any], keys: list[str]) -> Any:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


class TomlConfigFile:
    """``[table.name]`` stanzas in a TOML file such as Codex's ``config.toml``."""

    def __init__(self, relative_path: str = "config.toml") -> None:
        self.relative_path = relative_path

    def _read(self, path: Path) -> tuple[str, dict[str, Any]]:
        if not path.exists():
            return "", {}
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigRegistrationError(f"Cannot read config: {exc}", path=path) from exc
        try:
            return text, tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigRegistrationError(f"Config is not valid TOML: {exc}", path=path) from exc

    def check(self, path: Path) -> None:
        self._read(path)

    @staticmethod
    def _find_block(lines: list[str], name: str) -> tuple[int, int] | None:
        start = None
        for index, line in enumerate(lines):
            match = _HEADER_RE.match(line)
            if start is None:
                if match and _normalize_header(match.group(1)) == name:
                    start = index
            elif _ANY_HEADER_RE.match(line):
                return start, index
        if start is None:
            return None
        return start, len(lines)

    @staticmethod
    def render(stanza: Stanza) -> str:
        _split_key(stanza.name)
        body = tomli_w.dumps(stanza.body, multiline_strings=True)
        return f"[{stanza.name}]\n{body}"

    def _splice(self, text: str, stanza: Stanza, data: dict[str, Any], path: Path) -> str:
        lines = text.splitlines(keepends=True)
        block = self.render(stanza).splitlines(keepends=True)
        span = self._find_block(lines, stanza.name)
        if span is None:
            if _lookup(data, _split_key(stanza.name)) is not None:
                raise ConfigRegistrationError(
                    f"Stanza [{stanza.name}] is defined inline and cannot be edited safely",
                    path=path,
                )
            if lines and not lines[-1].endswith("\n"):
                lines[-1] += "\n"
            if lines and lines[-1].strip():
                lines.append("\n")
            return "".join(lines + block)

        start, end = span
        trailing = []
        while end > start + 1 and not lines[end - 1].strip():
            end -= 1
            trailing.append(lines[end])
        return "".join(lines[:start] + block + trailing[::-1] + lines[span[1]:])

    def _put(
        self, text: str, data: dict[str, Any], stanza: Stanza, path: Path
    ) -> tuple[str, dict[str, Any]]:
        updated = self._splice(text, stanza, data, path)
        try:
            data = tomllib.loads(updated)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigRegistrationError(
                f"Registering [{stanza.name}] would corrupt the config: {exc}",
                path=path,
            ) from exc
        if _lookup(data, _split_key(stanza.name)) != stanza.body:
            raise ConfigRegistrationError(
                f"Stanza [{stanza.name}] did not round-trip", path=path
            )
        return updated, data

    def upsert(self, path: Path, stanzas: list[Stanza]) -> dict[str, Any]:
        text, data = self._read(path)
        updated = text
        replaced = {}
        for stanza in stanzas:
            current = _lookup(data, _split_key(stanza.name))
            if current is not None and current != stanza.body:
                replaced[stanza.name] = current
            updated, data = self._put(updated, data, stanza, path)
        if updated != text:
            atomic_write(path, updated)
            logger.debug("Registered %s in %s", [s.name for s in stanzas], path)
        return replaced

    def remove(
        self, path: Path, names: list[str], restore: dict[str, Any] | None = None
    ) -> list[str]:
        restore = restore or {}
        text, _ = self._read(path)
        if not text:
            return []
        removed = []
        lines = text.splitlines(keepends=True)
        for name in names:
            span = self._find_block(lines, name)
            if span is None or name in restore:
                continue
            start, end = span
            # one blank separator goes with the block, trailing or leading
            if lines[end - 1].strip() and start > 0 and not lines[start - 1].strip():
                start -= 1
            del lines[start:end]
            removed.append(name)
        updated = "".join(lines)
        if updated.strip() and not updated.endswith("\n"):
            updated += "\n"
        try:
            data = tomllib.loads(updated)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigRegistrationError(
                f"Removing {removed} would corrupt the config: {exc}", path=path
            ) from exc
        for name in names:
            if name in restore:
                stanza = Stanza(name=name, body=restore[name])
                updated, data = self._put(updated, data, stanza, path)
                removed.append(name)
        if not removed:
            return []
        atomic_write(path, updated)
        logger.debug("Unregistered %s from %s", removed, path)
        return removed

    def is_blank(self, path: Path) -> bool:
        text, _ = self._read(path)
        return not text.strip()


class JsonConfigFile:
    """Top-level keys in a JSON settings file such as Claude's ``settings.json``.

    Files are written back in the style they were read in: the indent of the
    first nested line (compact when the object sits on one line), non-ASCII
    text as is, and a trailing newline only if there was one.
    """

    def __init__(self, relative_path: str = "settings.json") -> None:
        self.relative_path = relative_path

    def _read(self, path: Path) -> tuple[str, dict[str, Any]]:
        if not path.exists():
            return "", {}
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigRegistrationError(f"Cannot read config: {exc}", path=path) from exc
        if not text.strip():
            return text, {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigRegistrationError(f"Config is not valid JSON: {exc}", path=path) from exc
        if not isinstance(data, dict):
            raise ConfigRegistrationError("Config root must be a JSON object", path=path)
        return text, data

    @staticmethod
    def _style(text: str, data: dict[str, Any]) -> tuple[str | int | None, bool]:
        if not data:
            return 2, True
        match = _JSON_INDENT_RE.match(text)
        return (match.group(1) if match else None), text.endswith("\n")

    @staticmethod
    def _dump(data: dict[str, Any], style: tuple[str | int | None, bool]) -> str:
        indent, newline = style
        content = json.dumps(data, indent=indent, ensure_ascii=False)
        return content + "\n" if newline else content

    def check(self, path: Path) -> None:
        self._read(path)

    def upsert(self, path: Path, stanzas: list[Stanza]) -> dict[str, Any]:
        text, data = self._read(path)
        style = self._style(text, data)
        replaced = {}
        changed = not path.exists()
        for stanza in stanzas:
            if data.get(stanza.name) != stanza.body:
                if stanza.name in data:
                    replaced[stanza.name] = data[stanza.name]
                data[stanza.name] = stanza.body
                changed = True
        if changed:
            atomic_write(path, self._dump(data, style))
            logger.debug("Registered %s in %s", [s.name for s in stanzas], path)
        return replaced

    def remove(
        self, path: Path, names: list[str], restore: dict[str, Any] | None = None
    ) -> list[str]:
        restore = restore or {}
        text, data = self._read(path)
        style = self._style(text, data)
        removed = []
        for name in names:
            if name in restore:
                data[name] = restore[name]
            elif name in data:
                del data[name]
            else:
                continue
            removed.append(name)
        if removed:
            atomic_write(path, self._dump(data, style))
            logger.debug("Unregistered %s from %s", removed, path)
        return removed

    def is_blank(self, path: Path) -> bool:
        _, data = self._read(path)
        return not data
