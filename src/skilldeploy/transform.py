"""
Text rewrite pipeline applied to source content before it is installed.

A pipeline is an ordered list of rules. Each rule is a pure ``str -> str``
function; later rules see the output of earlier ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from skilldeploy.frontmatter import FRONTMATTER_RE

_NAME = r"[A-Za-z0-9_][\w-]*"


@runtime_checkable
class Rule(Protocol):
    def apply(self, text: str) -> str: ...


class RegexRule:
    """Replace every match of ``pattern`` with ``replacement``."""

    def __init__(self, pattern: str, replacement: str, flags: int = 0) -> None:
        self.pattern = re.compile(pattern, flags)
        self.replacement = replacement

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)

    def __repr__(self) -> str:
        return f"RegexRule({self.pattern.pattern!r}, {self.replacement!r})"


class LiteralRule:
    """Replace every occurrence of a fixed string."""

    def __init__(self, old: str, new: str) -> None:
        if not old:
            raise ValueError("LiteralRule needs a non-empty search string")
        self.old = old
        self.new = new

    def apply(self, text: str) -> str:
        return text.replace(self.old, self.new)

    def __repr__(self) -> str:
        return f"LiteralRule({self.old!r}, {self.new!r})"


class AnnotateRule:
    """Insert a block after the front matter unless ``marker`` is already there."""

    def __init__(self, marker: str, block: str) -> None:
        self.marker = marker
        self.block = block.rstrip("\n") + "\n"

    def apply(self, text: str) -> str:
        if self.marker in text:
            return text
        match = FRONTMATTER_RE.match(text)
        if match is None:
            return f"{self.block}\n{text}"
        head = match.group(0)
        if not head.endswith("\n"):
            head += "\n"
        return f"{head}\n{self.block}{text[match.end():]}"

    def __repr__(self) -> str:
        return f"AnnotateRule({self.marker!r})"


class Pipeline:
    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self.rules: list[Rule] = list(rules)

    def apply(self, text: str) -> str:
        for rule in self.rules:
            text = rule.apply(text)
        return text

    def __add__(self, other: Pipeline) -> Pipeline:
        return Pipeline([*self.rules, *other.rules])

    def __len__(self) -> int:
        return len(self.rules)


def redelimit_identifiers(
    namespace: str, old: str = ":", new: str = "-"
) -> RegexRule:
    """``gsd:new-project`` -> ``gsd-new-project``."""
    return RegexRule(
        rf"\b{re.escape(namespace)}{re.escape(old)}({_NAME})",
        rf"{namespace}{new}\1",
    )


def rewrite_invocations(
    namespace: str, prefixes: Sequence[str], invoke: str
) -> list[RegexRule]:
    """Rewrite slash-command references to the target tool's invocation syntax.

    ``invoke`` is a format string receiving ``name``, the re-delimited skill
    name, e.g. ``"${name}"`` turns ``/gsd:plan-phase`` into ``$gsd-plan-phase``.
    """
    template = invoke.replace("\\", "\\\\").format(name=rf"{namespace}-\g<name>")
    return [
        RegexRule(rf"(?<![\w/]){re.escape(prefix)}(?P<name>{_NAME})", template)
        for prefix in prefixes
    ]


def rewrite_home_path(
    old_roots: Sequence[str], new_root: str
) -> list[RegexRule]:
    """Point hard-coded references to another tool's config directory elsewhere.

    Matches the directory itself as well as paths below it, but not longer
    names that merely start with it (``~/.claude.json``, ``~/.claude-old``).
    """
    target = new_root.rstrip("/")
    return [
        RegexRule(
            re.escape(old.rstrip("/")) + r"(?![\w-]|\.\w)",
            target.replace("\\", "\\\\"),
        )
        for old in old_roots
        if old.rstrip("/") != target
    ]


def annotate_compatibility(tool: str, note: str) -> AnnotateRule:
    marker = f"{tool} compatibility"
    block = f"<!-- {marker}: {note} -->"
    return AnnotateRule(marker, block)
