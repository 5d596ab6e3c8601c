"""Namespace path resolution and declaration bookkeeping."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterator, Union

from ..core.errors import ConfigError

logger = logging.getLogger(__name__)

ROOT = "this"

_SEGMENT_PATTERN = re.compile(
    r"""\[\s*(?P<quote>["']?)(?P<bracketed>.*?)(?P=quote)\s*\]|(?P<plain>[^.\[\]]+)"""
)
_GLOBAL_PATTERN = re.compile(r"this\[[^\[]+\]")


def split_namespace(namespace: str) -> list[str]:
    """Split a namespace path into its segments.

    Accepts dotted paths (``App.Views``) and bracketed segments
    (``App["my.views"]``). A leading ``this`` is ignored.

    Raises:
        ConfigError: If the path has no usable segment
    """
    text = namespace.strip()
    segments: list[str] = []
    position = 0
    for match in _SEGMENT_PATTERN.finditer(text):
        gap = text[position : match.start()].strip()
        plain = match.group("plain")
        if not segments:
            allowed = {""}
        elif plain is not None:
            allowed = {"."}
        else:
            allowed = {"", "."}
        if gap not in allowed:
            raise ConfigError(f"Malformed namespace path: {namespace!r}")
        position = match.end()
        segment = plain.strip() if plain is not None else match.group("bracketed")
        if not segment:
            raise ConfigError(f"Empty segment in namespace path: {namespace!r}")
        segments.append(segment)
    if text[position:].strip():
        raise ConfigError(f"Malformed namespace path: {namespace!r}")

    if segments and segments[0] == ROOT:
        segments = segments[1:]
    if not segments:
        raise ConfigError(f"Namespace path has no segments: {namespace!r}")
    return segments


def bracket_path(segments: list[str]) -> str:
    return ROOT + "".join(f"[{json.dumps(segment, ensure_ascii=False)}]" for segment in segments)


class NamespaceRegistry:
    """Namespace prefixes already declared in one output file.

    Keys are bracket paths such as ``this["App"]["Views"]``, kept in
    declaration order.
    """

    def __init__(self) -> None:
        self._declared: dict[str, bool] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._declared

    def __iter__(self) -> Iterator[str]:
        return iter(self._declared)

    def __len__(self) -> int:
        return len(self._declared)

    def declare(self, path: str) -> bool:
        """Mark ``path`` declared. Returns False if it already was."""
        if path in self._declared:
            return False
        self._declared[path] = True
        return True

    def global_namespace(self) -> str:
        """Return the outermost namespace shared by every declaration.

        Empty when nothing was declared; the single declaration when there
        is exactly one; otherwise the leading ``this[...]`` of the first.
        """
        declarations = list(self._declared)
        if not declarations:
            return ""
        if len(declarations) == 1:
            return declarations[0]
        match = _GLOBAL_PATTERN.match(declarations[0])
        return match.group(0) if match else declarations[0]


@dataclass(frozen=True)
class NamespaceInfo:
    """Assignment target for a template plus the declarations it needs."""

    namespace: str
    declarations: tuple[str, ...] = ()

    @property
    def declaration(self) -> str:
        return "\n".join(self.declarations)


def resolve(
    namespace: Union[bool, str, Callable[[str], str]],
    filepath: str,
    registry: NamespaceRegistry,
) -> NamespaceInfo:
    """Resolve the namespace for ``filepath`` and declare missing prefixes.

    Args:
        namespace: Fixed path, callable receiving the file path, or False
        filepath: Template path handed to namespace callables
        registry: Prefixes already declared in the current output file

    Returns:
        Namespace expression and the newly required declarations
    """
    if namespace is False:
        return NamespaceInfo("")

    spec = namespace(filepath) if callable(namespace) else namespace
    if not isinstance(spec, str):
        raise ConfigError(
            f"Namespace callable returned {type(spec).__name__} for {filepath}, expected str"
        )
    segments = split_namespace(spec)

    declarations: list[str] = []
    for depth in range(1, len(segments) + 1):
        path = bracket_path(segments[:depth])
        if registry.declare(path):
            declarations.append(f"{path} = {path} || {{}};")

    namespace_expr = bracket_path(segments)
    if declarations:
        logger.debug(f"Declared {len(declarations)} namespace(s) for {namespace_expr}")
    return NamespaceInfo(namespace_expr, tuple(declarations))
