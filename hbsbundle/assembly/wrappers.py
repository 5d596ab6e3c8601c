"""AMD dependency declaration variants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..core.errors import ConfigError

DEFAULT_DEPENDENCY = "handlebars"


class AmdKind(str, Enum):
    DEFAULT = "default"
    NAMED = "named"
    COMPUTED = "computed"
    LISTED = "listed"


@dataclass(frozen=True)
class AmdWrapper:
    """How the ``define([...], ...)`` dependency list is produced.

    ``DEFAULT`` depends on ``handlebars``, ``NAMED`` on one custom module,
    ``COMPUTED`` calls ``factory(name, ast, compiled)`` and ``LISTED``
    uses an explicit list.
    """

    kind: AmdKind
    dependencies: tuple[str, ...] = ()
    factory: Optional[Callable[..., str]] = None

    def dependencies_for(
        self, name: str, ast: Optional[dict[str, Any]] = None, compiled: Optional[str] = None
    ) -> tuple[str, ...]:
        if self.kind is AmdKind.COMPUTED and self.factory is not None:
            dependency = self.factory(name, ast, compiled)
            if not isinstance(dependency, str) or not dependency:
                raise ConfigError(
                    f"amd callable must return a module name, got {dependency!r}"
                )
            return (dependency,)
        return self.dependencies


def resolve_amd(option: Any) -> Optional[AmdWrapper]:
    """Turn the ``amd`` task option into a wrapper variant, or None."""
    if option is False or option is None:
        return None
    if option is True:
        return AmdWrapper(AmdKind.DEFAULT, (DEFAULT_DEPENDENCY,))
    if isinstance(option, str):
        return AmdWrapper(AmdKind.NAMED, (option,))
    if isinstance(option, (list, tuple)):
        return AmdWrapper(AmdKind.LISTED, tuple(option))
    if callable(option):
        return AmdWrapper(AmdKind.COMPUTED, factory=option)
    raise ConfigError(f"Unsupported amd option: {option!r}")
