"""Template compilation with the content and AST hooks applied."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..core.errors import TemplateCompileError
from ..core.models import TaskOptions
from .bridge import Precompiler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledTemplate:
    """Precompiled template expression, plus its AST when one was parsed."""

    body: str
    ast: Optional[dict[str, Any]] = None


class TemplateCompiler:
    """Compiles template sources for one task.

    Args:
        options: Task options (hooks, compiler options, wrapping)
        precompiler: The Handlebars compiling capability
        want_ast: Parse first even without an AST hook, so the AST is
            available downstream (computed AMD dependencies)
    """

    def __init__(
        self, options: TaskOptions, precompiler: Precompiler, *, want_ast: bool = False
    ) -> None:
        self.options = options
        self.precompiler = precompiler
        self.want_ast = want_ast or options.process_ast is not None

    def compiler_options(self) -> dict[str, Any]:
        merged = dict(self.options.compiler_options)
        known_helpers = self.options.known_helpers_map()
        if known_helpers:
            merged["knownHelpers"] = {**merged.get("knownHelpers", {}), **known_helpers}
        if self.options.known_helpers_only:
            merged["knownHelpersOnly"] = True
        return merged

    async def compile(self, source: str, filepath: str) -> CompiledTemplate:
        """Precompile ``source``.

        Raises:
            TemplateCompileError: If the template has a syntax error
        """
        if self.options.process_content is not None:
            source = self.options.process_content(source, filepath)

        ast: Optional[dict[str, Any]] = None
        try:
            if self.want_ast:
                ast = await self.precompiler.parse(source)
                if self.options.process_ast is not None:
                    ast = self.options.process_ast(ast)
                body = await self.precompiler.precompile(ast, self.compiler_options())
            else:
                body = await self.precompiler.precompile(source, self.compiler_options())
        except TemplateCompileError as exc:
            raise TemplateCompileError(exc.message, filepath) from exc

        if self.options.wrapped:
            body = f"{self.options.runtime}.template({body})"

        logger.debug(f"Compiled {filepath} ({len(body)} chars)")
        return CompiledTemplate(body=body, ast=ast)
