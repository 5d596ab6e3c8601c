"""Generation of the JavaScript module text."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from jinja2 import Environment, StrictUndefined, Template

from ..core.context import TaskContext
from ..core.models import TemplateFile
from .namespace import NamespaceInfo, resolve

logger = logging.getLogger(__name__)


def js_string(value: str) -> str:
    """Double-quoted JavaScript string literal, as JSON.stringify writes it."""
    return json.dumps(value, ensure_ascii=False)


def js_quote(value: str) -> str:
    """Single-quoted JavaScript string literal used in dependency lists."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _build_environment() -> Environment:
    env = Environment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=False,
    )
    env.filters["js_string"] = js_string
    env.filters["js_quote"] = js_quote
    return env


_env = _build_environment()

AMD_OPEN: Template = _env.from_string(
    "define([{{ dependencies | map('js_quote') | join(', ') }}], function({{ runtime }}) {"
)
AMD_CLOSE: Template = _env.from_string("});")
COMMONJS_OPEN: Template = _env.from_string("module.exports = function({{ runtime }}) {")
COMMONJS_CLOSE: Template = _env.from_string("};")
RETURN: Template = _env.from_string("return {{ value }};")
AMD_RETURN: Template = _env.from_string("return {{ value }}")
EXPRESSION: Template = _env.from_string("({{ body }});")
NODE_GLOBAL: Template = _env.from_string(
    "var glob = ('undefined' === typeof window) ? global : window,"
)
NODE_RUNTIME: Template = _env.from_string(
    "{{ runtime }} = glob.{{ runtime }} || require('handlebars');"
)
NODE_EXPORT: Template = _env.from_string(
    "if (typeof exports === 'object' && exports) {module.exports = {{ namespace }};}"
)
TEMPLATE_ASSIGN: Template = _env.from_string(
    "{{ namespace }}[{{ name | js_string }}] = {{ body }};"
)
PARTIAL_REGISTER: Template = _env.from_string(
    "{{ runtime }}.registerPartial({{ name | js_string }}, {{ body }});"
)
PARTIAL_REGISTER_NAMESPACED: Template = _env.from_string(
    "{{ runtime }}.registerPartial({{ name | js_string }}, "
    "{{ namespace }}[{{ name | js_string }}] = {{ body }});"
)


@dataclass(frozen=True)
class CompiledFragment:
    """Generated statements for one template file, in emission order."""

    name: str
    declarations: tuple[str, ...] = ()
    partials: tuple[str, ...] = ()
    templates: tuple[str, ...] = ()
    opening: tuple[str, ...] = ()
    closing: tuple[str, ...] = ()

    def statements(self) -> list[str]:
        return [
            *self.opening,
            *self.declarations,
            *self.partials,
            *self.templates,
            *self.closing,
        ]

    def render(self, separator: str) -> str:
        return separator.join(self.statements())


def opening_lines(
    ctx: TaskContext,
    name: str,
    ast: Optional[dict[str, Any]] = None,
    compiled: Optional[str] = None,
) -> list[str]:
    """Wrapper openers: CommonJS, then AMD, then the Node.js shim."""
    options = ctx.options
    lines: list[str] = []
    if options.commonjs:
        lines.append(COMMONJS_OPEN.render(runtime=options.runtime))
    if ctx.amd is not None:
        dependencies = ctx.amd.dependencies_for(name, ast, compiled)
        lines.append(AMD_OPEN.render(dependencies=dependencies, runtime=options.runtime))
    if options.node and options.use_namespace:
        lines.append(NODE_GLOBAL.render())
        lines.append(NODE_RUNTIME.render(runtime=options.runtime))
    return lines


def closing_lines(ctx: TaskContext, namespace: str) -> list[str]:
    """Wrapper closers, mirroring :func:`opening_lines`.

    ``namespace`` is the most recently resolved namespace expression; the
    AMD wrapper instead returns the global namespace shared by every
    declaration.
    """
    options = ctx.options
    lines: list[str] = []
    if options.node and options.use_namespace and namespace:
        lines.append(NODE_EXPORT.render(namespace=namespace))
    if ctx.amd is not None:
        if options.use_namespace:
            global_namespace = ctx.registry.global_namespace()
            if global_namespace:
                lines.append(RETURN.render(value=global_namespace))
        lines.append(AMD_CLOSE.render())
    if options.commonjs:
        if options.use_namespace and namespace:
            lines.append(RETURN.render(value=namespace))
        lines.append(COMMONJS_CLOSE.render())
    return lines


def preamble(ctx: TaskContext) -> str:
    """Text written before any fragment.

    Only the ``output`` wrap scope has a preamble. A fixed namespace string
    is declared up front so an empty bundle still exposes it.
    """
    options = ctx.options
    if options.wrap_scope != "output":
        return ""

    lines = opening_lines(ctx, options.output_file)
    if options.use_namespace and isinstance(options.namespace, str):
        info = resolve(options.namespace, ctx.output_path.as_posix(), ctx.registry)
        ctx.last_namespace = info.namespace
        if info.declarations:
            lines.append(info.declaration)
    return options.separator.join(lines)


def closer(ctx: TaskContext) -> str:
    if ctx.options.wrap_scope != "output":
        return ""
    return ctx.options.separator.join(closing_lines(ctx, ctx.last_namespace))


def _namespace_for(ctx: TaskContext, template: TemplateFile) -> NamespaceInfo:
    info = resolve(ctx.options.namespace, template.filepath, ctx.registry)
    ctx.last_namespace = info.namespace
    return info


def assemble(
    ctx: TaskContext,
    template: TemplateFile,
    body: str,
    ast: Optional[dict[str, Any]] = None,
) -> CompiledFragment:
    """Build the fragment for one compiled template.

    Args:
        ctx: Task state; its namespace registry is updated
        template: The source file
        body: Precompiled (and possibly wrapped) template expression
        ast: Parsed template, when it was requested from the compiler

    Returns:
        Fragment with declarations before partials before templates
    """
    options = ctx.options
    declarations: list[str] = []
    partials: list[str] = []
    templates: list[str] = []

    if template.is_partial:
        hook = options.process_partial_name
        name = hook(template.filepath) if hook else template.base_name
        if options.partials_use_namespace:
            info = _namespace_for(ctx, template)
            if info.declarations:
                declarations.append(info.declaration)
            partials.append(
                PARTIAL_REGISTER_NAMESPACED.render(
                    runtime=options.runtime, name=name, namespace=info.namespace, body=body
                )
            )
        else:
            partials.append(
                PARTIAL_REGISTER.render(runtime=options.runtime, name=name, body=body)
            )
    else:
        hook = options.process_name
        name = hook(template.filepath) if hook else template.base_name
        if options.use_namespace:
            info = _namespace_for(ctx, template)
            if info.declarations:
                declarations.append(info.declaration)
            templates.append(
                TEMPLATE_ASSIGN.render(namespace=info.namespace, name=name, body=body)
            )
        elif options.commonjs:
            templates.append(RETURN.render(value=body))
        elif ctx.amd is not None:
            templates.append(AMD_RETURN.render(value=body))
        else:
            templates.append(EXPRESSION.render(body=body))

    opening: list[str] = []
    closing: list[str] = []
    if options.wrap_scope == "fragment":
        opening = opening_lines(ctx, name, ast, body)
        closing = closing_lines(ctx, ctx.last_namespace)

    logger.debug(
        f"Assembled {'partial' if template.is_partial else 'template'} {name!r} "
        f"from {template.relative}"
    )
    return CompiledFragment(
        name=name,
        declarations=tuple(declarations),
        partials=tuple(partials),
        templates=tuple(templates),
        opening=tuple(opening),
        closing=tuple(closing),
    )
