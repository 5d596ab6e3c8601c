"""Task orchestration: one output bundle per task, tasks in parallel."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from ..assembly import assembler
from ..compiling import bridge
from ..compiling.adapter import TemplateCompiler
from ..core.context import TaskContext
from ..core.errors import TemplateCompileError
from ..core.models import TaskOptions, TaskReport, TemplateFile
from ..discovery.classifier import discover
from ..rendering.io import OutputStream, ensure_directory, read_text

logger = logging.getLogger(__name__)


async def _process_file(
    ctx: TaskContext, compiler: TemplateCompiler, template: TemplateFile
) -> Optional[assembler.CompiledFragment]:
    """Compile and assemble one template; None when it has to be skipped."""
    try:
        source = await read_text(template.path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Skipping {template.path}: cannot read template ({exc})")
        ctx.skipped.append(template.relative)
        return None

    try:
        compiled = await compiler.compile(source, template.filepath)
    except TemplateCompileError as exc:
        logger.warning(f"Handlebars failed to compile {template.path}: {exc.message}")
        ctx.skipped.append(template.relative)
        return None

    return assembler.assemble(ctx, template, compiled.body, compiled.ast)


async def run_task(
    options: TaskOptions, precompiler: Optional[bridge.Precompiler] = None
) -> TaskReport:
    """Precompile one input directory into one output file.

    Steps run in order: create the output directory, write the preamble,
    compile each template sequentially and append its fragment, write the
    closer. Templates that fail to read or compile are skipped.

    Args:
        options: Task options
        precompiler: Handlebars compiler; defaults to the Node.js bridge

    Returns:
        Report of the written bundle
    """
    precompiler = precompiler or bridge.default_precompiler()
    precompiler.ensure_available()

    ctx = TaskContext.for_task(options)
    want_ast = (
        options.wrap_scope == "fragment"
        and ctx.amd is not None
        and ctx.amd.factory is not None
    )
    compiler = TemplateCompiler(options, precompiler, want_ast=want_ast)
    output_path = ctx.output_path

    logger.info(f"Precompiling {options.input_dir} → {output_path}")

    await ensure_directory(output_path.parent)
    stream = OutputStream(output_path, options.separator)
    await stream.start(assembler.preamble(ctx))

    templates = await discover(options)
    for template in templates:
        fragment = await _process_file(ctx, compiler, template)
        if fragment is None:
            continue
        await stream.append(fragment.render(options.separator))
        ctx.compiled += 1

    await stream.close(assembler.closer(ctx))

    if ctx.skipped:
        logger.warning(
            f"Skipped {len(ctx.skipped)} template(s) in {options.input_dir}: "
            f"{', '.join(ctx.skipped)}"
        )
    logger.info(
        f"Precompiled {ctx.compiled} template(s) from {options.input_dir} to {output_path}"
    )
    return ctx.report()


async def run_all(
    tasks: Iterable[TaskOptions], precompiler: Optional[bridge.Precompiler] = None
) -> list[TaskReport]:
    """Run every task concurrently.

    Every task runs to completion or failure before this returns; the
    first failure in task order is then raised.
    """
    tasks = list(tasks)
    logger.info(f"Running {len(tasks)} precompile task(s)")
    results = await asyncio.gather(
        *(run_task(task, precompiler) for task in tasks), return_exceptions=True
    )
    failures = [result for result in results if isinstance(result, BaseException)]
    if failures:
        if len(failures) > 1:
            logger.error(f"{len(failures)} of {len(tasks)} precompile tasks failed")
        raise failures[0]
    return list(results)


def build(
    tasks: Iterable[TaskOptions], precompiler: Optional[bridge.Precompiler] = None
) -> list[TaskReport]:
    """Synchronous entry point for :func:`run_all`."""
    return asyncio.run(run_all(tasks, precompiler))
