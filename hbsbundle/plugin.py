"""Host build-tool integration."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

from .compiling.bridge import Precompiler
from .config.loader import TaskInput, coerce_tasks
from .orchestration.runner import run_all

logger = logging.getLogger(__name__)

COMPILE_PHASE = "compile"

Callback = Callable[[Optional[BaseException]], None]


class BuildHost(Protocol):
    """A build tool exposing phase hooks."""

    def plugin(self, phase: str, handler: Callable[[Any, Callback], None]) -> None: ...


class CompileHandlebars:
    """Precompile templates when the host signals its compile phase.

    Args:
        options: One task mapping/``TaskOptions`` or a list of them
        precompiler: Handlebars compiler; defaults to the Node.js bridge
    """

    def __init__(self, options: Any = None, precompiler: Optional[Precompiler] = None) -> None:
        self.tasks = coerce_tasks(options)
        self.precompiler = precompiler

    def apply(self, host: BuildHost) -> None:
        logger.info(
            f"CompileHandlebars plugin is loading: "
            f"{', '.join(f'{t.input_dir} → {t.output_path}' for t in self.tasks)}"
        )
        host.plugin(COMPILE_PHASE, self.on_compile)

    def on_compile(self, compilation: Any, callback: Callback) -> None:
        """Run every task and report to ``callback`` exactly once.

        Inside a running event loop the tasks are scheduled on it and the
        callback fires on completion; otherwise they run to completion
        before returning.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                asyncio.run(run_all(self.tasks, self.precompiler))
            except Exception as exc:
                logger.error(f"Template precompilation failed: {exc}")
                callback(exc)
                return
            callback(None)
            return

        future = loop.create_task(run_all(self.tasks, self.precompiler))
        future.add_done_callback(lambda done: self._finish(done, callback))

    @staticmethod
    def _finish(done: asyncio.Task, callback: Callback) -> None:
        if done.cancelled():
            callback(asyncio.CancelledError())
            return
        exc = done.exception()
        if exc is not None:
            logger.error(f"Template precompilation failed: {exc}")
        callback(exc)
