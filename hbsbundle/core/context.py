"""Per-task mutable state threaded through the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..assembly.namespace import NamespaceRegistry
from ..assembly.wrappers import AmdWrapper, resolve_amd
from .models import TaskOptions, TaskReport


@dataclass
class TaskContext:
    """State owned by a single task run.

    Never shared between tasks: each output file has its own registry of
    declared namespaces.
    """

    options: TaskOptions
    amd: Optional[AmdWrapper] = None
    registry: NamespaceRegistry = field(default_factory=NamespaceRegistry)
    last_namespace: str = ""
    compiled: int = 0
    skipped: list[str] = field(default_factory=list)

    @classmethod
    def for_task(cls, options: TaskOptions) -> TaskContext:
        return cls(options=options, amd=resolve_amd(options.amd))

    @property
    def output_path(self) -> Path:
        return self.options.output_path

    def report(self) -> TaskReport:
        return TaskReport(self.output_path, self.compiled, tuple(self.skipped))
