"""Loading task options from mappings and YAML files."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Union

import yaml
from pydantic import ValidationError

from ..core.errors import ConfigError
from ..core.models import TaskOptions

logger = logging.getLogger(__name__)

HOOK_KEYS = frozenset(
    {
        "process_content",
        "processContent",
        "process_name",
        "processName",
        "process_partial_name",
        "processPartialName",
        "process_ast",
        "processAST",
        "amd",
        "namespace_function",
        "namespaceFunction",
    }
)

TaskInput = Union[TaskOptions, Mapping[str, Any]]


def import_object(reference: str) -> Callable[..., Any]:
    """Import ``package.module:attribute``."""
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigError(f"Expected 'module:attribute', got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"Cannot import {module_name!r}: {exc}") from exc

    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ConfigError(f"{module_name!r} has no attribute {attribute!r}") from exc
    if not callable(target):
        raise ConfigError(f"{reference!r} is not callable")
    return target


def _resolve_hooks(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Replace ``module:attribute`` references of hook options by objects.

    ``namespace_function`` is an alternative spelling for a namespace
    computed per file, since ``namespace`` strings are paths.
    """
    data = dict(raw)
    for key in HOOK_KEYS & data.keys():
        value = data[key]
        if key == "amd" and (not isinstance(value, str) or ":" not in value):
            continue
        if isinstance(value, str):
            data[key] = import_object(value)

    for key in ("namespace_function", "namespaceFunction"):
        if key in data:
            if "namespace" in data:
                raise ConfigError("Set either namespace or namespace_function, not both")
            data["namespace"] = data.pop(key)
    return data


def coerce_task(task: TaskInput) -> TaskOptions:
    """Validate one task, merging it onto the defaults."""
    if isinstance(task, TaskOptions):
        return task
    if not isinstance(task, Mapping):
        raise ConfigError(f"Task options must be a mapping, got {type(task).__name__}")
    try:
        return TaskOptions.model_validate(_resolve_hooks(task))
    except ValidationError as exc:
        raise ConfigError(f"Invalid task options: {exc}") from exc


def coerce_tasks(tasks: Union[TaskInput, Iterable[TaskInput], None]) -> list[TaskOptions]:
    """Normalize one task or a list of tasks."""
    if tasks is None:
        return [TaskOptions()]
    if isinstance(tasks, (TaskOptions, Mapping)):
        return [coerce_task(tasks)]
    return [coerce_task(task) for task in tasks]


def load_tasks(path: Path) -> list[TaskOptions]:
    """Load tasks from a YAML file.

    The document is either a single task mapping, a list of tasks, or a
    mapping with a ``tasks`` list.

    Raises:
        ConfigError: If the file is missing, malformed or invalid
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        raise ConfigError(f"Config file is empty: {path}")
    if isinstance(data, Mapping) and "tasks" in data:
        data = data["tasks"]
        if not isinstance(data, list) or not data:
            raise ConfigError(f"'tasks' in {path} must be a non-empty list")
    if not isinstance(data, (Mapping, list)):
        raise ConfigError(f"Unexpected top-level YAML value in {path}")

    tasks = coerce_tasks(data)
    logger.debug(f"Loaded {len(tasks)} task(s) from {path}")
    return tasks
