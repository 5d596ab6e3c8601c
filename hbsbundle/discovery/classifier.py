"""Template discovery and partial classification."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path, PurePosixPath
from typing import Iterable

import aiofiles.os

from ..core.errors import DirectoryError
from ..core.models import TaskOptions, TemplateFile

logger = logging.getLogger(__name__)

PARTIAL_MARKER = "_"


def strip_extension(file_name: str) -> str:
    """Drop the last extension: ``list.item.hbs`` -> ``list.item``."""
    stem, dot, _ = file_name.rpartition(".")
    return stem if dot else file_name


def default_partial_name(file_name: str) -> str:
    name = strip_extension(file_name)
    if name.startswith(PARTIAL_MARKER):
        name = name[len(PARTIAL_MARKER) :]
    return name


def is_template_name(file_name: str, extensions: Iterable[str]) -> bool:
    return any(file_name.endswith(ext) and len(file_name) > len(ext) for ext in extensions)


def _is_regular_file(path: Path) -> bool:
    try:
        mode = os.lstat(path).st_mode
    except OSError:
        return False
    return stat.S_ISREG(mode)


def classify(
    input_dir: Path, entries: Iterable[str], options: TaskOptions
) -> list[TemplateFile]:
    """Select template files among ``entries`` and flag partials.

    Args:
        input_dir: Directory the entries are relative to
        entries: POSIX paths relative to ``input_dir``
        options: Task options (extensions, partial patterns)

    Returns:
        Templates sorted by relative path
    """
    templates: list[TemplateFile] = []
    for relative in sorted(entries):
        file_name = PurePosixPath(relative).name
        if not is_template_name(file_name, options.extensions):
            continue
        path = input_dir / relative
        if not _is_regular_file(path):
            logger.debug(f"Skipping non-regular entry {path}")
            continue

        is_partial = bool(
            options.partials_path_regex.search(path.as_posix())
            and options.partial_regex.search(file_name)
        )
        base_name = default_partial_name(file_name) if is_partial else strip_extension(file_name)
        templates.append(TemplateFile(path, relative, base_name, is_partial))
    return templates


async def _list_entries(root: Path, prefix: str, recursive: bool) -> list[str]:
    entries: list[str] = []
    for name in await aiofiles.os.listdir(root / prefix if prefix else root):
        relative = f"{prefix}/{name}" if prefix else name
        full = root / relative
        if recursive and await aiofiles.os.path.isdir(full) and not await aiofiles.os.path.islink(full):
            entries.extend(await _list_entries(root, relative, recursive))
        else:
            entries.append(relative)
    return entries


async def discover(options: TaskOptions) -> list[TemplateFile]:
    """List and classify the templates of a task's input directory.

    Raises:
        DirectoryError: If the input directory cannot be read
    """
    input_dir = options.input_dir
    try:
        entries = await _list_entries(input_dir, "", options.recursive)
    except OSError as exc:
        raise DirectoryError(input_dir, exc.strerror or str(exc)) from exc

    templates = classify(input_dir, entries, options)
    partials = sum(1 for template in templates if template.is_partial)
    logger.info(
        f"Number of templates to process: {len(templates)} "
        f"({partials} partial(s)) in {input_dir}"
    )
    return templates
