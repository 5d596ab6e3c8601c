from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Union

import pytest

from hbsbundle.core.errors import TemplateCompileError


class FakePrecompiler:
    """Stands in for the Node.js bridge.

    ``precompile`` returns a deterministic object literal embedding the
    source; unbalanced mustaches raise a compile error like Handlebars does.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def ensure_available(self) -> None:
        return None

    async def parse(self, source: str) -> dict[str, Any]:
        self._check(source)
        self.calls.append(("parse", source))
        return {"type": "Program", "body": [{"type": "ContentStatement", "value": source}]}

    async def precompile(self, template: Union[str, dict[str, Any]], options: dict[str, Any]) -> str:
        self.calls.append(("precompile", template))
        if isinstance(template, str):
            self._check(template)
            source = template
        else:
            source = "".join(node["value"] for node in template["body"])
        return "{" + f'"main":{json.dumps(source)}' + "}"

    @staticmethod
    def _check(source: str) -> None:
        if source.count("{{") != source.count("}}"):
            raise TemplateCompileError("Parse error: unbalanced mustache")


class SlowPrecompiler(FakePrecompiler):
    """Yields to the event loop before every precompile."""

    async def precompile(self, template: Union[str, dict[str, Any]], options: dict[str, Any]) -> str:
        await asyncio.sleep(0.05)
        return await super().precompile(template, options)


@pytest.fixture
def precompiler() -> FakePrecompiler:
    return FakePrecompiler()


@pytest.fixture
def slow_precompiler() -> SlowPrecompiler:
    return SlowPrecompiler()


@pytest.fixture
def write_templates(tmp_path: Path):
    def _write(files: dict[str, str], directory: str = "templates") -> Path:
        root = tmp_path / directory
        root.mkdir(parents=True, exist_ok=True)
        for name, content in files.items():
            target = root / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root

    return _write
