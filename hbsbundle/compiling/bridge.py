"""Bridge to the Handlebars compiler running under Node.js."""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from typing import Any, Optional, Protocol, Union

from ..core.errors import CompilerUnavailableError, TemplateCompileError
from ..core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Reads one JSON request on stdin and writes one JSON response on stdout.
# Template errors are reported in the response; a missing module or a
# crash exits non-zero.
BRIDGE_SCRIPT = r"""
const fs = require('fs');
const request = JSON.parse(fs.readFileSync(0, 'utf8'));
const Handlebars = require(request.module);
let response;
try {
  if (request.op === 'parse') {
    response = { ast: Handlebars.parse(request.source) };
  } else {
    const input = request.ast || request.source;
    response = { compiled: String(Handlebars.precompile(input, request.options || {})) };
  }
} catch (err) {
  response = { error: { name: err.name || 'Error', message: String(err.message || err) } };
}
process.stdout.write(JSON.stringify(response));
"""


class Precompiler(Protocol):
    """The template compiling capability used by the pipeline."""

    def ensure_available(self) -> None: ...

    async def parse(self, source: str) -> dict[str, Any]: ...

    async def precompile(
        self, template: Union[str, dict[str, Any]], options: dict[str, Any]
    ) -> str: ...


class NodeHandlebars:
    """Precompiler backed by the ``handlebars`` npm package.

    Every call starts ``node -e`` with a JSON request on stdin, so no
    long-lived process has to be managed.
    """

    def __init__(
        self,
        node_binary: str = "node",
        module: str = "handlebars",
        timeout: float = 60.0,
    ) -> None:
        self.node_binary = node_binary
        self.module = module
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> NodeHandlebars:
        settings = settings or get_settings()
        return cls(
            node_binary=settings.node_binary,
            module=settings.handlebars_module,
            timeout=settings.bridge_timeout,
        )

    def ensure_available(self) -> None:
        if shutil.which(self.node_binary) is None:
            raise CompilerUnavailableError(
                f"Node.js executable not found: {self.node_binary!r} "
                "(set HBSBUNDLE_NODE_BINARY)"
            )

    async def parse(self, source: str) -> dict[str, Any]:
        response = await self._call({"op": "parse", "source": source})
        return response["ast"]

    async def precompile(
        self, template: Union[str, dict[str, Any]], options: dict[str, Any]
    ) -> str:
        request: dict[str, Any] = {"op": "precompile", "options": options}
        if isinstance(template, str):
            request["source"] = template
        else:
            request["ast"] = template
        response = await self._call(request)
        return response["compiled"]

    async def _call(self, request: dict[str, Any]) -> dict[str, Any]:
        request = {**request, "module": self.module}
        try:
            process = await asyncio.create_subprocess_exec(
                self.node_binary,
                "-e",
                BRIDGE_SCRIPT,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CompilerUnavailableError(
                f"Cannot start {self.node_binary!r}: {exc}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(json.dumps(request).encode("utf-8")),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise TemplateCompileError(
                f"Handlebars compiler timed out after {self.timeout:.0f}s"
            ) from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise CompilerUnavailableError(
                f"Handlebars bridge failed (exit {process.returncode}): {detail}"
            )

        try:
            response = json.loads(stdout.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise CompilerUnavailableError(
                f"Handlebars bridge returned invalid JSON: {exc}"
            ) from exc

        error = response.get("error")
        if error:
            raise TemplateCompileError(f"{error.get('name')}: {error.get('message')}")
        return response


def default_precompiler() -> Precompiler:
    return NodeHandlebars.from_settings()
