import asyncio
import json
import shutil
import subprocess
from pathlib import Path

import pytest

from hbsbundle.compiling.bridge import NodeHandlebars
from hbsbundle.core.errors import CompilerUnavailableError, TemplateCompileError
from hbsbundle.core.models import TaskOptions
from hbsbundle.core.settings import Settings
from hbsbundle.orchestration.runner import run_task


def _handlebars_available() -> bool:
    if shutil.which("node") is None:
        return False
    check = subprocess.run(
        ["node", "-e", "require('handlebars')"], capture_output=True, check=False
    )
    return check.returncode == 0


requires_handlebars = pytest.mark.skipif(
    not _handlebars_available(), reason="node and the handlebars package are required"
)


def test_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HBSBUNDLE_NODE_BINARY", "/opt/node/bin/node")
    monkeypatch.setenv("HBSBUNDLE_BRIDGE_TIMEOUT", "5")

    compiler = NodeHandlebars.from_settings(Settings())

    assert compiler.node_binary == "/opt/node/bin/node"
    assert compiler.module == "handlebars"
    assert compiler.timeout == 5.0


def test_missing_node_binary() -> None:
    compiler = NodeHandlebars(node_binary="definitely-not-node-xyz")

    with pytest.raises(CompilerUnavailableError):
        compiler.ensure_available()
    with pytest.raises(CompilerUnavailableError):
        asyncio.run(compiler.precompile("x", {}))


@requires_handlebars
def test_syntax_error_is_a_compile_error() -> None:
    with pytest.raises(TemplateCompileError):
        asyncio.run(NodeHandlebars().precompile("{{#if x}}unclosed", {}))


@requires_handlebars
def test_parse_then_precompile_ast() -> None:
    compiler = NodeHandlebars()

    ast = asyncio.run(compiler.parse("Hello {{name}}"))
    compiled = asyncio.run(compiler.precompile(ast, {}))

    assert ast["type"] == "Program"
    assert '"main"' in compiled


@requires_handlebars
def test_bundle_renders_like_uncompiled_template(tmp_path: Path) -> None:
    source = "Hello {{name}}! {{> sig}}"
    partial = "-- {{team}}"
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "greeting.hbs").write_text(source, encoding="utf-8")
    (templates / "_sig.hbs").write_text(partial, encoding="utf-8")
    options = TaskOptions(input_dir=templates, output_dir=tmp_path)

    asyncio.run(run_task(options, NodeHandlebars()))

    bundle = (tmp_path / "compiled-templates.js").read_text(encoding="utf-8")
    context = {"name": "Ada", "team": "core"}
    script = """
const vm = require('vm');
const Handlebars = require('handlebars');
const [bundle, source, partial, context] = JSON.parse(require('fs').readFileSync(0, 'utf8'));
const sandbox = { Handlebars: Handlebars.create() };
vm.runInNewContext(bundle, sandbox);
const compiled = sandbox.JST['greeting'](context);
const direct = Handlebars.create();
direct.registerPartial('sig', partial);
process.stdout.write(JSON.stringify([compiled, direct.compile(source)(context)]));
"""
    result = subprocess.run(
        ["node", "-e", script],
        input=json.dumps([bundle, source, partial, context]),
        capture_output=True,
        text=True,
        check=True,
    )

    compiled, direct = json.loads(result.stdout)
    assert compiled == direct == "Hello Ada! -- core"
