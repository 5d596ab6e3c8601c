import asyncio
from pathlib import Path

from hbsbundle.plugin import COMPILE_PHASE, CompileHandlebars


class RecordingHost:
    def __init__(self) -> None:
        self.handlers = {}

    def plugin(self, phase, handler) -> None:
        self.handlers[phase] = handler


def test_apply_registers_compile_phase() -> None:
    host = RecordingHost()
    CompileHandlebars({"inputDir": "views"}).apply(host)

    assert list(host.handlers) == [COMPILE_PHASE]


def test_compile_phase_reports_success_once(tmp_path: Path, write_templates, precompiler) -> None:
    root = write_templates({"a.hbs": "a"})
    plugin = CompileHandlebars(
        [{"inputDir": str(root), "outputDir": str(tmp_path / "dist")}], precompiler
    )
    host = RecordingHost()
    plugin.apply(host)
    results = []

    host.handlers[COMPILE_PHASE](object(), results.append)

    assert results == [None]
    assert (tmp_path / "dist" / "compiled-templates.js").exists()


def test_compile_phase_reports_error(tmp_path: Path, precompiler) -> None:
    plugin = CompileHandlebars({"inputDir": str(tmp_path / "missing"), "outputDir": str(tmp_path)}, precompiler)
    results = []

    plugin.on_compile(object(), results.append)

    assert len(results) == 1
    assert "missing" in str(results[0])


def test_compile_phase_inside_running_loop(tmp_path: Path, write_templates, precompiler) -> None:
    root = write_templates({"a.hbs": "a"})
    plugin = CompileHandlebars({"inputDir": str(root), "outputDir": str(tmp_path)}, precompiler)

    async def host_build() -> list:
        done = asyncio.get_running_loop().create_future()
        plugin.on_compile(object(), done.set_result)
        return [await done]

    assert asyncio.run(host_build()) == [None]
    assert (tmp_path / "compiled-templates.js").exists()
