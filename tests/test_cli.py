from pathlib import Path

import pytest
from typer.testing import CliRunner

from hbsbundle.cli import app
from hbsbundle.cli.parsers import parse_amd, parse_task
from hbsbundle.compiling import bridge

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fake_bridge(monkeypatch: pytest.MonkeyPatch, precompiler) -> None:
    monkeypatch.setattr(bridge, "default_precompiler", lambda: precompiler)


def test_build_with_task_option(tmp_path: Path, write_templates) -> None:
    root = write_templates({"a.hbs": "a", "_p.hbs": "p"})
    output = tmp_path / "dist" / "bundle.js"

    result = runner.invoke(
        app,
        ["build", "--task", f"{root}=bundle.js", "--output-dir", str(tmp_path / "dist"), "--amd", "true"],
    )

    assert result.exit_code == 0, result.output
    assert f"{output}: 2 template(s)" in result.output
    text = output.read_text(encoding="utf-8")
    assert text.startswith("define(['handlebars'], function(Handlebars) {")
    assert 'Handlebars.registerPartial("p"' in text


def test_build_with_config_file_and_overrides(tmp_path: Path, write_templates) -> None:
    root = write_templates({"a.hbs": "a"})
    config = tmp_path / "hbs.yaml"
    config.write_text(
        f"tasks:\n  - inputDir: {root}\n    outputDir: {tmp_path}\n    outputFile: c.js\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["build", "--config", str(config), "--namespace", "App.T", "--commonjs"])

    assert result.exit_code == 0, result.output
    text = (tmp_path / "c.js").read_text(encoding="utf-8")
    assert text.startswith("module.exports = function(Handlebars) {")
    assert 'this["App"]["T"]["a"] = ' in text


def test_build_reports_skipped_templates(tmp_path: Path, write_templates) -> None:
    root = write_templates({"bad.hbs": "{{oops", "ok.hbs": "ok"})

    result = runner.invoke(
        app, ["build", "--task", f"{root}=out.js", "--output-dir", str(tmp_path)]
    )

    assert result.exit_code == 0, result.output
    assert "1 template(s), 1 skipped" in result.output


def test_build_fails_on_missing_directory(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["build", "--task", f"{tmp_path / 'nope'}=out.js", "--output-dir", str(tmp_path)]
    )

    assert result.exit_code == 1


def test_build_rejects_conflicting_namespace_flags(tmp_path: Path) -> None:
    result = runner.invoke(app, ["build", "--namespace", "A", "--no-namespace"])

    assert result.exit_code != 0


def test_scan_lists_templates(write_templates) -> None:
    root = write_templates({"b.hbs": "b", "_a.hbs": "a", "c.txt": "c"})

    result = runner.invoke(app, ["scan", str(root)])

    assert result.exit_code == 0, result.output
    listed = [line for line in result.stdout.splitlines() if "\t" in line]
    assert listed == ["partial\ta\t_a.hbs", "template\tb\tb.hbs"]


def test_parse_task() -> None:
    assert parse_task("views=views.js") == ("views", "views.js")
    with pytest.raises(Exception):
        parse_task("views")
    with pytest.raises(Exception):
        parse_task("=out.js")


def test_parse_amd() -> None:
    assert parse_amd([]) is False
    assert parse_amd(["true"]) is True
    assert parse_amd(["lib/hbs"]) == "lib/hbs"
    assert parse_amd(["a", "b"]) == ["a", "b"]
