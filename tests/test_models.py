from pathlib import Path

import pytest
from pydantic import ValidationError

from hbsbundle.core.models import TaskOptions


def test_defaults() -> None:
    options = TaskOptions()

    assert options.input_dir == Path("templates")
    assert options.output_path == Path("compiled-templates.js")
    assert options.namespace == "JST"
    assert options.separator == "\n\n"
    assert options.wrapped is True
    assert options.amd is False
    assert options.commonjs is False
    assert options.partial_regex.pattern == "^_"
    assert options.partials_path_regex.pattern == "."
    assert options.wrap_scope == "output"
    assert options.use_namespace


def test_camel_case_aliases() -> None:
    options = TaskOptions.model_validate(
        {
            "inputDir": "src/views",
            "outputDir": "dist",
            "outputFile": "views.js",
            "knownHelpersOnly": True,
            "partialsUseNamespace": True,
            "processAST": lambda ast: ast,
        }
    )

    assert options.output_path == Path("dist/views.js")
    assert options.known_helpers_only is True
    assert options.partials_use_namespace is True
    assert options.process_ast is not None


def test_options_are_immutable() -> None:
    options = TaskOptions()
    with pytest.raises(ValidationError):
        options.namespace = "Other"


@pytest.mark.parametrize(
    "overrides",
    [
        {"namespace": True},
        {"namespace": "App..Views"},
        {"amd": ""},
        {"amd": ["handlebars", " "]},
        {"output_file": " "},
        {"extensions": ("hbs",)},
        {"runtime": "Handle bars"},
        {"wrap_scope": "module"},
        {"partial_regex": "("},
        {"unknown_option": 1},
        {"namespace": False, "partials_use_namespace": True},
    ],
)
def test_invalid_options_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        TaskOptions(**overrides)


def test_amd_shapes_accepted() -> None:
    assert TaskOptions(amd=True).amd is True
    assert TaskOptions(amd="lib/handlebars").amd == "lib/handlebars"
    assert TaskOptions(amd=["handlebars", "helpers"]).amd == ["handlebars", "helpers"]
    assert callable(TaskOptions(amd=lambda name, ast, compiled: "hbs").amd)


def test_known_helpers_map() -> None:
    assert TaskOptions(known_helpers=["t", "i18n"]).known_helpers_map() == {
        "t": True,
        "i18n": True,
    }
    assert TaskOptions(known_helpers={"t": False}).known_helpers_map() == {"t": False}
