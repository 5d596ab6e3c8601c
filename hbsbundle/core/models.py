"""Domain models for template bundling tasks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..assembly.namespace import split_namespace
from .errors import ConfigError

NamespaceSpec = Union[Literal[False], str, Callable[[str], str]]
AmdSpec = Union[bool, str, list[str], Callable[..., str]]


class TaskOptions(BaseModel):
    """Options for one input directory to output file task.

    Field names follow Python conventions; the camelCase option names of
    the grunt/webpack plugins (``inputDir``, ``partialsUseNamespace``, ...)
    are accepted as aliases.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    input_dir: Path = Field(default=Path("templates"), description="Template directory")
    output_file: str = Field(
        default="compiled-templates.js", description="Output file name"
    )
    output_dir: Path = Field(default=Path(""), description="Output directory")
    namespace: NamespaceSpec = Field(
        default="JST", description="Namespace path, callable(path) or False"
    )
    separator: str = Field(default="\n\n", description="Statement separator")
    wrapped: bool = Field(default=True, description="Wrap in <runtime>.template()")
    amd: AmdSpec = Field(default=False, description="AMD dependency declaration")
    commonjs: bool = Field(default=False, description="Emit CommonJS wrapper")
    node: bool = Field(default=False, description="Emit Node.js export shim")
    known_helpers: Union[list[str], dict[str, bool]] = Field(default_factory=list)
    known_helpers_only: bool = False
    partials_path_regex: re.Pattern = Field(default=re.compile("."))
    partial_regex: re.Pattern = Field(default=re.compile("^_"))
    partials_use_namespace: bool = False
    process_content: Optional[Callable[[str, str], str]] = None
    process_name: Optional[Callable[[str], str]] = None
    process_partial_name: Optional[Callable[[str], str]] = None
    process_ast: Optional[Callable[[dict], dict]] = Field(
        default=None, alias="processAST"
    )
    compiler_options: dict[str, Any] = Field(default_factory=dict)
    extensions: tuple[str, ...] = Field(
        default=(".handlebars", ".hbs"), description="Template file suffixes"
    )
    recursive: bool = Field(default=False, description="Scan sub-directories")
    runtime: str = Field(default="Handlebars", description="Runtime identifier")
    wrap_scope: Literal["output", "fragment"] = Field(
        default="output", description="Wrap the whole output or each fragment"
    )

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: NamespaceSpec) -> NamespaceSpec:
        if isinstance(value, str):
            value = value.strip()
            split_namespace(value)
        return value

    @field_validator("amd")
    @classmethod
    def _check_amd(cls, value: AmdSpec) -> AmdSpec:
        if isinstance(value, str) and not value.strip():
            raise ConfigError("amd dependency name must not be empty")
        if isinstance(value, list) and any(not dep.strip() for dep in value):
            raise ConfigError("amd dependency list must not contain empty names")
        return value

    @field_validator("output_file")
    @classmethod
    def _check_output_file(cls, value: str) -> str:
        if not value.strip():
            raise ConfigError("output_file must not be empty")
        return value

    @field_validator("extensions")
    @classmethod
    def _check_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ConfigError("at least one template extension is required")
        for ext in value:
            if not ext.startswith(".") or len(ext) < 2:
                raise ConfigError(f"Invalid template extension: {ext!r}")
        return value

    @field_validator("runtime")
    @classmethod
    def _check_runtime(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z_$][\w$]*", value):
            raise ConfigError(f"Invalid runtime identifier: {value!r}")
        return value

    @model_validator(mode="after")
    def _check_combinations(self) -> TaskOptions:
        if self.partials_use_namespace and self.namespace is False:
            raise ConfigError("partials_use_namespace requires a namespace")
        return self

    @property
    def use_namespace(self) -> bool:
        return self.namespace is not False

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_file

    def known_helpers_map(self) -> dict[str, bool]:
        if isinstance(self.known_helpers, dict):
            return dict(self.known_helpers)
        return {name: True for name in self.known_helpers}


@dataclass(frozen=True)
class TemplateFile:
    """A template source discovered in the input directory."""

    path: Path
    relative: str
    base_name: str
    is_partial: bool

    @property
    def filepath(self) -> str:
        """POSIX path handed to user hooks and namespace callables."""
        return self.path.as_posix()


@dataclass(frozen=True)
class TaskReport:
    """Outcome of a completed task."""

    output_path: Path
    compiled: int
    skipped: tuple[str, ...] = ()
