from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from GeneratorComponents.NqcKeywords import ReservedNamePolicy

DEFAULT_PROJECT_NAME = "Untitled"
DEFAULT_OUTPUT_ROOT = Path("outputs")

# Characters that cannot appear in a file name on any common platform.
_INVALID_FILE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class GeneratorOptions:
    """Knobs that change the generated text.

    Attributes:
        indent (str): One level of indentation inside task bodies and nested blocks.
        reserved_name_policy (ReservedNamePolicy): What to do when a name collides with NQC.
        preamble (str): Text written above the first task (for example a header comment).
    """

    indent: str = "  "
    reserved_name_policy: ReservedNamePolicy = ReservedNamePolicy.REJECT
    preamble: str = ""


@dataclass(frozen=True)
class Config:
    path: Path | None
    raw: dict[str, Any]
    project_name: str = DEFAULT_PROJECT_NAME
    output_root: Path = DEFAULT_OUTPUT_ROOT
    generator: GeneratorOptions = field(default_factory=GeneratorOptions)

    @property
    def program_file_stem(self) -> str:
        return clean_file_name(self.project_name)

    def program_name_for(self, workspace: Path) -> str:
        """The configured project name, or the workspace file's stem when the
        config file does not set one."""
        if "project_name" in self.raw:
            return self.program_file_stem
        return clean_file_name(workspace.stem)


def clean_file_name(name: str, default: str = DEFAULT_PROJECT_NAME) -> str:
    """Strip characters that are not allowed in file names."""
    if not name or not name.strip():
        return default
    cleaned = _INVALID_FILE_CHARS.sub("", name).strip()
    return cleaned or default


def default_config() -> Config:
    return Config(path=None, raw={})


def load_config(path: Path | str | None) -> Config:
    """Read a JSON config file. `None` gives the defaults.

    Expected shape (every key optional):

        {
          "project_name": "Line follower",
          "output_root": "outputs",
          "generator": {"indent": "  ", "reserved_names": "reject", "preamble": ""}
        }
    """
    if path is None:
        return default_config()
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"CONFIG_NOT_FOUND: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"CONFIG_INVALID_JSON: {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"CONFIG_INVALID: {path}: top level must be an object")

    project_name = raw.get("project_name", DEFAULT_PROJECT_NAME)
    if not isinstance(project_name, str):
        raise ConfigError(f"CONFIG_INVALID: {path}: project_name must be a string")
    output_root = raw.get("output_root", str(DEFAULT_OUTPUT_ROOT))
    if not isinstance(output_root, str):
        raise ConfigError(f"CONFIG_INVALID: {path}: output_root must be a string")

    return Config(
        path=path,
        raw=raw,
        project_name=project_name,
        output_root=(path.parent / output_root) if not Path(output_root).is_absolute() else Path(output_root),
        generator=_load_generator_options(path, raw.get("generator", {})),
    )


def _load_generator_options(path: Path, raw: Any) -> GeneratorOptions:
    if not isinstance(raw, dict):
        raise ConfigError(f"CONFIG_INVALID: {path}: generator must be an object")

    indent = raw.get("indent", "  ")
    if isinstance(indent, int) and not isinstance(indent, bool):
        indent = " " * indent
    if not isinstance(indent, str) or indent.strip(" \t"):
        raise ConfigError(f"CONFIG_INVALID: {path}: indent must be spaces/tabs or a number of spaces")

    try:
        policy = ReservedNamePolicy(raw.get("reserved_names", ReservedNamePolicy.REJECT))
    except ValueError:
        allowed = ", ".join(p.value for p in ReservedNamePolicy)
        raise ConfigError(f"CONFIG_INVALID: {path}: reserved_names must be one of {allowed}") from None

    preamble = raw.get("preamble", "")
    if not isinstance(preamble, str):
        raise ConfigError(f"CONFIG_INVALID: {path}: preamble must be a string")

    return GeneratorOptions(indent=indent, reserved_name_policy=policy, preamble=preamble)
