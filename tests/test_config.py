import json
from pathlib import Path

import pytest

from GeneratorComponents.Config import (
    DEFAULT_OUTPUT_ROOT,
    DEFAULT_PROJECT_NAME,
    ConfigError,
    GeneratorOptions,
    clean_file_name,
    load_config,
)
from GeneratorComponents.NqcKeywords import ReservedNamePolicy


def write_config(tmp_path, data):
    path = tmp_path / "nqc.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_a_file():
    config = load_config(None)
    assert config.path is None
    assert config.project_name == DEFAULT_PROJECT_NAME
    assert config.output_root == DEFAULT_OUTPUT_ROOT
    assert config.generator == GeneratorOptions()
    assert config.generator.reserved_name_policy == ReservedNamePolicy.REJECT


def test_values_are_read_from_the_file(tmp_path):
    path = write_config(
        tmp_path,
        {
            "project_name": "Line: follower",
            "output_root": "build",
            "generator": {"indent": 4, "reserved_names": "rename", "preamble": "// hi"},
        },
    )
    config = load_config(path)
    assert config.project_name == "Line: follower"
    assert config.program_file_stem == "Line follower"
    assert config.output_root == tmp_path / "build"
    assert config.generator == GeneratorOptions(
        indent="    ", reserved_name_policy=ReservedNamePolicy.RENAME, preamble="// hi"
    )


def test_absolute_output_root_is_kept(tmp_path):
    target = tmp_path / "elsewhere"
    config = load_config(write_config(tmp_path, {"output_root": str(target)}))
    assert config.output_root == target


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="CONFIG_NOT_FOUND"):
        load_config(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "nqc.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="CONFIG_INVALID_JSON"):
        load_config(path)


@pytest.mark.parametrize(
    "data",
    [
        ["not", "an", "object"],
        {"project_name": 3},
        {"output_root": ["outputs"]},
        {"generator": "tabs"},
        {"generator": {"indent": "xx"}},
        {"generator": {"indent": True}},
        {"generator": {"reserved_names": "ignore"}},
        {"generator": {"preamble": 1}},
    ],
)
def test_invalid_values(tmp_path, data):
    with pytest.raises(ConfigError, match="CONFIG_INVALID"):
        load_config(write_config(tmp_path, data))


@pytest.mark.parametrize(
    "name, cleaned",
    [("robot", "robot"), ('a/b:c*"d', "abcd"), ("   ", DEFAULT_PROJECT_NAME), ("", DEFAULT_PROJECT_NAME), ("???", DEFAULT_PROJECT_NAME)],
)
def test_clean_file_name(name, cleaned):
    assert clean_file_name(name) == cleaned


def test_config_error_is_a_runtime_error():
    assert issubclass(ConfigError, RuntimeError)
    assert isinstance(DEFAULT_OUTPUT_ROOT, Path)
