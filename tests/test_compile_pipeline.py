import json
from pathlib import Path

import pytest

from GeneratorComponents.BlockGraph import BlockGraph
from GeneratorComponents.BlockTypes import BlockKind
from GeneratorComponents.Config import load_config

from compile_pipeline import PipelineSession, compile_file_to_outputs

WORKSPACES_DIR = Path(__file__).resolve().parents[1] / "examples" / "workspaces"
EXAMPLE_WORKSPACES = sorted(WORKSPACES_DIR.glob("*.json"))


@pytest.mark.parametrize("path", EXAMPLE_WORKSPACES, ids=lambda p: p.stem)
def test_example_workspaces_match_stored_programs(tmp_path, path):
    ok, out_path, message = compile_file_to_outputs(path, output_root=tmp_path)
    assert ok, message
    assert out_path == tmp_path / path.stem / f"{path.stem}.nqc"
    assert out_path.read_text(encoding="utf-8") == path.with_suffix(".nqc").read_text(encoding="utf-8")


def test_there_are_example_workspaces():
    assert len(EXAMPLE_WORKSPACES) >= 4


def test_validation_warnings_are_listed(tmp_path):
    ok, _, message = compile_file_to_outputs(WORKSPACES_DIR / "duplicate_tasks.json", output_root=tmp_path)
    assert ok
    assert "2 warning(s)" in message
    assert "Only one main task is allowed" in message
    assert 'another task is already called "blink"' in message


def test_load_failure_is_reported(tmp_path):
    ok, out_path, message = compile_file_to_outputs(tmp_path / "missing.json", output_root=tmp_path)
    assert not ok
    assert out_path is None
    assert "Cannot read workspace" in message


def test_generation_failure_is_reported(tmp_path):
    path = tmp_path / "reserved.json"
    path.write_text(
        json.dumps({"blocks": {"blocks": [{"type": "variable_set", "fields": {"VAR": "OnFwd"}}]}}),
        encoding="utf-8",
    )
    ok, out_path, message = compile_file_to_outputs(path, output_root=tmp_path)
    assert not ok
    assert out_path is None
    assert '"OnFwd" is reserved' in message


def test_config_names_the_program_and_sets_options(tmp_path):
    config_path = tmp_path / "nqc.json"
    config_path.write_text(
        json.dumps(
            {
                "project_name": "Patrol bot",
                "generator": {"reserved_names": "rename", "preamble": "// patrol"},
            }
        ),
        encoding="utf-8",
    )
    workspace = tmp_path / "reserved.json"
    workspace.write_text(
        json.dumps({"blocks": {"blocks": [{"type": "variable_set", "fields": {"VAR": "Off"}}]}}),
        encoding="utf-8",
    )
    config = load_config(config_path)
    ok, out_path, message = compile_file_to_outputs(workspace, output_root=tmp_path / "out", config=config)
    assert ok, message
    assert out_path == tmp_path / "out" / "Patrol bot" / "Patrol bot.nqc"
    assert out_path.read_text(encoding="utf-8") == (
        "// patrol\n\ntask main()\n{\n  int Off2;\n\n  Off2 = 0;\n}\n"
    )


def test_session_ticks_through_both_phases():
    graph = BlockGraph()
    main = graph.create(BlockKind.MAIN_TASK)
    graph.connect_statement(main, "STATEMENTS", graph.create(BlockKind.MOTOR_OFF))
    graph.create(BlockKind.MAIN_TASK)

    session = PipelineSession()
    session.use_graph(graph, "two_mains")
    session.begin_validation()
    validation_reports = []
    while True:
        done, report = session.tick_validation()
        if done:
            break
        validation_reports.append(report)
    assert len(validation_reports) == 2
    assert len(session.warnings) == 1

    session.begin_code_generation()
    while not session.tick_code_generation()[0]:
        pass
    assert session.output_code == "task main()\n{\n  Off(OUT_A);\n}\n"
    # the disabled second main is skipped silently by the generator
    assert len(session.warnings) == 1


def test_ticking_before_begin_raises():
    session = PipelineSession()
    with pytest.raises(RuntimeError):
        session.tick_validation()
    with pytest.raises(RuntimeError):
        session.tick_code_generation()


def _patrol_workspace(tmp_path):
    workspace = tmp_path / "patrol.json"
    workspace.write_text(
        json.dumps({"blocks": {"blocks": [{"type": "motor_on", "fields": {"MOTOR": "OUT_A", "DIRECTION": "FWD"}}]}}),
        encoding="utf-8",
    )
    return workspace


def test_command_line_names_the_program_from_the_config(tmp_path):
    from DirectCompiler import compile_workspace

    workspace = _patrol_workspace(tmp_path)
    config_path = tmp_path / "nqc.json"
    config_path.write_text(
        json.dumps({"project_name": "Patrol bot", "output_root": str(tmp_path / "out")}), encoding="utf-8"
    )
    assert compile_workspace(str(workspace.with_suffix("")), str(config_path))
    assert (tmp_path / "out" / "Patrol bot" / "Patrol bot.nqc").exists()
    assert not (tmp_path / "out" / "patrol").exists()


def test_command_line_falls_back_to_the_workspace_name(tmp_path):
    from DirectCompiler import compile_workspace

    workspace = _patrol_workspace(tmp_path)
    config_path = tmp_path / "nqc.json"
    config_path.write_text(json.dumps({"output_root": str(tmp_path / "out")}), encoding="utf-8")
    assert compile_workspace(str(workspace), str(config_path))
    assert (tmp_path / "out" / "patrol" / "patrol.nqc").exists()
