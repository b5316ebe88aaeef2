from GeneratorComponents.BlockTypes import BlockKind
from GeneratorComponents.Validator import (
    WARNING_EXTRA_MAIN,
    WARNING_NAME_REQUIRED,
    attach_validator,
    duplicate_name_warning,
    get_validation_reporter,
    reserved_name_warning,
    validate_graph,
)


def test_later_main_tasks_are_disabled(graph):
    first = graph.create(BlockKind.MAIN_TASK)
    second = graph.create(BlockKind.MAIN_TASK)
    third = graph.create(BlockKind.MAIN_TASK)
    assert validate_graph(graph) == 2
    assert first.enabled and first.warning is None
    assert not second.enabled and second.warning == WARNING_EXTRA_MAIN
    assert not third.enabled


def test_validation_is_idempotent(graph):
    graph.create(BlockKind.MAIN_TASK)
    graph.create(BlockKind.MAIN_TASK)
    assert validate_graph(graph) == 1
    assert validate_graph(graph) == 0


def test_named_task_rules(graph):
    good = graph.create(BlockKind.NAMED_TASK, fields={"NAME": "blink"})
    copy = graph.create(BlockKind.NAMED_TASK, fields={"NAME": "blink"})
    empty = graph.create(BlockKind.NAMED_TASK, fields={"NAME": ""})
    keyword = graph.create(BlockKind.NAMED_TASK, fields={"NAME": "while"})
    entry = graph.create(BlockKind.NAMED_TASK, fields={"NAME": "main"})
    validate_graph(graph)

    assert good.enabled and good.warning is None
    assert (copy.enabled, copy.warning) == (False, duplicate_name_warning("blink"))
    assert (empty.enabled, empty.warning) == (False, WARNING_NAME_REQUIRED)
    assert (keyword.enabled, keyword.warning) == (False, reserved_name_warning("while"))
    assert (entry.enabled, entry.warning) == (False, reserved_name_warning("main"))


def test_reporter_yields_one_report_per_task_block(graph):
    main = graph.create(BlockKind.MAIN_TASK)
    graph.create(BlockKind.MOTOR_OFF)
    extra = graph.create(BlockKind.MAIN_TASK)
    reports = list(get_validation_reporter(graph))
    assert [r.looked_at_node for r in reports] == [main.handle, extra.handle]
    assert [r.changed for r in reports] == [False, True]
    assert reports[1].warning == WARNING_EXTRA_MAIN
    assert {r.current_phase_number for r in reports} == {"1"}


def test_attached_validator_reacts_to_edits(graph):
    attach_validator(graph)
    first = graph.create(BlockKind.NAMED_TASK, fields={"NAME": "blink"})
    second = graph.create(BlockKind.NAMED_TASK, fields={"NAME": "blink"})
    assert not second.enabled

    graph.set_field(second, "NAME", "beep")
    assert second.enabled and second.warning is None

    graph.set_field(second, "NAME", "blink")
    assert not second.enabled
    graph.delete(first)
    assert second.enabled


def test_attached_validator_checks_existing_blocks(graph):
    graph.create(BlockKind.MAIN_TASK)
    second = graph.create(BlockKind.MAIN_TASK)
    listener = attach_validator(graph)
    assert not second.enabled
    graph.remove_change_listener(listener)


def test_removing_the_first_main_promotes_the_next(graph):
    attach_validator(graph)
    first = graph.create(BlockKind.MAIN_TASK)
    second = graph.create(BlockKind.MAIN_TASK)
    assert not second.enabled
    graph.delete(first)
    assert second.enabled and second.warning is None
