"""Structural rules checked while the block graph is being edited.

The rules never raise and never touch the generated text directly. They only
set the `enabled` flag and the `warning` text of the block they check, and the
generator then skips disabled blocks. Each rule looks at one node and is
idempotent, so the whole graph can be re-checked after every edit.

Rules:
    - Only one main task: every main task after the first (creation order) is
      disabled.
    - Named tasks need a name that is not reserved and not already used by an
      earlier enabled named task.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

from GeneratorComponents.BlockGraph import BlockGraph, GraphEvent, Node
from GeneratorComponents.BlockTypes import BlockKind
from GeneratorComponents.NqcKeywords import is_reserved_task_name
from GeneratorComponents.ProgressReport import ValidationReport

WARNING_EXTRA_MAIN = "Only one main task is allowed; this one is disabled."
WARNING_NAME_REQUIRED = "Task name required."

Verdict = tuple[bool, str | None]


def reserved_name_warning(name: str) -> str:
    return f'Reserved name: "{name}" cannot be used as a task name.'


def duplicate_name_warning(name: str) -> str:
    return f'Duplicate name: another task is already called "{name}".'


### Rules ###


def _check_main_task(graph: BlockGraph, node: Node) -> Verdict:
    first = graph.blocks_by_kind(BlockKind.MAIN_TASK)[0]
    if node is first:
        return True, None
    return False, WARNING_EXTRA_MAIN


def _check_named_task(graph: BlockGraph, node: Node) -> Verdict:
    name = node.fields.get("NAME", "")
    if not name:
        return False, WARNING_NAME_REQUIRED
    if is_reserved_task_name(name):
        return False, reserved_name_warning(name)
    for other in graph.blocks_by_kind(BlockKind.NAMED_TASK):
        if other is node:
            break
        if other.enabled and other.fields.get("NAME") == name:
            return False, duplicate_name_warning(name)
    return True, None


VALIDATION_RULES: dict[str, Callable[[BlockGraph, Node], Verdict]] = {
    BlockKind.MAIN_TASK: _check_main_task,
    BlockKind.NAMED_TASK: _check_named_task,
}


def check_node(graph: BlockGraph, node: Node) -> bool:
    """Apply the rule for `node`'s kind. Returns True when its flags changed."""
    rule = VALIDATION_RULES.get(node.kind)
    if rule is None:
        return False
    enabled, warning = rule(graph, node)
    return node.set_flags(enabled, warning)


def get_validation_reporter(graph: BlockGraph) -> Generator[ValidationReport, None, None]:
    """Check every rule-bearing block in creation order, one report per block."""
    for node in graph:
        if node.kind not in VALIDATION_RULES:
            continue
        report = ValidationReport()
        report.looked_at_node = node.handle
        report.changed = check_node(graph, node)
        report.enabled = node.enabled
        report.warning = node.warning
        if node.warning:
            report.action_bar_message = f"Checked {node.kind} block: {node.warning}"
        else:
            report.action_bar_message = f"Checked {node.kind} block: OK."
        yield report


def validate_graph(graph: BlockGraph) -> int:
    """Run all rules. Returns the number of blocks whose flags changed."""
    return sum(1 for report in get_validation_reporter(graph) if report.changed)


def attach_validator(graph: BlockGraph) -> Callable[[GraphEvent], None]:
    """Re-check the graph whenever a task block is created, edited or removed.

    Returns the listener so it can be passed to `remove_change_listener()`.
    """

    def on_change(event: GraphEvent) -> None:
        if event.kind in VALIDATION_RULES:
            validate_graph(graph)

    graph.add_change_listener(on_change)
    validate_graph(graph)
    return on_change
