from __future__ import annotations

from collections.abc import Generator, Iterator
from dataclasses import dataclass, field

from GeneratorComponents.BlockGraph import BlockGraph, Node
from GeneratorComponents.BlockTypes import BlockKind, BlockRole, get_block_spec, known_kinds
from GeneratorComponents.Config import GeneratorOptions
from GeneratorComponents.Expressions import EXPRESSION_RENDERERS
from GeneratorComponents.GeneratorContext import GeneratorContext
from GeneratorComponents.NqcKeywords import ENTRY_POINT_NAME
from GeneratorComponents.ProgressReport import CodeGenerationReport
from GeneratorComponents.Scopes import GLOBAL_SCOPE, MAIN_SCOPE, ScopeKey, prescan, task_scope
from GeneratorComponents.Statements import STATEMENT_RENDERERS, block_to_code, comment_lines, prefix_lines
from GeneratorComponents.Types import NodeHandle


### Assembles the NQC program from the block graph. ###


def generate_code(graph: BlockGraph, options: GeneratorOptions | None = None) -> str:
    """Generate the complete NQC program for `graph`.

    Convenience wrapper that joins the `new_code` of every report produced by
    `get_code_generation_reporter()`.
    """
    code_parts: list[str] = []
    for report in get_code_generation_reporter(graph, options):
        if report.new_code:
            code_parts.append(report.new_code)
    return "".join(code_parts)


def renderable_kinds() -> set[str]:
    return set(STATEMENT_RENDERERS) | set(EXPRESSION_RENDERERS)


def missing_renderers() -> list[str]:
    """Registered block kinds that would abort generation if used."""
    missing = []
    for kind in known_kinds():
        spec = get_block_spec(kind)
        if spec is not None and spec.is_root_only:
            continue
        if kind not in renderable_kinds():
            missing.append(kind)
    return missing


@dataclass
class ProgramPlan:
    """Top-level blocks sorted into what the program is made of.

    Attributes:
        subprograms (list[Node]): Task roots to render, in first-seen order.
        loose (list[Node]): Enabled top-level blocks that are not task roots.
        has_main (bool): Whether one of `subprograms` is the primary entry point.
        skipped (list[tuple[Node, str]]): Task roots left out, with the reason.
    """

    subprograms: list[Node] = field(default_factory=list)
    loose: list[Node] = field(default_factory=list)
    has_main: bool = False
    skipped: list[tuple[Node, str]] = field(default_factory=list)


def plan_program(ctx: GeneratorContext) -> ProgramPlan:
    plan = ProgramPlan()
    seen_names: set[str] = set()
    for node in ctx.graph.top_blocks():
        if not node.enabled:
            continue
        spec = get_block_spec(node.kind)
        role = spec.role if spec is not None else None
        if role == BlockRole.ENTRY:
            if plan.has_main:
                plan.skipped.append((node, "Only the first main task is used; this one is skipped."))
                continue
            plan.has_main = True
            plan.subprograms.append(node)
        elif role == BlockRole.SUBPROGRAM:
            name = node.fields.get("NAME", "")
            if not name:
                plan.skipped.append((node, "Task without a name is skipped."))
                continue
            name = ctx.names.task(name)
            if name in seen_names:
                plan.skipped.append((node, f'Task "{name}" is defined more than once; later copies are skipped.'))
                continue
            seen_names.add(name)
            plan.subprograms.append(node)
        else:
            plan.loose.append(node)
    return plan


def get_code_generation_reporter(
    graph: BlockGraph,
    options: GeneratorOptions | None = None,
) -> Generator[CodeGenerationReport, None, None]:
    """Generator function that yields CodeGenerationReport objects during code generation.

    The program is: the preamble, a global section when loose blocks sit next
    to a main task, one block per task, and a synthesized `task main()` when
    there is none. Sections are separated by one blank line.

    Args:
        graph: The block graph to generate code from.
        options: Generator options; defaults apply when omitted.

    Yields:
        CodeGenerationReport objects indicating progress.

    Raises:
        UnrenderableNodeTypeError: A block kind has no rendering rule.
        ReservedNameError: A name collides with NQC under the reject policy.
    """
    if graph is None:
        raise ValueError("No block graph provided for code generation.")

    options = options or GeneratorOptions()
    ctx = GeneratorContext.for_graph(graph, options)
    plan = plan_program(ctx)

    report = CodeGenerationReport()
    report.action_bar_message = (
        f"Starting code generation: {len(plan.subprograms)} task(s), {len(plan.loose)} loose block(s)."
    )
    yield report

    for node, reason in plan.skipped:
        yield _warning_report(node.handle, reason)

    sections: list[Iterator[CodeGenerationReport]] = []
    if options.preamble:
        sections.append(_preamble(options.preamble))
    if plan.loose and plan.has_main:
        sections.append(_global_section(ctx, plan.loose))
    for root in plan.subprograms:
        sections.append(_task_block(ctx, root))
    if not plan.has_main:
        sections.append(_synthesized_main(ctx, plan.loose))

    for index, section in enumerate(sections):
        if index:
            report = CodeGenerationReport()
            report.action_bar_message = "Separating sections."
            report.new_code = "\n"
            yield report
        yield from section

    report = CodeGenerationReport()
    report.action_bar_message = "Code generation complete."
    yield report


### Sections ###


def _preamble(text: str) -> Iterator[CodeGenerationReport]:
    report = CodeGenerationReport()
    report.action_bar_message = "Writing preamble."
    report.new_code = text if text.endswith("\n") else text + "\n"
    yield report


def _global_section(ctx: GeneratorContext, loose: list[Node]) -> Iterator[CodeGenerationReport]:
    ctx.scopes.open(GLOBAL_SCOPE)
    prescan(ctx.graph, ctx.scope, loose, ctx.names)

    report = CodeGenerationReport()
    report.action_bar_message = "Generating global section."
    report.new_code = ctx.scopes.declarations_for(GLOBAL_SCOPE, indent="") or None
    yield report

    for root in loose:
        yield from _chain(ctx, root, indent="")
    ctx.scopes.close()


def _task_block(ctx: GeneratorContext, root: Node) -> Iterator[CodeGenerationReport]:
    if root.kind == BlockKind.MAIN_TASK:
        name, key = ENTRY_POINT_NAME, MAIN_SCOPE
    else:
        name = ctx.names.task(root.fields["NAME"])
        key = task_scope(name)
    body = ctx.graph.statement_target(root, "STATEMENTS")
    yield from _task(ctx, root, name, key, [body] if body is not None else [])


def _synthesized_main(ctx: GeneratorContext, loose: list[Node]) -> Iterator[CodeGenerationReport]:
    yield from _task(ctx, None, ENTRY_POINT_NAME, MAIN_SCOPE, loose)


def _task(
    ctx: GeneratorContext,
    root: Node | None,
    name: str,
    key: ScopeKey,
    heads: list[Node],
) -> Iterator[CodeGenerationReport]:
    ctx.scopes.open(key)
    prescan(ctx.graph, ctx.scope, heads, ctx.names)

    report = CodeGenerationReport()
    report.action_bar_message = (
        f"Generating task {name}." if root is not None else "No main task found: generating task main from loose blocks."
    )
    report.looked_at_node = root.handle if root is not None else None
    comment = comment_lines(root.comment) if root is not None else ""
    report.new_code = comment + f"task {name}()\n{{\n" + ctx.scopes.declarations_for(key, ctx.options.indent)
    yield report

    for head in heads:
        yield from _chain(ctx, head, indent=ctx.options.indent)

    ctx.scopes.close()

    report = CodeGenerationReport()
    report.action_bar_message = f"Closing task {name}."
    report.looked_at_node = root.handle if root is not None else None
    report.new_code = "}\n"
    yield report


def _chain(ctx: GeneratorContext, head: Node, indent: str) -> Iterator[CodeGenerationReport]:
    """One report per block of the chain starting at `head`."""
    current: Node | None = head
    while current is not None:
        code = block_to_code(ctx, current, this_only=True)
        report = CodeGenerationReport()
        report.looked_at_node = current.handle
        if current.enabled:
            report.action_bar_message = f"Generating code for {current.kind} block."
            report.new_code = prefix_lines(code, indent) or None
        else:
            report.action_bar_message = f"Skipping disabled {current.kind} block."
        yield report
        for handle, message in ctx.drain_notes():
            yield _warning_report(handle, message)
        current = ctx.graph.get(current.next)


def _warning_report(handle: NodeHandle, message: str) -> CodeGenerationReport:
    report = CodeGenerationReport()
    report.action_bar_message = f"Warning: {message}"
    report.looked_at_node = handle
    report.warning = message
    return report
