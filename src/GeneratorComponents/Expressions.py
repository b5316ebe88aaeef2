"""Expression emitter: renders value-producing blocks to (text, precedence).

Every value kind has a renderer registered in `EXPRESSION_RENDERERS`. A
renderer returns the code for its block together with the `Order` of the
outermost operator it produced, so the caller can tell whether the fragment
would bind tightly enough where it is used.

Parentheses are never inserted automatically. Only the grouping block and the
negation block produce them. When an operand binds looser than the operator it
is plugged into, a note is recorded on the context and shown as a warning in
the progress reports; the generated text is not changed.
"""

from __future__ import annotations

from collections.abc import Callable

from GeneratorComponents.BlockGraph import Node
from GeneratorComponents.BlockTypes import BlockKind
from GeneratorComponents.GeneratorContext import GeneratorContext
from GeneratorComponents.Precedence import Order, needs_grouping

ExpressionRenderer = Callable[[GeneratorContext, Node], tuple[str, Order]]

EXPRESSION_RENDERERS: dict[str, ExpressionRenderer] = {}


class UnrenderableNodeTypeError(Exception):
    """Raised when a block kind has no rendering rule."""

    def __init__(self, node: Node):
        super().__init__(f'No code generator for block kind "{node.kind}" (block {node.handle}).')
        self.kind = node.kind
        self.handle = node.handle


def expression_renderer(*kinds: str):
    """Register the decorated function as the renderer of `kinds`."""

    def register(func: ExpressionRenderer) -> ExpressionRenderer:
        for kind in kinds:
            EXPRESSION_RENDERERS[kind] = func
        return func

    return register


def expression_to_code(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    renderer = EXPRESSION_RENDERERS.get(node.kind)
    if renderer is None:
        raise UnrenderableNodeTypeError(node)
    return renderer(ctx, node)


def value_to_code(
    ctx: GeneratorContext, node: Node, slot_name: str, required_order: Order
) -> tuple[str, Order]:
    """Render whatever is plugged into `slot_name` of `node`.

    An empty slot, or one holding a disabled block, gives the slot's default
    literal at `Order.ATOMIC`.

    Args:
        ctx (GeneratorContext): The generation run.
        node (Node): Block owning the slot.
        slot_name (str): Value slot to render.
        required_order (Order): Loosest precedence the surrounding operator accepts.

    Returns:
        tuple[str, Order]: The code and its precedence. The code is never empty.
    """
    target = ctx.graph.value_target(node, slot_name)
    if target is None or not target.enabled:
        return node.value_slots[slot_name].default, Order.ATOMIC
    code, order = expression_to_code(ctx, target)
    if needs_grouping(order, required_order):
        ctx.note(
            target,
            f'"{code}" binds looser than its place in {node.kind}.{slot_name}; '
            "add a grouping block if the result is wrong.",
        )
    return code, order


def format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


### Literals and readings ###


@expression_renderer(BlockKind.NUMBER, BlockKind.PERCENT)
def _number(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    value = node.fields["NUM"]
    # a leading minus is a prefix operator
    return format_number(value), Order.UNARY_PREFIX if value < 0 else Order.ATOMIC


@expression_renderer(BlockKind.BOOLEAN)
def _boolean(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    return ("true" if node.fields["BOOL"] == "TRUE" else "false"), Order.ATOMIC


@expression_renderer(
    BlockKind.TOUCH_VALUE,
    BlockKind.LIGHT_VALUE,
    BlockKind.ROTATION_VALUE,
    BlockKind.TEMPERATURE_VALUE,
)
def _sensor_value(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    return node.fields["SENSOR"], Order.ATOMIC


@expression_renderer(BlockKind.VARIABLE_GET)
def _variable_get(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    return ctx.register_variable(node.fields["VAR"]), Order.ATOMIC


### Operators ###

ARITHMETIC_OPERATORS = {
    "ADD": ("+", Order.ADDITIVE),
    "MINUS": ("-", Order.ADDITIVE),
    "MULTIPLY": ("*", Order.MULTIPLICATIVE),
    "DIVIDE": ("/", Order.MULTIPLICATIVE),
}

COMPARE_OPERATORS = {
    "EQ": "==",
    "NEQ": "!=",
    "LT": "<",
    "LTE": "<=",
    "GT": ">",
    "GTE": ">=",
}

LOGIC_OPERATORS = {
    "AND": ("&&", Order.LOGICAL_AND),
    "OR": ("||", Order.LOGICAL_OR),
}


def _binary(ctx: GeneratorContext, node: Node, operator: str, order: Order) -> tuple[str, Order]:
    left, _ = value_to_code(ctx, node, "A", order)
    right, _ = value_to_code(ctx, node, "B", order)
    return f"{left} {operator} {right}", order


@expression_renderer(BlockKind.ARITHMETIC)
def _arithmetic(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    operator, order = ARITHMETIC_OPERATORS[node.fields["OP"]]
    return _binary(ctx, node, operator, order)


@expression_renderer(BlockKind.COMPARE)
def _compare(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    # equality and ordering comparisons share one class here
    return _binary(ctx, node, COMPARE_OPERATORS[node.fields["OP"]], Order.RELATIONAL)


@expression_renderer(BlockKind.LOGIC)
def _logic(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    operator, order = LOGIC_OPERATORS[node.fields["OP"]]
    return _binary(ctx, node, operator, order)


@expression_renderer(BlockKind.NEGATE)
def _negate(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    operand, order = value_to_code(ctx, node, "BOOL", Order.NONE)
    if order == Order.ATOMIC:
        return f"!{operand}", Order.UNARY_PREFIX
    return f"!({operand})", Order.UNARY_PREFIX


@expression_renderer(BlockKind.GROUP)
def _group(ctx: GeneratorContext, node: Node) -> tuple[str, Order]:
    inner, _ = value_to_code(ctx, node, "VALUE", Order.NONE)
    return f"({inner})", Order.ATOMIC
