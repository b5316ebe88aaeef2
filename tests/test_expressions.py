import pytest

from GeneratorComponents.BlockTypes import (
    BlockKind,
    BlockRole,
    BlockSpec,
    register_block_spec,
    unregister_block_spec,
)
from GeneratorComponents.CodeGenerator import missing_renderers
from GeneratorComponents.Expressions import (
    UnrenderableNodeTypeError,
    expression_to_code,
    format_number,
    value_to_code,
)
from GeneratorComponents.GeneratorContext import GeneratorContext
from GeneratorComponents.Precedence import Order, needs_grouping


def arithmetic(graph, op, a, b):
    node = graph.create(BlockKind.ARITHMETIC, fields={"OP": op})
    graph.connect_value(node, "A", a)
    graph.connect_value(node, "B", b)
    return node


def test_precedence_order_is_total():
    assert Order.ATOMIC < Order.UNARY_PREFIX < Order.MULTIPLICATIVE < Order.ADDITIVE
    assert Order.RELATIONAL < Order.LOGICAL_AND < Order.LOGICAL_OR < Order.ASSIGNMENT < Order.NONE
    assert needs_grouping(Order.ADDITIVE, Order.MULTIPLICATIVE)
    assert not needs_grouping(Order.MULTIPLICATIVE, Order.ADDITIVE)


@pytest.mark.parametrize(
    "value, text",
    [(2, "2"), (2.0, "2"), (2.5, "2.5"), (-3, "-3"), (0, "0")],
)
def test_format_number(value, text):
    assert format_number(value) == text


def test_negative_number_is_a_prefix_expression(graph, make_context, number):
    ctx = make_context(graph)
    assert expression_to_code(ctx, number(-3)) == ("-3", Order.UNARY_PREFIX)
    assert expression_to_code(ctx, number(3)) == ("3", Order.ATOMIC)


def test_empty_slots_use_their_defaults(graph, make_context):
    ctx = make_context(graph)
    assert expression_to_code(ctx, graph.create(BlockKind.ARITHMETIC)) == ("0 + 0", Order.ADDITIVE)
    assert expression_to_code(ctx, graph.create(BlockKind.LOGIC)) == ("false && false", Order.LOGICAL_AND)
    assert expression_to_code(ctx, graph.create(BlockKind.NEGATE)) == ("!true", Order.UNARY_PREFIX)
    assert expression_to_code(ctx, graph.create(BlockKind.GROUP)) == ("(0)", Order.ATOMIC)


def test_unbound_slot_is_atomic_default(graph, make_context):
    ctx = make_context(graph)
    wait = graph.create(BlockKind.WAIT_SECONDS)
    assert value_to_code(ctx, wait, "SECONDS", Order.MULTIPLICATIVE) == ("1", Order.ATOMIC)


def test_disabled_operand_falls_back_to_default(graph, make_context, number):
    ctx = make_context(graph)
    wait = graph.create(BlockKind.WAIT_SECONDS)
    five = number(5)
    graph.connect_value(wait, "SECONDS", five)
    graph.set_enabled(five, False)
    assert value_to_code(ctx, wait, "SECONDS", Order.NONE) == ("1", Order.ATOMIC)


@pytest.mark.parametrize(
    "op, symbol, order",
    [
        ("ADD", "+", Order.ADDITIVE),
        ("MINUS", "-", Order.ADDITIVE),
        ("MULTIPLY", "*", Order.MULTIPLICATIVE),
        ("DIVIDE", "/", Order.MULTIPLICATIVE),
    ],
)
def test_arithmetic_operators(graph, make_context, number, op, symbol, order):
    ctx = make_context(graph)
    node = arithmetic(graph, op, number(6), number(3))
    assert expression_to_code(ctx, node) == (f"6 {symbol} 3", order)


@pytest.mark.parametrize(
    "op, symbol",
    [("EQ", "=="), ("NEQ", "!="), ("LT", "<"), ("LTE", "<="), ("GT", ">"), ("GTE", ">=")],
)
def test_compare_operators(graph, make_context, number, op, symbol):
    ctx = make_context(graph)
    node = graph.create(BlockKind.COMPARE, fields={"OP": op})
    graph.connect_value(node, "A", graph.create(BlockKind.LIGHT_VALUE, fields={"SENSOR": "SENSOR_2"}))
    graph.connect_value(node, "B", number(40))
    assert expression_to_code(ctx, node) == (f"SENSOR_2 {symbol} 40", Order.RELATIONAL)


def test_looser_operand_is_not_parenthesized_but_noted(graph, make_context, number):
    ctx = make_context(graph)
    inner = arithmetic(graph, "ADD", number(1), number(2))
    outer = arithmetic(graph, "MULTIPLY", inner, number(3))
    code, order = expression_to_code(ctx, outer)
    assert code == "1 + 2 * 3"
    assert order == Order.MULTIPLICATIVE
    notes = ctx.drain_notes()
    assert len(notes) == 1
    assert notes[0][0] == inner.handle
    assert ctx.drain_notes() == []


def test_tighter_operand_needs_no_note(graph, make_context, number):
    ctx = make_context(graph)
    inner = arithmetic(graph, "MULTIPLY", number(2), number(3))
    outer = arithmetic(graph, "ADD", number(1), inner)
    assert expression_to_code(ctx, outer)[0] == "1 + 2 * 3"
    assert ctx.notes == []


def test_negative_operand_needs_no_note(graph, make_context, number):
    ctx = make_context(graph)
    node = arithmetic(graph, "MULTIPLY", number(-2), number(3))
    assert expression_to_code(ctx, node)[0] == "-2 * 3"
    assert ctx.notes == []


def test_group_makes_an_atomic_operand(graph, make_context, number):
    ctx = make_context(graph)
    group = graph.create(BlockKind.GROUP)
    graph.connect_value(group, "VALUE", arithmetic(graph, "ADD", number(1), number(2)))
    outer = arithmetic(graph, "MULTIPLY", group, number(3))
    assert expression_to_code(ctx, outer) == ("(1 + 2) * 3", Order.MULTIPLICATIVE)
    assert ctx.notes == []


def test_negate_wraps_only_non_atomic_operands(graph, make_context, number):
    ctx = make_context(graph)
    touch = graph.create(BlockKind.TOUCH_VALUE)
    negate_touch = graph.create(BlockKind.NEGATE)
    graph.connect_value(negate_touch, "BOOL", touch)
    assert expression_to_code(ctx, negate_touch) == ("!SENSOR_1", Order.UNARY_PREFIX)

    compare = graph.create(BlockKind.COMPARE, fields={"OP": "LT"})
    graph.connect_value(compare, "A", graph.create(BlockKind.LIGHT_VALUE, fields={"SENSOR": "SENSOR_2"}))
    graph.connect_value(compare, "B", number(40))
    negate_compare = graph.create(BlockKind.NEGATE)
    graph.connect_value(negate_compare, "BOOL", compare)
    assert expression_to_code(ctx, negate_compare) == ("!(SENSOR_2 < 40)", Order.UNARY_PREFIX)
    assert ctx.notes == []


def test_logic_or_inside_and_is_noted(graph, make_context):
    ctx = make_context(graph)
    either = graph.create(BlockKind.LOGIC, fields={"OP": "OR"})
    graph.connect_value(either, "A", graph.create(BlockKind.TOUCH_VALUE))
    both = graph.create(BlockKind.LOGIC, fields={"OP": "AND"})
    graph.connect_value(both, "A", either)
    graph.connect_value(both, "B", graph.create(BlockKind.BOOLEAN, fields={"BOOL": "TRUE"}))
    assert expression_to_code(ctx, both)[0] == "SENSOR_1 || false && true"
    assert len(ctx.notes) == 1


def test_variable_reference_registers_in_open_scope(graph, make_context):
    ctx = make_context(graph)
    speed = graph.create(BlockKind.VARIABLE_GET, fields={"VAR": "speed"})
    assert expression_to_code(ctx, speed) == ("speed", Order.ATOMIC)
    assert ctx.scope.names == ["speed"]


def test_kind_without_renderer_aborts(graph):
    spec = BlockSpec("custom_value", BlockRole.VALUE, output_check="Number")
    register_block_spec(spec)
    try:
        node = graph.create("custom_value")
        ctx = GeneratorContext.for_graph(graph)
        assert "custom_value" in missing_renderers()
        with pytest.raises(UnrenderableNodeTypeError) as info:
            expression_to_code(ctx, node)
        assert info.value.kind == "custom_value"
        assert info.value.handle == node.handle
    finally:
        unregister_block_spec("custom_value")
    assert "custom_value" not in missing_renderers()


def test_every_built_in_kind_has_a_renderer():
    assert missing_renderers() == []
