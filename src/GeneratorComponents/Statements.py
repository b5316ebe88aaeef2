"""Statement emitter: renders statement chains to NQC source lines.

`block_to_code()` renders one block through the renderer registered for its
kind and then continues along the next-links. Every rendered fragment ends in
a newline. Nested chains (loop and branch bodies) go through
`statement_to_code()`, which indents every line by one level.
"""

from __future__ import annotations

from collections.abc import Callable

from GeneratorComponents.BlockGraph import Node
from GeneratorComponents.BlockTypes import BlockKind
from GeneratorComponents.Expressions import (
    EXPRESSION_RENDERERS,
    UnrenderableNodeTypeError,
    expression_to_code,
    value_to_code,
)
from GeneratorComponents.GeneratorContext import GeneratorContext
from GeneratorComponents.Precedence import Order
from GeneratorComponents.Scopes import needs_auxiliary_bound

StatementRenderer = Callable[[GeneratorContext, Node], str]

STATEMENT_RENDERERS: dict[str, StatementRenderer] = {}

# The RCX clock ticks every 10 ms.
TICKS_PER_SECOND = 100
# Motor power on the RCX goes from 0 to 7.
MAX_MOTOR_POWER = 7


def statement_renderer(*kinds: str):
    def register(func: StatementRenderer) -> StatementRenderer:
        for kind in kinds:
            STATEMENT_RENDERERS[kind] = func
        return func

    return register


def prefix_lines(text: str, prefix: str) -> str:
    """Put `prefix` in front of every line of `text`. Empty text stays empty."""
    return "".join(prefix + line for line in text.splitlines(keepends=True))


def block_to_code(ctx: GeneratorContext, node: Node | None, this_only: bool = False) -> str:
    """Render `node` and, unless `this_only`, every block chained after it.

    Disabled blocks produce nothing, but the chain goes on with their next
    block. A value block reached here is a naked expression and becomes
    `expr;`.

    Raises:
        UnrenderableNodeTypeError: For a kind with no rendering rule.
    """
    parts: list[str] = []
    current = node
    while current is not None:
        if current.enabled:
            parts.append(scrub_comments(ctx, current) + _render(ctx, current))
        if this_only:
            break
        current = ctx.graph.get(current.next)
    return "".join(parts)


def statement_to_code(ctx: GeneratorContext, node: Node, slot_name: str) -> str:
    """Render the chain plugged into statement slot `slot_name`, indented once."""
    head = ctx.graph.statement_target(node, slot_name)
    return prefix_lines(block_to_code(ctx, head), ctx.options.indent)


def _render(ctx: GeneratorContext, node: Node) -> str:
    renderer = STATEMENT_RENDERERS.get(node.kind)
    if renderer is not None:
        return renderer(ctx, node)
    if node.kind in EXPRESSION_RENDERERS:
        code, _ = expression_to_code(ctx, node)
        return f"{code};\n"
    raise UnrenderableNodeTypeError(node)


### Comments ###


def comment_lines(text: str | None) -> str:
    if not text:
        return ""
    return "".join(f"// {line.strip()}\n" for line in text.split("\n"))


def scrub_comments(ctx: GeneratorContext, node: Node) -> str:
    """The block's own comment, then the comments of the values feeding it.

    Value blocks never render as statements, so their comments are hoisted
    above the statement that uses them. A disabled value still gives up its
    comment even though its slot falls back to the default.
    """
    return nested_comments(ctx, node)


def nested_comments(ctx: GeneratorContext, node: Node) -> str:
    code = comment_lines(node.comment)
    for slot in node.value_slots.values():
        child = ctx.graph.get(slot.target)
        if child is not None:
            code += nested_comments(ctx, child)
    return code


### Motors and sound ###


def _power(ctx: GeneratorContext, node: Node) -> str:
    percent, _ = value_to_code(ctx, node, "POWER", Order.MULTIPLICATIVE)
    return f"({percent} * {MAX_MOTOR_POWER} / 100)"


def _motor_on(motor: str, direction: str) -> str:
    return f"OnFwd({motor});\n" if direction == "FWD" else f"OnRev({motor});\n"


@statement_renderer(BlockKind.MOTOR_ON_WITH_POWER)
def _motor_on_with_power(ctx: GeneratorContext, node: Node) -> str:
    motor = node.fields["MOTOR"]
    return f"SetPower({motor}, {_power(ctx, node)});\n" + _motor_on(motor, node.fields["DIRECTION"])


@statement_renderer(BlockKind.MOTOR_ON)
def _motor_on_block(ctx: GeneratorContext, node: Node) -> str:
    return _motor_on(node.fields["MOTOR"], node.fields["DIRECTION"])


@statement_renderer(BlockKind.MOTOR_OFF)
def _motor_off(ctx: GeneratorContext, node: Node) -> str:
    return f"Off({node.fields['MOTOR']});\n"


@statement_renderer(BlockKind.SET_POWER)
def _set_power(ctx: GeneratorContext, node: Node) -> str:
    return f"SetPower({node.fields['MOTOR']}, {_power(ctx, node)});\n"


@statement_renderer(BlockKind.SET_DIRECTION)
def _set_direction(ctx: GeneratorContext, node: Node) -> str:
    direction = "OUT_FWD" if node.fields["DIRECTION"] == "FWD" else "OUT_REV"
    return f"SetDirection({node.fields['MOTOR']}, {direction});\n"


@statement_renderer(BlockKind.PLAY_SOUND)
def _play_sound(ctx: GeneratorContext, node: Node) -> str:
    return f"PlaySound({node.fields['SOUND']});\n"


### Sensor setup ###

SENSOR_SETUPS = {
    BlockKind.TOUCH_SENSOR_SETUP: ("SENSOR_TYPE_TOUCH", "SENSOR_MODE_BOOL", False),
    BlockKind.LIGHT_SENSOR_SETUP: ("SENSOR_TYPE_LIGHT", "SENSOR_MODE_PERCENT", False),
    BlockKind.ROTATION_SENSOR_SETUP: ("SENSOR_TYPE_ROTATION", "SENSOR_MODE_ROTATION", True),
    BlockKind.TEMPERATURE_SENSOR_SETUP: ("SENSOR_TYPE_TEMPERATURE", "SENSOR_MODE_CELSIUS", False),
}


@statement_renderer(*SENSOR_SETUPS)
def _sensor_setup(ctx: GeneratorContext, node: Node) -> str:
    sensor_type, sensor_mode, clear = SENSOR_SETUPS[node.kind]
    sensor = node.fields["SENSOR"]
    code = f"SetSensorType({sensor}, {sensor_type});\n"
    code += f"SetSensorMode({sensor}, {sensor_mode});\n"
    if clear:
        code += f"ClearSensor({sensor});\n"
    return code


### Timing and loops ###


@statement_renderer(BlockKind.WAIT_SECONDS)
def _wait_seconds(ctx: GeneratorContext, node: Node) -> str:
    seconds, _ = value_to_code(ctx, node, "SECONDS", Order.MULTIPLICATIVE)
    return f"Wait({seconds} * {TICKS_PER_SECOND});\n"


@statement_renderer(BlockKind.WAIT_UNTIL)
def _wait_until(ctx: GeneratorContext, node: Node) -> str:
    condition, _ = value_to_code(ctx, node, "CONDITION", Order.NONE)
    return f"until({condition});\n"


@statement_renderer(BlockKind.REPEAT_TIMES)
def _repeat_times(ctx: GeneratorContext, node: Node) -> str:
    if needs_auxiliary_bound(ctx.graph, node):
        counter = ctx.auxiliary_name(node)
        bound, _ = value_to_code(ctx, node, "TIMES", Order.ASSIGNMENT)
        branch = statement_to_code(ctx, node, "DO")
        return f"{counter} = {bound};\nrepeat({counter}) {{\n{branch}}}\n"
    times, _ = value_to_code(ctx, node, "TIMES", Order.NONE)
    branch = statement_to_code(ctx, node, "DO")
    return f"repeat({times}) {{\n{branch}}}\n"


@statement_renderer(BlockKind.REPEAT_FOREVER)
def _repeat_forever(ctx: GeneratorContext, node: Node) -> str:
    return f"while(true) {{\n{statement_to_code(ctx, node, 'DO')}}}\n"


@statement_renderer(BlockKind.REPEAT_UNTIL)
def _repeat_until(ctx: GeneratorContext, node: Node) -> str:
    branch = statement_to_code(ctx, node, "DO")
    condition, _ = value_to_code(ctx, node, "CONDITION", Order.NONE)
    return f"do {{\n{branch}}} while (!({condition}));\n"


### Variables ###


@statement_renderer(BlockKind.VARIABLE_SET)
def _variable_set(ctx: GeneratorContext, node: Node) -> str:
    name = ctx.register_variable(node.fields["VAR"])
    value, _ = value_to_code(ctx, node, "VALUE", Order.ASSIGNMENT)
    return f"{name} = {value};\n"


### Conditionals ###


@statement_renderer(BlockKind.IF)
def _if(ctx: GeneratorContext, node: Node) -> str:
    code = ""
    for index in range(len(node.value_slots)):
        condition, _ = value_to_code(ctx, node, f"IF{index}", Order.NONE)
        branch = statement_to_code(ctx, node, f"DO{index}")
        keyword = "if" if index == 0 else " else if"
        code += f"{keyword} ({condition}) {{\n{branch}}}"
    if "ELSE" in node.statement_slots:
        code += f" else {{\n{statement_to_code(ctx, node, 'ELSE')}}}"
    return code + "\n"


### Task control ###


@statement_renderer(BlockKind.START_TASK)
def _start_task(ctx: GeneratorContext, node: Node) -> str:
    return f"start {ctx.names.task(node.fields['NAME'])};\n"


@statement_renderer(BlockKind.STOP_TASK)
def _stop_task(ctx: GeneratorContext, node: Node) -> str:
    return f"stop {ctx.names.task(node.fields['NAME'])};\n"
