"""Block kinds known to the generator and their shape metadata.

A `BlockSpec` describes what a node of a given kind looks like: its role
(entry point, named task, statement or value), its fields with defaults and
validation, and its value/statement slots. The graph uses the specs to build
and validate nodes; the emitters use them for slot defaults and for the data
driven parts of the pre-scan (which field names a variable, which slot bounds
a counted loop).

New kinds can be added with `register_block_spec()`; a kind without a
rendering rule is still accepted by the graph but aborts code generation.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class BlockKind(StrEnum):
    # Entry points
    MAIN_TASK = "main_task"
    NAMED_TASK = "named_task"
    # Motors and sound
    MOTOR_ON_WITH_POWER = "motor_on_with_power"
    MOTOR_ON = "motor_on"
    MOTOR_OFF = "motor_off"
    SET_POWER = "set_power"
    SET_DIRECTION = "set_direction"
    PLAY_SOUND = "play_sound"
    # Sensor setup
    TOUCH_SENSOR_SETUP = "touch_sensor_setup"
    LIGHT_SENSOR_SETUP = "light_sensor_setup"
    ROTATION_SENSOR_SETUP = "rotation_sensor_setup"
    TEMPERATURE_SENSOR_SETUP = "temperature_sensor_setup"
    # Sensor readings
    TOUCH_VALUE = "touch_value"
    LIGHT_VALUE = "light_value"
    ROTATION_VALUE = "rotation_value"
    TEMPERATURE_VALUE = "temperature_value"
    # Timing and loops
    WAIT_SECONDS = "wait_seconds"
    WAIT_UNTIL = "wait_until"
    REPEAT_TIMES = "repeat_times"
    REPEAT_FOREVER = "repeat_forever"
    REPEAT_UNTIL = "repeat_until"
    # Variables
    VARIABLE_SET = "variable_set"
    VARIABLE_GET = "variable_get"
    # Math
    NUMBER = "number"
    PERCENT = "percent"
    ARITHMETIC = "arithmetic"
    GROUP = "group"
    # Logic
    COMPARE = "compare"
    LOGIC = "logic"
    NEGATE = "negate"
    BOOLEAN = "boolean"
    # Conditionals
    IF = "if"
    # Task control
    START_TASK = "start_task"
    STOP_TASK = "stop_task"


class BlockRole(StrEnum):
    ENTRY = "entry"            # the primary entry point (task main)
    SUBPROGRAM = "subprogram"  # a named task
    STATEMENT = "statement"    # previous/next connections
    VALUE = "value"            # output connection


class FieldKind(StrEnum):
    TEXT = "text"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    DROPDOWN = "dropdown"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    default: Any
    options: tuple[str, ...] = ()
    minimum: float | None = None
    maximum: float | None = None
    allow_empty: bool = False


@dataclass(frozen=True)
class ValueSlotSpec:
    name: str
    check: str  # "Number", "Boolean" or "Percent"
    default: str


@dataclass(frozen=True)
class BlockSpec:
    kind: str
    role: BlockRole
    fields: tuple[FieldSpec, ...] = ()
    value_slots: tuple[ValueSlotSpec, ...] = ()
    statement_slots: tuple[str, ...] = ()
    output_check: str | None = None
    variable_field: str | None = None
    counted_bound_slot: str | None = None
    plain_operand: bool = False
    # Mutable blocks compute their slots from the node mutation.
    shape: Callable[[dict[str, Any]], tuple[tuple[ValueSlotSpec, ...], tuple[str, ...]]] | None = field(
        default=None, compare=False
    )

    def field_spec(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def slots_for(
        self, mutation: dict[str, Any]
    ) -> tuple[tuple[ValueSlotSpec, ...], tuple[str, ...]]:
        if self.shape is not None:
            return self.shape(mutation)
        return self.value_slots, self.statement_slots

    @property
    def is_value(self) -> bool:
        return self.role == BlockRole.VALUE

    @property
    def is_statement(self) -> bool:
        return self.role == BlockRole.STATEMENT

    @property
    def is_root_only(self) -> bool:
        return self.role in (BlockRole.ENTRY, BlockRole.SUBPROGRAM)


### Dropdown options ###

MOTOR_OPTIONS = (
    "OUT_A",
    "OUT_B",
    "OUT_C",
    "OUT_A+OUT_B",
    "OUT_A+OUT_C",
    "OUT_A+OUT_B+OUT_C",
)
DIRECTION_OPTIONS = ("FWD", "REV")
SENSOR_OPTIONS = ("SENSOR_1", "SENSOR_2", "SENSOR_3")
SOUND_OPTIONS = (
    "SOUND_CLICK",
    "SOUND_DOUBLE_BEEP",
    "SOUND_DOWN",
    "SOUND_UP",
    "SOUND_LOW_BEEP",
    "SOUND_FAST_UP",
)
ARITHMETIC_OPTIONS = ("ADD", "MINUS", "MULTIPLY", "DIVIDE")
COMPARE_OPTIONS = ("EQ", "NEQ", "LT", "LTE", "GT", "GTE")
LOGIC_OPTIONS = ("AND", "OR")
BOOLEAN_OPTIONS = ("TRUE", "FALSE")

DEFAULT_TASK_NAME = "myTask"

_MOTOR = FieldSpec("MOTOR", FieldKind.DROPDOWN, "OUT_A", MOTOR_OPTIONS)
_DIRECTION = FieldSpec("DIRECTION", FieldKind.DROPDOWN, "FWD", DIRECTION_OPTIONS)
_SENSOR = FieldSpec("SENSOR", FieldKind.DROPDOWN, "SENSOR_1", SENSOR_OPTIONS)
_POWER = ValueSlotSpec("POWER", "Percent", "50")


def if_shape(mutation: dict[str, Any]) -> tuple[tuple[ValueSlotSpec, ...], tuple[str, ...]]:
    """Slots of the conditional: IF0/DO0, one IFn/DOn pair per else-if, and
    an ELSE branch when `has_else` is set."""
    else_if_count = int(mutation.get("else_if_count", 0))
    if else_if_count < 0:
        raise ValueError("else_if_count cannot be negative")
    values = tuple(
        ValueSlotSpec(f"IF{i}", "Boolean", "false") for i in range(else_if_count + 1)
    )
    statements = tuple(f"DO{i}" for i in range(else_if_count + 1))
    if mutation.get("has_else", False):
        statements += ("ELSE",)
    return values, statements


def _sensor_value(kind: BlockKind, check: str) -> BlockSpec:
    return BlockSpec(kind, BlockRole.VALUE, fields=(_SENSOR,), output_check=check)


def _sensor_setup(kind: BlockKind) -> BlockSpec:
    return BlockSpec(kind, BlockRole.STATEMENT, fields=(_SENSOR,))


_BUILT_IN_SPECS = (
    BlockSpec(BlockKind.MAIN_TASK, BlockRole.ENTRY, statement_slots=("STATEMENTS",)),
    BlockSpec(
        BlockKind.NAMED_TASK,
        BlockRole.SUBPROGRAM,
        fields=(FieldSpec("NAME", FieldKind.IDENTIFIER, DEFAULT_TASK_NAME, allow_empty=True),),
        statement_slots=("STATEMENTS",),
    ),
    BlockSpec(
        BlockKind.MOTOR_ON_WITH_POWER,
        BlockRole.STATEMENT,
        fields=(_MOTOR, _DIRECTION),
        value_slots=(_POWER,),
    ),
    BlockSpec(BlockKind.MOTOR_ON, BlockRole.STATEMENT, fields=(_MOTOR, _DIRECTION)),
    BlockSpec(BlockKind.MOTOR_OFF, BlockRole.STATEMENT, fields=(_MOTOR,)),
    BlockSpec(BlockKind.SET_POWER, BlockRole.STATEMENT, fields=(_MOTOR,), value_slots=(_POWER,)),
    BlockSpec(BlockKind.SET_DIRECTION, BlockRole.STATEMENT, fields=(_MOTOR, _DIRECTION)),
    BlockSpec(
        BlockKind.PLAY_SOUND,
        BlockRole.STATEMENT,
        fields=(FieldSpec("SOUND", FieldKind.DROPDOWN, "SOUND_CLICK", SOUND_OPTIONS),),
    ),
    _sensor_setup(BlockKind.TOUCH_SENSOR_SETUP),
    _sensor_setup(BlockKind.LIGHT_SENSOR_SETUP),
    _sensor_setup(BlockKind.ROTATION_SENSOR_SETUP),
    _sensor_setup(BlockKind.TEMPERATURE_SENSOR_SETUP),
    _sensor_value(BlockKind.TOUCH_VALUE, "Boolean"),
    _sensor_value(BlockKind.LIGHT_VALUE, "Number"),
    _sensor_value(BlockKind.ROTATION_VALUE, "Number"),
    _sensor_value(BlockKind.TEMPERATURE_VALUE, "Number"),
    BlockSpec(
        BlockKind.WAIT_SECONDS,
        BlockRole.STATEMENT,
        value_slots=(ValueSlotSpec("SECONDS", "Number", "1"),),
    ),
    BlockSpec(
        BlockKind.WAIT_UNTIL,
        BlockRole.STATEMENT,
        value_slots=(ValueSlotSpec("CONDITION", "Boolean", "true"),),
    ),
    BlockSpec(
        BlockKind.REPEAT_TIMES,
        BlockRole.STATEMENT,
        value_slots=(ValueSlotSpec("TIMES", "Number", "10"),),
        statement_slots=("DO",),
        counted_bound_slot="TIMES",
    ),
    BlockSpec(BlockKind.REPEAT_FOREVER, BlockRole.STATEMENT, statement_slots=("DO",)),
    BlockSpec(
        BlockKind.REPEAT_UNTIL,
        BlockRole.STATEMENT,
        value_slots=(ValueSlotSpec("CONDITION", "Boolean", "false"),),
        statement_slots=("DO",),
    ),
    BlockSpec(
        BlockKind.VARIABLE_SET,
        BlockRole.STATEMENT,
        fields=(FieldSpec("VAR", FieldKind.IDENTIFIER, "x"),),
        value_slots=(ValueSlotSpec("VALUE", "Number", "0"),),
        variable_field="VAR",
    ),
    BlockSpec(
        BlockKind.VARIABLE_GET,
        BlockRole.VALUE,
        fields=(FieldSpec("VAR", FieldKind.IDENTIFIER, "x"),),
        output_check="Number",
        variable_field="VAR",
        plain_operand=True,
    ),
    BlockSpec(
        BlockKind.NUMBER,
        BlockRole.VALUE,
        fields=(FieldSpec("NUM", FieldKind.NUMBER, 0),),
        output_check="Number",
        plain_operand=True,
    ),
    BlockSpec(
        BlockKind.PERCENT,
        BlockRole.VALUE,
        fields=(FieldSpec("NUM", FieldKind.NUMBER, 50, minimum=0, maximum=100),),
        output_check="Percent",
        plain_operand=True,
    ),
    BlockSpec(
        BlockKind.ARITHMETIC,
        BlockRole.VALUE,
        fields=(FieldSpec("OP", FieldKind.DROPDOWN, "ADD", ARITHMETIC_OPTIONS),),
        value_slots=(ValueSlotSpec("A", "Number", "0"), ValueSlotSpec("B", "Number", "0")),
        output_check="Number",
    ),
    BlockSpec(
        BlockKind.GROUP,
        BlockRole.VALUE,
        value_slots=(ValueSlotSpec("VALUE", "Number", "0"),),
        output_check="Number",
    ),
    BlockSpec(
        BlockKind.COMPARE,
        BlockRole.VALUE,
        fields=(FieldSpec("OP", FieldKind.DROPDOWN, "EQ", COMPARE_OPTIONS),),
        value_slots=(ValueSlotSpec("A", "Number", "0"), ValueSlotSpec("B", "Number", "0")),
        output_check="Boolean",
    ),
    BlockSpec(
        BlockKind.LOGIC,
        BlockRole.VALUE,
        fields=(FieldSpec("OP", FieldKind.DROPDOWN, "AND", LOGIC_OPTIONS),),
        value_slots=(
            ValueSlotSpec("A", "Boolean", "false"),
            ValueSlotSpec("B", "Boolean", "false"),
        ),
        output_check="Boolean",
    ),
    BlockSpec(
        BlockKind.NEGATE,
        BlockRole.VALUE,
        value_slots=(ValueSlotSpec("BOOL", "Boolean", "true"),),
        output_check="Boolean",
    ),
    BlockSpec(
        BlockKind.BOOLEAN,
        BlockRole.VALUE,
        fields=(FieldSpec("BOOL", FieldKind.DROPDOWN, "TRUE", BOOLEAN_OPTIONS),),
        output_check="Boolean",
    ),
    BlockSpec(BlockKind.IF, BlockRole.STATEMENT, shape=if_shape),
    BlockSpec(
        BlockKind.START_TASK,
        BlockRole.STATEMENT,
        fields=(FieldSpec("NAME", FieldKind.IDENTIFIER, DEFAULT_TASK_NAME),),
    ),
    BlockSpec(
        BlockKind.STOP_TASK,
        BlockRole.STATEMENT,
        fields=(FieldSpec("NAME", FieldKind.IDENTIFIER, DEFAULT_TASK_NAME),),
    ),
)

_BLOCK_SPECS: dict[str, BlockSpec] = {spec.kind: spec for spec in _BUILT_IN_SPECS}


def register_block_spec(spec: BlockSpec) -> None:
    """Register an additional block kind (e.g. from an editor extension)."""
    if spec.kind in _BLOCK_SPECS:
        raise ValueError(f'Block kind "{spec.kind}" is already registered.')
    _BLOCK_SPECS[spec.kind] = spec


def unregister_block_spec(kind: str) -> None:
    if kind in BlockKind.__members__.values():
        raise ValueError(f'Built-in block kind "{kind}" cannot be removed.')
    _BLOCK_SPECS.pop(kind, None)


def get_block_spec(kind: str) -> BlockSpec | None:
    return _BLOCK_SPECS.get(kind)


def known_kinds() -> list[str]:
    return list(_BLOCK_SPECS)
