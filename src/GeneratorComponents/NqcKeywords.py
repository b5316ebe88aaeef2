"""Centralized NQC keywords and built-in names.

This module is the single source of truth for the words a user may not pick as
a variable or task name. It is imported by the Validator (to flag task names)
and by the emitters (through `NameResolver`) so both agree on what collides.
"""

import re
from enum import StrEnum

__all__ = [
    "NQC_KEYWORDS",
    "NQC_BUILT_INS",
    "NQC_CONSTANTS",
    "NQC_RESERVED_WORDS",
    "ENTRY_POINT_NAME",
    "IDENTIFIER_RE",
    "ReservedNameError",
    "ReservedNamePolicy",
    "NameResolver",
    "is_reserved",
    "is_reserved_task_name",
]

### Language keywords ###

NQC_KEYWORDS = frozenset({
    "task", "sub", "inline", "void", "int", "const", "asm",
    "if", "else", "while", "do", "for", "repeat", "switch", "case", "default",
    "break", "continue", "until", "return", "monitor", "catch", "acquire",
    "release", "start", "stop", "true", "false",
})

### Built-in functions ###

NQC_BUILT_INS = frozenset({
    "abs", "sign", "Random",
    "OnFwd", "OnRev", "Off", "Float", "Fwd", "Rev", "Toggle",
    "SetPower", "SetDirection", "ClearTimer", "Timer", "Wait",
    "PlaySound", "PlayTone", "ClearMessage", "SendMessage", "Message",
    "SetSensor", "SetSensorType", "SetSensorMode", "ClearSensor",
    "Sensor", "SensorValue", "SensorType", "SensorMode",
    "StartTask", "StopTask", "StopAllTasks", "SetPriority",
})

### Predefined constants ###

NQC_CONSTANTS = frozenset({
    "OUT_A", "OUT_B", "OUT_C", "OUT_FWD", "OUT_REV",
    "SENSOR_1", "SENSOR_2", "SENSOR_3",
})

NQC_RESERVED_WORDS = NQC_KEYWORDS | NQC_BUILT_INS | NQC_CONSTANTS

# The primary entry point always compiles to `task main()`.
ENTRY_POINT_NAME = "main"

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ReservedNameError(Exception):
    """Raised when a user-chosen name collides with an NQC reserved word."""

    def __init__(self, name: str, what: str = "variable"):
        super().__init__(
            f'The {what} name "{name}" is reserved in NQC. Choose a different name.'
        )
        self.name = name
        self.what = what


class ReservedNamePolicy(StrEnum):
    REJECT = "reject"
    RENAME = "rename"


def is_reserved(name: str) -> bool:
    return name in NQC_RESERVED_WORDS


def is_reserved_task_name(name: str) -> bool:
    """Task names additionally may not shadow the entry point."""
    return name == ENTRY_POINT_NAME or is_reserved(name)


class NameResolver:
    """Maps user-chosen names to the names written into the program.

    Under `ReservedNamePolicy.REJECT` a collision raises `ReservedNameError`.
    Under `ReservedNamePolicy.RENAME` the name gets the lowest numeric suffix
    (starting at 2) that is neither reserved nor used anywhere in the graph.
    The mapping is fixed for the whole run, so every occurrence of a name
    resolves identically.
    """

    def __init__(self, policy: ReservedNamePolicy, taken: set[str] | None = None):
        self.policy = ReservedNamePolicy(policy)
        self._taken: set[str] = set(taken or ())
        self._renamed: dict[str, str] = {}

    def variable(self, name: str) -> str:
        return self._resolve(name, is_reserved(name), "variable")

    def task(self, name: str) -> str:
        return self._resolve(name, is_reserved_task_name(name), "task")

    def _resolve(self, name: str, reserved: bool, what: str) -> str:
        if not reserved:
            return name
        if self.policy == ReservedNamePolicy.REJECT:
            raise ReservedNameError(name, what)
        if name not in self._renamed:
            suffix = 2
            while (
                f"{name}{suffix}" in self._taken
                or is_reserved_task_name(f"{name}{suffix}")
            ):
                suffix += 1
            self._renamed[name] = f"{name}{suffix}"
            self._taken.add(self._renamed[name])
        return self._renamed[name]

    def reserve(self, name: str) -> None:
        """Mark a generated name as taken so later renames avoid it."""
        self._taken.add(name)

    def is_taken(self, name: str) -> bool:
        return name in self._taken
