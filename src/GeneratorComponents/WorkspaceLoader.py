"""Builds a `BlockGraph` from an exported editor workspace (JSON).

The editor serializes its workspace as nested blocks:

    {"blocks": {"languageVersion": 0, "blocks": [
        {"type": "main_task", "id": "a1", "x": 20, "y": 20,
         "inputs": {"STATEMENTS": {"block": {
             "type": "wait_seconds",
             "inputs": {"SECONDS": {"shadow": {"type": "number", "fields": {"NUM": 2}}}},
             "next": {"block": {...}}}}}}
    ]}}

Top-level entries keep their order, which becomes the graph's creation order.
Both the block kinds of this package and the `nqc_*` block types of the
original editor palette (with their field and input names) are accepted.
Loading only: nothing here writes workspaces back.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from GeneratorComponents.BlockGraph import BlockGraph, GraphError, Node
from GeneratorComponents.BlockTypes import BlockKind, FieldKind, get_block_spec


class WorkspaceLoadError(Exception):
    """Raised when a workspace file cannot be turned into a block graph."""

    pass


@dataclass(frozen=True)
class EditorBlockType:
    kind: BlockKind
    fields: dict[str, str] = field(default_factory=dict)
    inputs: dict[str, str] = field(default_factory=dict)
    mutation: dict[str, Any] = field(default_factory=dict)


_DIRECTION = {"SENTIDO": "DIRECTION"}
_POWER = {"POTENCIA": "POWER"}
_CONDITION = {"CONDICAO": "CONDITION"}
_NAME = {"NOME": "NAME"}

EDITOR_BLOCK_TYPES: dict[str, EditorBlockType] = {
    "nqc_ligar_motor_com_potencia": EditorBlockType(BlockKind.MOTOR_ON_WITH_POWER, _DIRECTION, _POWER),
    "nqc_ligar_motor": EditorBlockType(BlockKind.MOTOR_ON, _DIRECTION),
    "nqc_desligar_motor": EditorBlockType(BlockKind.MOTOR_OFF),
    "nqc_define_potencia_percent": EditorBlockType(BlockKind.SET_POWER, inputs=_POWER),
    "nqc_define_sentido": EditorBlockType(BlockKind.SET_DIRECTION, _DIRECTION),
    "nqc_toca_som": EditorBlockType(BlockKind.PLAY_SOUND, {"SOM": "SOUND"}),
    "nqc_define_sensor_toque": EditorBlockType(BlockKind.TOUCH_SENSOR_SETUP),
    "nqc_define_sensor_luz": EditorBlockType(BlockKind.LIGHT_SENSOR_SETUP),
    "nqc_define_sensor_rotacao": EditorBlockType(BlockKind.ROTATION_SENSOR_SETUP),
    "nqc_define_sensor_temperatura": EditorBlockType(BlockKind.TEMPERATURE_SENSOR_SETUP),
    "nqc_valor_sensor_toque": EditorBlockType(BlockKind.TOUCH_VALUE),
    "nqc_valor_sensor_luz": EditorBlockType(BlockKind.LIGHT_VALUE),
    "nqc_valor_sensor_rotacao": EditorBlockType(BlockKind.ROTATION_VALUE),
    "nqc_valor_sensor_temperatura": EditorBlockType(BlockKind.TEMPERATURE_VALUE),
    "nqc_espera_segundos": EditorBlockType(BlockKind.WAIT_SECONDS),
    "nqc_espera_ate_que": EditorBlockType(BlockKind.WAIT_UNTIL, inputs=_CONDITION),
    "nqc_repita_vezes": EditorBlockType(BlockKind.REPEAT_TIMES),
    "nqc_repita_infinitamente": EditorBlockType(BlockKind.REPEAT_FOREVER),
    "nqc_repita_ate_que": EditorBlockType(BlockKind.REPEAT_UNTIL, inputs=_CONDITION),
    "nqc_variavel_recebe": EditorBlockType(BlockKind.VARIABLE_SET, inputs={"VALOR": "VALUE"}),
    "nqc_valor_variavel": EditorBlockType(BlockKind.VARIABLE_GET),
    "nqc_numero": EditorBlockType(BlockKind.NUMBER),
    "nqc_percentual": EditorBlockType(BlockKind.PERCENT),
    "nqc_operacao_matematica": EditorBlockType(BlockKind.ARITHMETIC),
    "nqc_comparacao": EditorBlockType(BlockKind.COMPARE),
    "nqc_operacao_logica": EditorBlockType(BlockKind.LOGIC),
    "nqc_contrario": EditorBlockType(BlockKind.NEGATE),
    "nqc_booleano": EditorBlockType(BlockKind.BOOLEAN),
    "nqc_se_faca": EditorBlockType(BlockKind.IF, inputs={"CONDICAO": "IF0", "DO": "DO0"}),
    "nqc_se_faca_senao": EditorBlockType(
        BlockKind.IF,
        inputs={"CONDICAO": "IF0", "DO": "DO0"},
        mutation={"has_else": True},
    ),
    "nqc_tarefa_principal": EditorBlockType(BlockKind.MAIN_TASK),
    "nqc_tarefa_nomeada": EditorBlockType(BlockKind.NAMED_TASK, _NAME),
    "nqc_executar_tarefa": EditorBlockType(BlockKind.START_TASK, _NAME),
    "nqc_interromper_tarefa": EditorBlockType(BlockKind.STOP_TASK, _NAME),
}


def load_workspace(path: Path | str, graph: BlockGraph | None = None) -> BlockGraph:
    """Read a workspace JSON file into `graph` (a new graph by default)."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WorkspaceLoadError(f"Cannot read workspace {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkspaceLoadError(f"Workspace {path} is not valid JSON: {e}") from e
    return workspace_from_dict(data, graph)


def workspace_from_dict(data: Any, graph: BlockGraph | None = None) -> BlockGraph:
    graph = graph if graph is not None else BlockGraph()
    if not isinstance(data, dict):
        raise WorkspaceLoadError("Workspace must be a JSON object.")
    blocks = data.get("blocks", {})
    if isinstance(blocks, dict):
        blocks = blocks.get("blocks", [])
    if not isinstance(blocks, list):
        raise WorkspaceLoadError('"blocks" must hold a list of top-level blocks.')
    for block_data in blocks:
        _build_chain(graph, block_data)
    return graph


def _build_chain(graph: BlockGraph, data: Any) -> Node:
    # Chains can be long; follow next-links iteratively.
    head = previous = _build_block(graph, data)
    next_data = _linked_block(data.get("next"))
    while next_data is not None:
        node = _build_block(graph, next_data)
        _connect(graph.connect_next, previous, node, next_data)
        previous = node
        next_data = _linked_block(next_data.get("next"))
    return head


def _build_block(graph: BlockGraph, data: Any) -> Node:
    if not isinstance(data, dict) or "type" not in data:
        raise WorkspaceLoadError(f"Block entry without a type: {data!r}")
    block_type = data["type"]
    editor_type = EDITOR_BLOCK_TYPES.get(block_type)
    if editor_type is not None:
        kind = editor_type.kind
        field_names, input_names = editor_type.fields, editor_type.inputs
        mutation = dict(editor_type.mutation)
    else:
        kind, field_names, input_names, mutation = block_type, {}, {}, {}

    spec = get_block_spec(kind)
    if spec is None:
        raise WorkspaceLoadError(f'Unknown block type "{block_type}" (id {data.get("id")}).')

    extra_state = data.get("extraState") or {}
    if "elseIfCount" in extra_state:
        mutation["else_if_count"] = _parse_count(extra_state["elseIfCount"], data)
    if "hasElse" in extra_state:
        mutation["has_else"] = bool(extra_state["hasElse"])

    fields = {}
    for name, value in (data.get("fields") or {}).items():
        name = field_names.get(name, name)
        field_spec = spec.field_spec(name)
        if field_spec is not None and field_spec.kind == FieldKind.NUMBER and isinstance(value, str):
            value = _parse_number(value, data)
        fields[name] = value

    try:
        node = graph.create(
            kind,
            fields=fields,
            mutation=mutation,
            comment=_comment_text(data),
            enabled=_is_enabled(data),
            block_id=data.get("id"),
        )
    except GraphError as e:
        raise WorkspaceLoadError(f'Block {data.get("id")} ({block_type}): {e}') from e

    for input_name, input_data in (data.get("inputs") or {}).items():
        child_data = _linked_block(input_data)
        if child_data is None:
            continue
        slot = input_names.get(input_name, input_name)
        if slot in node.value_slots:
            child = _build_block(graph, child_data)
            _connect(lambda p, c: graph.connect_value(p, slot, c), node, child, child_data)
        elif slot in node.statement_slots:
            child = _build_chain(graph, child_data)
            _connect(lambda p, c: graph.connect_statement(p, slot, c), node, child, child_data)
        else:
            raise WorkspaceLoadError(f'Block {data.get("id")} ({block_type}) has no input "{input_name}".')
    return node


def _connect(connect, parent: Node, child: Node, child_data: dict) -> None:
    try:
        connect(parent, child)
    except GraphError as e:
        raise WorkspaceLoadError(f'Block {child_data.get("id")} ({child_data.get("type")}): {e}') from e


def _linked_block(connection: Any) -> dict | None:
    """The block behind an input or next connection; a real block wins over its shadow."""
    if not connection:
        return None
    if not isinstance(connection, dict):
        raise WorkspaceLoadError(f"Malformed connection: {connection!r}")
    return connection.get("block") or connection.get("shadow")


def _comment_text(data: dict) -> str | None:
    comment = data.get("comment")
    if isinstance(comment, dict):
        comment = comment.get("text")
    if comment is None:
        comment = ((data.get("icons") or {}).get("comment") or {}).get("text")
    return comment or None


def _is_enabled(data: dict) -> bool:
    if data.get("disabledReasons"):
        return False
    return bool(data.get("enabled", True))


def _parse_number(value: str, data: dict) -> int | float:
    try:
        number = float(value)
    except ValueError:
        raise WorkspaceLoadError(f'Block {data.get("id")}: "{value}" is not a number.') from None
    return int(number) if number.is_integer() else number


def _parse_count(value: Any, data: dict) -> int:
    message = f'Block {data.get("id")}: elseIfCount must be a whole number; got {value!r}.'
    if isinstance(value, bool):
        raise WorkspaceLoadError(message)
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise WorkspaceLoadError(message) from None
    if count < 0:
        raise WorkspaceLoadError(message)
    return count
