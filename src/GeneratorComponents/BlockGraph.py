"""Block graph model: an arena of typed nodes linked by slots and next-links.

Nodes never hold references to each other. Every connection (value slot,
statement slot, next-link, parent link) stores a `NodeHandle`, and the graph
resolves handles on demand. This keeps the structure free of reference cycles
and lets the generator, the validator and the UI share one node store.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from GeneratorComponents.BlockTypes import (
    BlockSpec,
    FieldKind,
    FieldSpec,
    get_block_spec,
)
from GeneratorComponents.NqcKeywords import IDENTIFIER_RE
from GeneratorComponents.Types import NodeHandle


class GraphError(Exception):
    """Raised when an edit would leave the block graph in an invalid state."""

    pass


class GraphEventType(StrEnum):
    CREATE = "create"
    DELETE = "delete"
    CHANGE = "change"
    MOVE = "move"


@dataclass(frozen=True)
class GraphEvent:
    type: GraphEventType
    handle: NodeHandle
    kind: str
    name: str | None = None  # field or connection involved, when relevant


NEXT_CONNECTION = "next"

# Which output checks a value slot accepts. Unchecked outputs fit anywhere.
_SLOT_ACCEPTS = {
    "Number": frozenset({"Number", "Percent"}),
    "Percent": frozenset({"Number", "Percent"}),
    "Boolean": frozenset({"Boolean"}),
}


@dataclass
class ValueSlot:
    name: str
    check: str
    default: str
    target: NodeHandle | None = None


@dataclass
class StatementSlot:
    name: str
    target: NodeHandle | None = None


@dataclass(eq=False)
class Node:
    """One block of the program.

    Attributes:
        handle (NodeHandle): Stable identity issued by the graph (creation order).
        kind (str): Block kind tag (see `BlockKind`).
        fields (dict[str, Any]): Field name to literal value.
        value_slots (dict[str, ValueSlot]): Expression sockets by name.
        statement_slots (dict[str, StatementSlot]): Nested chain sockets by name.
        next (NodeHandle | None): Following statement in the chain.
        parent (NodeHandle | None): Node this one is plugged into (output or previous connection).
        parent_connection (str | None): Slot name on the parent, or "next".
        comment (str | None): User comment attached to the block.
        enabled (bool): Disabled blocks are skipped by the generator.
        warning (str | None): Validator warning shown on the block.
        mutation (dict[str, Any]): Shape parameters of mutable blocks.
        block_id (str | None): Editor-side id, kept for round-tripping diagnostics.
    """

    handle: NodeHandle
    kind: str
    fields: dict[str, Any] = field(default_factory=dict)
    value_slots: dict[str, ValueSlot] = field(default_factory=dict)
    statement_slots: dict[str, StatementSlot] = field(default_factory=dict)
    next: NodeHandle | None = None
    parent: NodeHandle | None = None
    parent_connection: str | None = None
    comment: str | None = None
    enabled: bool = True
    warning: str | None = None
    mutation: dict[str, Any] = field(default_factory=dict)
    block_id: str | None = None

    @property
    def spec(self) -> BlockSpec | None:
        return get_block_spec(self.kind)

    def get_field(self, name: str) -> Any:
        return self.fields.get(name)

    def set_flags(self, enabled: bool, warning: str | None) -> bool:
        """Set validator flags without notifying listeners.

        Returns:
            bool: True when either flag actually changed.
        """
        changed = self.enabled != enabled or self.warning != warning
        self.enabled = enabled
        self.warning = warning
        return changed

    def __repr__(self):
        return f"Node({self.handle}, {self.kind})"


NodeRef = Node | NodeHandle | int


class BlockGraph:
    """Arena of nodes with connection rules and change notifications."""

    def __init__(self) -> None:
        self._nodes: dict[NodeHandle, Node] = {}
        self._next_handle: int = 1
        self._listeners: list[Callable[[GraphEvent], None]] = []

    # ----- Lookup -----

    def node(self, ref: NodeRef) -> Node:
        handle = ref.handle if isinstance(ref, Node) else NodeHandle(int(ref))
        try:
            return self._nodes[handle]
        except KeyError:
            raise GraphError(f"No block with handle {handle} in the graph.") from None

    def get(self, handle: NodeHandle | None) -> Node | None:
        if handle is None:
            return None
        return self._nodes.get(handle)

    def __contains__(self, ref: object) -> bool:
        if isinstance(ref, Node):
            return self._nodes.get(ref.handle) is ref
        return ref in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        # dicts keep insertion order, which is creation order
        return iter(list(self._nodes.values()))

    def value_target(self, node: NodeRef, slot_name: str) -> Node | None:
        return self.get(self._value_slot(self.node(node), slot_name).target)

    def statement_target(self, node: NodeRef, slot_name: str) -> Node | None:
        return self.get(self._statement_slot(self.node(node), slot_name).target)

    def next_node(self, node: NodeRef) -> Node | None:
        return self.get(self.node(node).next)

    def parent_of(self, node: NodeRef) -> Node | None:
        return self.get(self.node(node).parent)

    def top_blocks(self) -> list[Node]:
        """Unattached nodes in creation order."""
        return [node for node in self._nodes.values() if node.parent is None]

    def blocks_by_kind(self, kind: str) -> list[Node]:
        return [node for node in self._nodes.values() if node.kind == kind]

    def chain(self, head: NodeRef | None) -> list[Node]:
        """The statement chain starting at `head`, following next-links."""
        nodes: list[Node] = []
        current = self.node(head) if head is not None else None
        while current is not None:
            nodes.append(current)
            current = self.get(current.next)
        return nodes

    def children(self, node: NodeRef) -> list[Node]:
        """Directly attached nodes: value slots, then statement slots, then next."""
        node = self.node(node)
        result = [self._nodes[s.target] for s in node.value_slots.values() if s.target is not None]
        result += [self._nodes[s.target] for s in node.statement_slots.values() if s.target is not None]
        if node.next is not None:
            result.append(self._nodes[node.next])
        return result

    def descendants(self, node: NodeRef) -> list[Node]:
        """`node` and everything attached below it, depth first."""
        result: list[Node] = []
        stack = [self.node(node)]
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.children(current)))
        return result

    def root_of(self, node: NodeRef) -> Node:
        current = self.node(node)
        while current.parent is not None:
            current = self._nodes[current.parent]
        return current

    # ----- Listeners -----

    def add_change_listener(self, callback: Callable[[GraphEvent], None]) -> None:
        self._listeners.append(callback)

    def remove_change_listener(self, callback: Callable[[GraphEvent], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _fire(self, event_type: GraphEventType, node: Node, name: str | None = None) -> None:
        event = GraphEvent(event_type, node.handle, node.kind, name)
        for listener in list(self._listeners):
            listener(event)

    # ----- Creation and deletion -----

    def create(
        self,
        kind: str,
        fields: dict[str, Any] | None = None,
        mutation: dict[str, Any] | None = None,
        comment: str | None = None,
        enabled: bool = True,
        block_id: str | None = None,
    ) -> Node:
        """Create an unattached node of `kind` with default fields and empty slots.

        Args:
            kind (str): Block kind tag.
            fields (dict | None): Field values overriding the defaults.
            mutation (dict | None): Shape parameters for mutable blocks.
            comment (str | None): Optional block comment.
            enabled (bool): Initial enabled flag.
            block_id (str | None): Editor-side id.

        Returns:
            Node: The created node.

        Raises:
            GraphError: For unknown kinds, unknown fields or invalid field values.
        """
        spec = get_block_spec(kind)
        if spec is None:
            raise GraphError(f'Unknown block kind "{kind}".')
        mutation = dict(mutation or {})
        try:
            value_specs, statement_names = spec.slots_for(mutation)
        except (TypeError, ValueError) as e:
            raise GraphError(f'Invalid shape for block "{kind}": {e}') from e

        node = Node(
            handle=NodeHandle(self._next_handle),
            kind=spec.kind,
            fields={f.name: f.default for f in spec.fields},
            value_slots={v.name: ValueSlot(v.name, v.check, v.default) for v in value_specs},
            statement_slots={name: StatementSlot(name) for name in statement_names},
            comment=comment,
            enabled=enabled,
            mutation=mutation,
            block_id=block_id,
        )
        for name, value in (fields or {}).items():
            node.fields[name] = self._checked_field_value(spec, name, value)

        self._next_handle += 1
        self._nodes[node.handle] = node
        self._fire(GraphEventType.CREATE, node)
        return node

    def delete(self, ref: NodeRef) -> None:
        """Delete a node together with everything attached below it."""
        node = self.node(ref)
        if node.parent is not None:
            self._detach(node)
        doomed = self.descendants(node)
        for victim in doomed:
            del self._nodes[victim.handle]
        for victim in doomed:
            self._fire(GraphEventType.DELETE, victim)

    def clear(self) -> None:
        for node in self.top_blocks():
            self.delete(node)

    # ----- Fields and flags -----

    def set_field(self, ref: NodeRef, name: str, value: Any) -> None:
        node = self.node(ref)
        spec = self._spec(node)
        node.fields[name] = self._checked_field_value(spec, name, value)
        self._fire(GraphEventType.CHANGE, node, name)

    def set_comment(self, ref: NodeRef, text: str | None) -> None:
        node = self.node(ref)
        node.comment = text or None
        self._fire(GraphEventType.CHANGE, node, "comment")

    def set_enabled(self, ref: NodeRef, enabled: bool) -> None:
        node = self.node(ref)
        node.enabled = enabled
        self._fire(GraphEventType.CHANGE, node, "enabled")

    # ----- Connections -----

    def connect_value(self, parent_ref: NodeRef, slot_name: str, child_ref: NodeRef) -> None:
        """Plug a value node into a value slot.

        A node already in the slot is detached and becomes a top-level block.
        """
        parent = self.node(parent_ref)
        child = self.node(child_ref)
        slot = self._value_slot(parent, slot_name)
        child_spec = self._spec(child)
        if not child_spec.is_value:
            raise GraphError(f'Block "{child.kind}" has no output and cannot fill slot "{slot_name}".')
        accepted = _SLOT_ACCEPTS.get(slot.check)
        if accepted is not None and child_spec.output_check is not None and child_spec.output_check not in accepted:
            raise GraphError(
                f'Slot "{slot_name}" of "{parent.kind}" expects {slot.check}, '
                f'but "{child.kind}" produces {child_spec.output_check}.'
            )
        self._check_no_cycle(parent, child)
        if child.parent is not None:
            self._detach(child)

        if slot.target is not None:
            previous = self._nodes[slot.target]
            previous.parent = None
            previous.parent_connection = None
            self._fire(GraphEventType.MOVE, previous)

        slot.target = child.handle
        child.parent = parent.handle
        child.parent_connection = slot_name
        self._fire(GraphEventType.MOVE, child, slot_name)

    def connect_statement(self, parent_ref: NodeRef, slot_name: str, child_ref: NodeRef) -> None:
        """Plug a statement chain into a statement slot.

        A chain already in the slot is re-attached after the tail of the new one.
        """
        parent = self.node(parent_ref)
        slot = self._statement_slot(parent, slot_name)
        self._attach_chain(parent, child_ref, slot_name, slot.target, lambda h: setattr(slot, "target", h))

    def connect_next(self, previous_ref: NodeRef, child_ref: NodeRef) -> None:
        """Attach a statement chain after `previous`.

        Whatever followed `previous` is re-attached after the tail of the new chain.
        """
        previous = self.node(previous_ref)
        if not self._spec(previous).is_statement:
            raise GraphError(f'Block "{previous.kind}" has no next connection.')
        self._attach_chain(
            previous, child_ref, NEXT_CONNECTION, previous.next, lambda h: setattr(previous, "next", h)
        )

    def disconnect(self, ref: NodeRef) -> None:
        """Detach a node (and everything below it) from its parent."""
        node = self.node(ref)
        if node.parent is None:
            return
        self._detach(node)
        self._fire(GraphEventType.MOVE, node)

    # ----- Internals -----

    def _spec(self, node: Node) -> BlockSpec:
        spec = get_block_spec(node.kind)
        if spec is None:
            raise GraphError(f'Block kind "{node.kind}" is no longer registered.')
        return spec

    def _value_slot(self, node: Node, slot_name: str) -> ValueSlot:
        try:
            return node.value_slots[slot_name]
        except KeyError:
            raise GraphError(f'Block "{node.kind}" has no value slot "{slot_name}".') from None

    def _statement_slot(self, node: Node, slot_name: str) -> StatementSlot:
        try:
            return node.statement_slots[slot_name]
        except KeyError:
            raise GraphError(f'Block "{node.kind}" has no statement slot "{slot_name}".') from None

    def _checked_field_value(self, spec: BlockSpec, name: str, value: Any) -> Any:
        field_spec = spec.field_spec(name)
        if field_spec is None:
            raise GraphError(f'Block "{spec.kind}" has no field "{name}".')
        return _validate_field(spec.kind, field_spec, value)

    def _check_no_cycle(self, parent: Node, child: Node) -> None:
        current: Node | None = parent
        while current is not None:
            if current.handle == child.handle:
                raise GraphError(f"Connecting {child!r} below {parent!r} would create a cycle.")
            current = self.get(current.parent)

    def _attach_chain(
        self,
        parent: Node,
        child_ref: NodeRef,
        connection: str,
        occupant: NodeHandle | None,
        set_target: Callable[[NodeHandle | None], None],
    ) -> None:
        child = self.node(child_ref)
        if not self._spec(child).is_statement:
            raise GraphError(f'Block "{child.kind}" cannot be placed in a statement chain.')
        self._check_no_cycle(parent, child)
        if child.parent is not None:
            self._detach(child)
            # detaching may have emptied the position we are filling
            occupant = parent.next if connection == NEXT_CONNECTION else parent.statement_slots[connection].target

        set_target(child.handle)
        child.parent = parent.handle
        child.parent_connection = connection

        if occupant is not None and occupant != child.handle:
            tail = self.chain(child)[-1]
            displaced = self._nodes[occupant]
            tail.next = displaced.handle
            displaced.parent = tail.handle
            displaced.parent_connection = NEXT_CONNECTION
            self._fire(GraphEventType.MOVE, displaced, NEXT_CONNECTION)
        self._fire(GraphEventType.MOVE, child, connection)

    def _detach(self, node: Node) -> None:
        parent = self._nodes[node.parent]  # type: ignore[index]
        connection = node.parent_connection
        if connection == NEXT_CONNECTION:
            parent.next = None
        elif connection in parent.value_slots:
            parent.value_slots[connection].target = None
        elif connection in parent.statement_slots:
            parent.statement_slots[connection].target = None
        node.parent = None
        node.parent_connection = None


def _validate_field(kind: str, spec: FieldSpec, value: Any) -> Any:
    match spec.kind:
        case FieldKind.DROPDOWN:
            if value not in spec.options:
                raise GraphError(
                    f'Field "{spec.name}" of "{kind}" must be one of {", ".join(spec.options)}; got {value!r}.'
                )
            return value
        case FieldKind.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise GraphError(f'Field "{spec.name}" of "{kind}" must be a number; got {value!r}.')
            if spec.minimum is not None and value < spec.minimum:
                raise GraphError(f'Field "{spec.name}" of "{kind}" must be at least {spec.minimum}.')
            if spec.maximum is not None and value > spec.maximum:
                raise GraphError(f'Field "{spec.name}" of "{kind}" must be at most {spec.maximum}.')
            return value
        case FieldKind.IDENTIFIER:
            if not isinstance(value, str):
                raise GraphError(f'Field "{spec.name}" of "{kind}" must be text; got {value!r}.')
            value = value.strip()
            if value == "" and spec.allow_empty:
                return value
            if not IDENTIFIER_RE.match(value):
                raise GraphError(f'"{value}" is not a valid name for field "{spec.name}" of "{kind}".')
            return value
        case _:
            if not isinstance(value, str):
                raise GraphError(f'Field "{spec.name}" of "{kind}" must be text; got {value!r}.')
            return value
