"""Per-task variable scopes and the declaration pre-scan.

NQC needs every local variable declared at the top of its task, but the block
program has no declaration blocks. Names are therefore collected per scope:
`prescan()` walks a task body before any code is emitted and registers every
variable it touches, so the declarations can be written above the body.
"""

from __future__ import annotations

from dataclasses import dataclass

from GeneratorComponents.BlockGraph import BlockGraph, Node
from GeneratorComponents.NqcKeywords import NameResolver, is_reserved_task_name
from GeneratorComponents.Types import NodeHandle

AUXILIARY_PREFIX = "repeat_bound_"


class ScopeError(Exception):
    """Raised when scopes are opened, used or closed out of order."""

    pass


@dataclass(frozen=True)
class ScopeKey:
    kind: str  # "main", "task" or "global"
    name: str = ""

    def __str__(self) -> str:
        return f"{self.kind}:{self.name}" if self.name else self.kind


MAIN_SCOPE = ScopeKey("main")
GLOBAL_SCOPE = ScopeKey("global")


def task_scope(name: str) -> ScopeKey:
    return ScopeKey("task", name)


class Scope:
    """Distinct variable names of one task body, in first-registered order."""

    def __init__(self, key: ScopeKey):
        self.key = key
        # dict keys keep insertion order; declarations must be deterministic
        self._names: dict[str, None] = {}
        self._auxiliary: dict[NodeHandle, str] = {}

    def register(self, name: str) -> bool:
        """Record a variable name. Returns True when the name is new."""
        if not name:
            raise ScopeError(f'Cannot register an empty variable name in scope "{self.key}".')
        if name in self._names:
            return False
        self._names[name] = None
        return True

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def auxiliary_name(self, handle: NodeHandle) -> str | None:
        return self._auxiliary.get(handle)

    def allocate_auxiliary(self, handle: NodeHandle, names: NameResolver) -> str:
        """Give a counted loop its bound-holding variable and register it.

        The name is `repeat_bound_<n>` with the lowest `n` not used by any
        user name in the graph nor already in this scope.
        """
        existing = self._auxiliary.get(handle)
        if existing is not None:
            return existing
        index = 1
        while True:
            candidate = f"{AUXILIARY_PREFIX}{index}"
            if (
                candidate not in self._names
                and not names.is_taken(candidate)
                and not is_reserved_task_name(candidate)
            ):
                break
            index += 1
        self._auxiliary[handle] = candidate
        self.register(candidate)
        return candidate

    def __repr__(self):
        return f"Scope({self.key}, {self.names})"


class ScopeTracker:
    """Holds the scopes of one generation run. At most one scope is open."""

    def __init__(self) -> None:
        self._scopes: dict[ScopeKey, Scope] = {}
        self._open: Scope | None = None

    @property
    def current(self) -> Scope | None:
        return self._open

    def open(self, key: ScopeKey) -> Scope:
        if self._open is not None:
            raise ScopeError(
                f'Cannot open scope "{key}" while "{self._open.key}" is open; tasks cannot be nested.'
            )
        scope = Scope(key)
        self._scopes[key] = scope
        self._open = scope
        return scope

    def register(self, name: str) -> bool:
        if self._open is None:
            raise ScopeError(f'Variable "{name}" used outside of any scope.')
        return self._open.register(name)

    def declarations_for(self, key: ScopeKey, indent: str = "  ") -> str:
        """Render one `int name;` line per variable of `key`, plus a blank line.

        Returns an empty string when the scope has no variables.
        """
        scope = self._scopes.get(key)
        if scope is None:
            raise ScopeError(f'Scope "{key}" is not known (already closed?).')
        if not len(scope):
            return ""
        return "".join(f"{indent}int {name};\n" for name in scope.names) + "\n"

    def close(self) -> None:
        """Close the open scope and discard its table."""
        if self._open is None:
            raise ScopeError("No scope is open.")
        del self._scopes[self._open.key]
        self._open = None

    def reset(self) -> None:
        self._scopes.clear()
        self._open = None


### Pre-scan ###


def prescan(
    graph: BlockGraph,
    scope: Scope,
    heads: list[Node],
    names: NameResolver,
) -> None:
    """Register every variable a body will use, before emitting it.

    Walks each chain in `heads` (following next-links), every nested statement
    chain and every value sub-graph, skipping disabled blocks exactly like the
    emitters do. Counted loops whose bound is computed get their auxiliary
    variable after all user names, so declarations list user names first.

    Args:
        graph: The block graph.
        scope: The open scope to fill.
        heads: First block of each chain to scan (loose roots may be values).
        names: Resolver applied to every user name.
    """
    computed_loops: list[NodeHandle] = []
    for head in heads:
        _scan_chain(graph, scope, head, names, computed_loops)
    for handle in computed_loops:
        scope.allocate_auxiliary(handle, names)


def needs_auxiliary_bound(graph: BlockGraph, node: Node) -> bool:
    """True when a counted loop's bound is not a plain literal or identifier."""
    spec = node.spec
    if spec is None or spec.counted_bound_slot is None:
        return False
    bound = graph.value_target(node, spec.counted_bound_slot)
    if bound is None or not bound.enabled:
        return False
    bound_spec = bound.spec
    return bound_spec is None or not bound_spec.plain_operand


def _scan_chain(
    graph: BlockGraph,
    scope: Scope,
    head: Node | None,
    names: NameResolver,
    computed_loops: list[NodeHandle],
) -> None:
    current = head
    while current is not None:
        if current.enabled:
            _scan_node(graph, scope, current, names, computed_loops)
        current = graph.get(current.next)


def _scan_node(
    graph: BlockGraph,
    scope: Scope,
    node: Node,
    names: NameResolver,
    computed_loops: list[NodeHandle],
) -> None:
    spec = node.spec
    if spec is None:
        return
    if spec.variable_field is not None:
        scope.register(names.variable(node.fields[spec.variable_field]))
    if needs_auxiliary_bound(graph, node):
        computed_loops.append(node.handle)
    for slot in node.value_slots.values():
        child = graph.get(slot.target)
        if child is not None and child.enabled:
            _scan_node(graph, scope, child, names, computed_loops)
    for slot in node.statement_slots.values():
        _scan_chain(graph, scope, graph.get(slot.target), names, computed_loops)
