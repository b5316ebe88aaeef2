from __future__ import annotations

from dataclasses import dataclass, field

from GeneratorComponents.BlockGraph import BlockGraph, Node
from GeneratorComponents.BlockTypes import FieldKind, get_block_spec
from GeneratorComponents.Config import GeneratorOptions
from GeneratorComponents.NqcKeywords import NameResolver
from GeneratorComponents.Scopes import Scope, ScopeError, ScopeTracker
from GeneratorComponents.Types import NodeHandle


def graph_names(graph: BlockGraph) -> set[str]:
    """Every user-chosen identifier in the graph (variables and task names)."""
    names: set[str] = set()
    for node in graph:
        spec = get_block_spec(node.kind)
        if spec is None:
            continue
        for field_spec in spec.fields:
            value = node.fields.get(field_spec.name)
            if field_spec.kind == FieldKind.IDENTIFIER and value:
                names.add(value)
    return names


@dataclass
class GeneratorContext:
    """State of one generation run, passed explicitly to every emitter.

    Attributes:
        graph (BlockGraph): The graph being rendered.
        options (GeneratorOptions): Indentation, reserved-name policy and preamble.
        names (NameResolver): Maps user names to emitted names for this run.
        scopes (ScopeTracker): Scope table; emitters register into the open scope.
        notes (list[tuple[NodeHandle, str]]): Warnings collected while emitting.
    """

    graph: BlockGraph
    options: GeneratorOptions
    names: NameResolver
    scopes: ScopeTracker = field(default_factory=ScopeTracker)
    notes: list[tuple[NodeHandle, str]] = field(default_factory=list)

    @classmethod
    def for_graph(cls, graph: BlockGraph, options: GeneratorOptions | None = None) -> GeneratorContext:
        options = options or GeneratorOptions()
        return cls(
            graph=graph,
            options=options,
            names=NameResolver(options.reserved_name_policy, graph_names(graph)),
        )

    @property
    def scope(self) -> Scope | None:
        return self.scopes.current

    def register_variable(self, name: str) -> str:
        """Resolve a variable name and record it in the open scope."""
        resolved = self.names.variable(name)
        self.scopes.register(resolved)
        return resolved

    def auxiliary_name(self, node: Node) -> str:
        scope = self.scopes.current
        if scope is None:
            raise ScopeError(f"Counted loop {node!r} rendered outside of any scope.")
        return scope.allocate_auxiliary(node.handle, self.names)

    def note(self, node: Node, message: str) -> None:
        self.notes.append((node.handle, message))

    def drain_notes(self) -> list[tuple[NodeHandle, str]]:
        notes, self.notes = self.notes, []
        return notes
