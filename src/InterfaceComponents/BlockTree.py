from __future__ import annotations

from rich.text import Text
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from GeneratorComponents.BlockGraph import BlockGraph, Node
from GeneratorComponents.ProgressReport import CodeGenerationReport, ValidationReport
from GeneratorComponents.Types import NodeHandle


def block_label(node: Node) -> Text:
    """One-line label: kind, handle and field values.

    Disabled blocks are dimmed and blocks with a validator warning are yellow.
    """
    fields = ", ".join(f"{name}={value}" for name, value in node.fields.items())
    plain = f"{node.kind} #{node.handle}"
    if fields:
        plain += f" [{fields}]"
    if node.warning:
        plain += f"  ! {node.warning}"
    if not node.enabled:
        return Text(plain, style="dim strike")
    if node.warning:
        return Text(plain, style="yellow")
    return Text(plain, style="white")


class BlockTree(Tree):
    """Tree widget showing the block graph.

    Top-level blocks are children of the root. Chained statements are shown
    as siblings, value slots and statement slots as labelled children. The
    widget keeps a handle->TreeNode mapping so progress reports can move the
    cursor to the block being worked on.
    """

    def __init__(self, label: str = "Workspace", **kwargs):
        super().__init__(label, **kwargs)
        self._nodes_by_handle: dict[NodeHandle, TreeNode] = {}
        self._graph: BlockGraph | None = None

    def reset_tree(self, root_label: str = "Workspace") -> None:
        self.clear()
        self.root.label = root_label
        self.root.expand()
        self._nodes_by_handle = {}

    def build_from_graph(self, graph: BlockGraph, root_label: str = "Workspace") -> None:
        self.reset_tree(root_label)
        self._graph = graph
        for top in graph.top_blocks():
            self._add_chain(top, self.root)
        self.root.expand()
        self.action_scroll_home()

    def _add_chain(self, head: Node, parent: TreeNode) -> None:
        assert self._graph is not None
        for node in self._graph.chain(head):
            tree_node = parent.add(block_label(node), data=node.handle)
            self._nodes_by_handle[node.handle] = tree_node
            tree_node.expand()
            for slot in node.value_slots.values():
                child = self._graph.get(slot.target)
                if child is None:
                    tree_node.add_leaf(Text(f"{slot.name}: {slot.default}", style="grey50"))
                    continue
                slot_node = tree_node.add(Text(f"{slot.name}:", style="cyan"))
                slot_node.expand()
                self._add_chain(child, slot_node)
            for slot in node.statement_slots.values():
                body = self._graph.get(slot.target)
                slot_node = tree_node.add(Text(f"{slot.name}:", style="cyan"))
                slot_node.expand()
                if body is not None:
                    self._add_chain(body, slot_node)

    def refresh_label(self, handle: NodeHandle) -> None:
        if self._graph is None:
            return
        tree_node = self._nodes_by_handle.get(handle)
        node = self._graph.get(handle)
        if tree_node is not None and node is not None:
            tree_node.set_label(block_label(node))

    def _focus_handle(self, handle: NodeHandle | None) -> None:
        if handle is None:
            return
        tree_node = self._nodes_by_handle.get(handle)
        if tree_node is not None:
            self.move_cursor(tree_node)
            self.scroll_to_node(tree_node)

    def apply_progress_report(
        self,
        validation_report: ValidationReport | None = None,
        code_generation_report: CodeGenerationReport | None = None,
    ) -> None:
        if validation_report:
            if validation_report.looked_at_node is not None:
                self.refresh_label(validation_report.looked_at_node)
            self._focus_handle(validation_report.looked_at_node)
        elif code_generation_report:
            self._focus_handle(code_generation_report.looked_at_node)
