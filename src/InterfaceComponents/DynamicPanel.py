from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import (
    Tree,
    ContentSwitcher,
)
from textual.reactive import reactive
from InterfaceComponents.BlockTree import BlockTree
from InterfaceComponents.WarningTable import WarningTable
from InterfaceComponents.ProductCodeDisplay import NqcProgramView
from enum import StrEnum

class DynamicPanelContentType(StrEnum):
    DIRECTORY_TREE = "directory_tree"
    BLOCK_TREE = "block_tree"
    WARNING_TABLE = "warning_table"
    PRODUCT_CODE_DISPLAY = "product_code_display"
    HIDDEN = "hidden"

class DynamicPanel(Container):
    """Custom widget for a dynamic panel that adapts to different content types."""

    content_type = reactive(DynamicPanelContentType.HIDDEN)
    title = reactive("")

    def __init__(self, title: str, **kwargs):
        super().__init__(**kwargs)
        self.title = title

        # creates the widgets to display the different types of contents
        self.directory_tree = Tree("Root", id="directory-tree")
        self.block_tree = BlockTree("Workspace", id="block-tree")
        self.warning_table = WarningTable(id="warning-table")
        self.product_code_display = NqcProgramView(id="product-code-display", read_only=True)

    def watch_content_type(self, content_type : DynamicPanelContentType):
        if content_type == "":
            return
        self.remove_class("hidden")
        switcher = self.query_one("#content-switcher", ContentSwitcher)
        match content_type:
            case DynamicPanelContentType.DIRECTORY_TREE:
                switcher.current = "directory-tree"
            case DynamicPanelContentType.BLOCK_TREE:
                switcher.current = "block-tree"
            case DynamicPanelContentType.WARNING_TABLE:
                switcher.current = "warning-table"
            case DynamicPanelContentType.PRODUCT_CODE_DISPLAY:
                switcher.current = "product-code-display"
            case DynamicPanelContentType.HIDDEN:
                self.add_class("hidden")
            case _:
                raise ValueError(
                    f"Unsupported content type: {content_type} for DynamicPanel."
                )

    def compose(self) -> ComposeResult:
        with ContentSwitcher(id="content-switcher", initial="block-tree"):
            yield self.directory_tree
            yield self.block_tree
            yield self.warning_table
            yield self.product_code_display

    def watch_title(self, new_title: str):
        self.border_title = new_title
