from dataclasses import dataclass
from InterfaceComponents.DynamicPanel import DynamicPanelContentType

@dataclass
class Phase:
    name: str
    step_number: str
    description: str
    left_panel_type: str  # a DynamicPanelContentType
    left_panel_title: str
    right_panel_type: str  # a DynamicPanelContentType
    right_panel_title: str
    action_bar_message: str = ""  # Optional message for the action bar

# Define the phases of the viewer
PHASES = [
    Phase(
        name="Workspace Input",
        step_number="0",
        description="A block workspace exported from the editor (JSON).",
        left_panel_type=DynamicPanelContentType.BLOCK_TREE,
        left_panel_title="Block workspace",
        right_panel_type=DynamicPanelContentType.HIDDEN,
        right_panel_title="File Browser",
        action_bar_message="Please load a workspace (ctrl+L) or the example (ctrl+E), then press ctrl+S to start."
    ),
    Phase(
        name="Validation",
        step_number="1",
        description="Check the main task and task names; disable offending blocks.",
        left_panel_type=DynamicPanelContentType.BLOCK_TREE,
        left_panel_title="Block workspace",
        right_panel_type=DynamicPanelContentType.WARNING_TABLE,
        right_panel_title="Warnings"
    ),
    Phase(
        name="Code Generation",
        step_number="2",
        description="Generate NQC code from the block workspace.",
        left_panel_type=DynamicPanelContentType.BLOCK_TREE,
        left_panel_title="Block workspace",
        right_panel_type=DynamicPanelContentType.PRODUCT_CODE_DISPLAY,
        right_panel_title="Generated NQC code"
    ),
    Phase(
        name="Review",
        step_number="3",
        description="Generated code next to the warnings collected on the way.",
        left_panel_type=DynamicPanelContentType.WARNING_TABLE,
        left_panel_title="Warnings",
        right_panel_type=DynamicPanelContentType.PRODUCT_CODE_DISPLAY,
        right_panel_title="Generated NQC code"
    ),
]
