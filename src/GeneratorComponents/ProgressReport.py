from GeneratorComponents.Types import NodeHandle


class ProgressReport:
    def __init__(self):
        self.current_phase_number = ""
        self.action_bar_message = ""
        self.looked_at_node: NodeHandle | None = None
        self.warning: str | None = None


class ValidationReport(ProgressReport):
    """
    Progress report for the validation phase.
    Attributes:
        current_phase_number (str): The current phase number, automatically set to "1".
        looked_at_node (NodeHandle | None): The block whose rule was just checked.
        enabled (bool): The enabled flag the block ended up with.
        warning (str | None): The warning the block ended up with, if any.
        changed (bool): Whether the check changed the block's flags.
    """
    def __init__(self):
        super().__init__()
        self.current_phase_number = "1"
        self.enabled: bool = True
        self.changed: bool = False


class CodeGenerationReport(ProgressReport):
    """
    Progress report for the code generation phase.

    `new_code` fragments concatenated in yield order form the complete program.
    `warning` is set for skipped blocks and precedence notes; it never affects
    the generated text.
    """
    def __init__(self):
        super().__init__()
        self.current_phase_number = "2"
        self.new_code: str | None = None
