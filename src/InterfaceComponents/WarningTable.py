from textual.widgets import DataTable

from GeneratorComponents.BlockGraph import BlockGraph
from GeneratorComponents.ProgressReport import CodeGenerationReport, ValidationReport


class WarningTable(DataTable):
    """UI widget listing validator and generator warnings, one row per warning."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(
            ("PHASE", "phase_col"),
            ("BLOCK", "block_col"),
            ("KIND", "kind_col"),
            ("WARNING", "warning_col"),
        )
        self.fixed_columns = 2
        self.graph: BlockGraph | None = None

    def reset(self, graph: BlockGraph | None = None) -> None:
        self.clear()
        self.graph = graph

    def add_warning(self, phase: str, handle, message: str) -> None:
        kind = ""
        if handle is not None and self.graph is not None:
            node = self.graph.get(handle)
            kind = node.kind if node is not None else ""
        self.add_row(
            phase,
            "" if handle is None else str(handle),
            kind,
            message,
            height=None,
        )
        self.move_cursor(row=self.row_count - 1, scroll=True)

    def apply_progress_report(
        self,
        validation_report: ValidationReport | None = None,
        code_generation_report: CodeGenerationReport | None = None,
    ):
        """Adds a row when the report carries a warning."""
        report = validation_report or code_generation_report
        if report is None or not report.warning:
            return
        self.add_warning(report.current_phase_number, report.looked_at_node, report.warning)
