from typing import Any

from textual.widgets import TextArea
from textual.widgets.text_area import Selection

from GeneratorComponents.ProgressReport import CodeGenerationReport
from GeneratorComponents.Types import NodeHandle


class NqcProgramView(TextArea):
    """The NQC program as it is generated, one fragment per report.

    Every fragment is remembered against the block that produced it, so the
    text written for a block can be found again once generation is over.
    There is no NQC grammar in textual; the program shows as plain text.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.language = None
        self.show_line_numbers = True
        self.fragments: dict[NodeHandle, tuple[int, int]] = {}

    def clear_program(self) -> None:
        self.text = ""
        self.fragments.clear()

    def apply_progress_report(self, code_generation_report: CodeGenerationReport | None = None):
        """Append the report's `new_code` and select it."""
        if code_generation_report is None or not code_generation_report.new_code:
            return
        start = len(self.text)
        self.text += code_generation_report.new_code
        end = len(self.text)
        handle = code_generation_report.looked_at_node
        if handle is not None:
            first, _ = self.fragments.get(handle, (start, end))
            self.fragments[handle] = (first, end)
        self._select_span(start, end)

    def reveal_block(self, handle: NodeHandle) -> bool:
        """Select the text written for `handle`. False when it wrote none."""
        span = self.fragments.get(handle)
        if span is None:
            return False
        self._select_span(*span)
        return True

    def _select_span(self, start: int, end: int) -> None:
        document: Any = self.document
        self.selection = Selection(
            start=document.get_location_from_index(start),
            end=document.get_location_from_index(end),
        )
        self.scroll_cursor_visible(center=True)
