from pathlib import Path
import sys

_SRC_DIR = Path(__file__).resolve().parent / "src"
if _SRC_DIR.exists():
    src_str = str(_SRC_DIR)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import (
    Header,
    Footer,
    Static,
    Label,
    Tree,
)
from textual.binding import Binding
from textual.reactive import reactive

from GeneratorComponents.Config import Config, ConfigError, load_config
from GeneratorComponents.WorkspaceLoader import WorkspaceLoadError

from InterfaceComponents.ViewerPhase import Phase, PHASES

from InterfaceComponents.DynamicPanel import DynamicPanel, DynamicPanelContentType

from compile_pipeline import GENERATION_ERRORS, PipelineSession

EXAMPLE_WORKSPACE = Path("examples/workspaces/line_follower.json")


class BlockCodeViewer(App):
    """Step-by-step view of how a block workspace becomes NQC code."""

    CSS_PATH = "src/InterfaceComponents/styles.tcss"  # Path to the CSS file

    BINDINGS = [
        Binding("ctrl+l", "load_file", "Load Workspace"),
        Binding("ctrl+r", "toggle_auto_progress", "Pause/Unpause"),
        Binding("+", "increase_speed", "Increase Speed"),
        Binding("-", "decrease_speed", "Decrease Speed"),
        Binding("ctrl+n", "complete_step", "Complete Step/next Step"),
        Binding("ctrl+s", "start_validation", "Start Validation"),
        Binding("t", "manual_tick", "Progress 1 Tick"),
        Binding("ctrl+e", "load_example", "Load Example Workspace"),
    ]

    running = reactive(False)

    def watch_running(self, is_running: bool):
        self.ticker.pause() if not is_running else self.ticker.resume()

    subtitle = reactive("")

    def watch_subtitle(self, new_subtitle: str):
        self.query_one("#title-bar", Static).update(new_subtitle)

    tick_interval = reactive(0.5)

    def watch_tick_interval(self, new_interval: float):
        self.ticker.stop()
        self.ticker = self.set_interval(
            new_interval, self.progress_tick, pause=not self.running
        )

    phase_completed = reactive(False)

    def watch_phase_completed(self, completed: bool):
        if completed:
            self.running = False
            message = f"{self.current_phase} "
            if self.phase_failed:
                message += "failed. "
                if self.error_message:
                    message += f"{self.error_message}"
                message += " Press ctrl+n to return to the workspace."
                status = "error"
            else:
                message += "completed successfully."
                message += " Press ctrl+n to proceed."
                status = "success"
            self.post_to_action_bar(message, status)
            self.refresh_bindings()

    def __init__(self, config: Config | None = None):
        super().__init__()
        self.config = config if config is not None else load_config(None)
        self.pipeline = PipelineSession()
        self.current_phase = ""  # Current phase (e.g., "Validation")
        self.phase_failed = False
        self.error_message = ""

        self.workspace_path: Path | None = None
        self.file_name = ""  # Name of the program being generated

        self._phase_subtitle_base: str = ""
        self._project_root: Path = Path(__file__).resolve().parent

    def compose(self) -> ComposeResult:
        """Create the layout of the application."""
        yield Header()  # Top header
        yield Footer()  # Bottom footer

        # Main container
        with Container():
            # Title bar
            yield Label("Initializing...", id="title-bar")

            # Horizontal split for input/output panels
            with Horizontal():
                self.left_panel = DynamicPanel(
                    "Left Panel",
                    id="left-panel",
                    classes="dynamic-panel",
                )
                yield self.left_panel
                self.right_panel = DynamicPanel(
                    "Right Panel",
                    id="right-panel",
                    classes="dynamic-panel",
                )
                yield self.right_panel
            # Bottom action bar
            yield Static(
                "Press Ctrl+L to load a workspace.",
                id="action-bar",
            )

    def on_mount(self):
        """Initialize the application."""
        self.ticker = self.set_interval(self.tick_interval, self.progress_tick, pause=True)

        self.set_phase(PHASES[0])  # Start at the first phase

    def set_phase(self, phase: Phase):
        """Set the current phase of the viewer."""
        self.current_phase = phase.name
        self._phase_subtitle_base = (
            f"Step {phase.step_number}: {phase.name} - {phase.description}"
        )
        self._refresh_title_bar()

        self.left_panel.title = phase.left_panel_title
        self.left_panel.content_type = phase.left_panel_type  # type: ignore

        self.right_panel.title = phase.right_panel_title
        self.right_panel.content_type = phase.right_panel_type  # type: ignore

        self.post_to_action_bar(
            (
                phase.action_bar_message
                if phase.action_bar_message
                else f"{phase.name} started"
            ),
            "info",
        )

        entering_method = entering_methods.get(phase.name)
        if entering_method:
            entering_method(self)
        self.phase_completed = False
        self.phase_failed = False
        self.running = False
        self.error_message = ""
        self.refresh_bindings()

    def _refresh_title_bar(self) -> None:
        program_label = self.file_name if self.file_name else "(none)"
        self.subtitle = f"{self._phase_subtitle_base} | Program: {program_label}"

    def _is_hidden_dir(self, p: Path) -> bool:
        hidden = {
            "src",
            "outputs",
            "tests",
            "__pycache__",
            ".vscode",
            ".idea",
            ".git",
            ".github",
            ".venv",
            ".mypy_cache",
            ".pytest_cache",
            ".ruff_cache",
        }
        return p.name in hidden

    def _should_show_file(self, p: Path) -> bool:
        # Keep the browser focused on workspace exports.
        return p.is_file() and p.suffix.lower() == ".json"

    def _populate_directory_tree(self) -> None:
        tree = self.right_panel.directory_tree
        tree.clear()

        tree.root.label = str(self._project_root)
        tree.root.data = self._project_root
        tree.root.expand()

        def add_dir(parent_node, directory: Path) -> None:
            try:
                entries = sorted(directory.iterdir(), key=lambda x: (not x.is_dir(), x.name.lower()))
            except (PermissionError, FileNotFoundError):
                return

            for entry in entries:
                if entry.is_dir():
                    if self._is_hidden_dir(entry):
                        continue
                    child = parent_node.add(entry.name, data=entry)
                    add_dir(child, entry)
                else:
                    if self._should_show_file(entry):
                        parent_node.add(entry.name, data=entry)

        add_dir(tree.root, self._project_root)

    def load_workspace(self, path: Path) -> bool:
        try:
            graph = self.pipeline.load_workspace(path)
        except WorkspaceLoadError as e:
            self.post_to_action_bar(f"Error loading workspace: {e}", "error")
            return False
        self.workspace_path = path
        self.file_name = self.config.program_name_for(path)
        self._refresh_title_bar()
        self.left_panel.block_tree.build_from_graph(graph, root_label=path.name)
        self.post_to_action_bar(
            f"Loaded {path.name}: {len(graph)} block(s). Press ctrl+S to start validation.", "success"
        )
        self.refresh_bindings()
        return True

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        # Picking a block once the program is written shows the code it produced.
        if self.current_phase == PHASES[2].name and self.phase_completed and isinstance(event.node.data, int):
            if not self.right_panel.product_code_display.reveal_block(event.node.data):
                self.post_to_action_bar(f"Block {event.node.data} wrote no code of its own.", "info")
            return
        # Only handle selections when we're using the right-panel file browser.
        if self.current_phase != PHASES[0].name:
            return
        if self.right_panel.content_type != DynamicPanelContentType.DIRECTORY_TREE:
            return

        node = event.node
        data = getattr(node, "data", None)
        if not isinstance(data, Path):
            return

        if data.is_dir():
            node.toggle()
            return

        if not self._should_show_file(data):
            return

        if self.load_workspace(data):
            self.right_panel.content_type = DynamicPanelContentType.HIDDEN

    def progress_tick(self):
        """Progress one tick in the current stage."""
        ticking_method = ticking_methods.get(self.current_phase)
        if ticking_method:
            self.phase_completed = ticking_method(self)

    def post_to_action_bar(self, message: str, style_class: str = "info"):
        """Post a message to the action bar with a specific style."""
        action_bar = self.query_one("#action-bar", Static)
        action_bar.update(message)
        action_bar.remove_class("info", "error", "success")
        action_bar.add_class(style_class)

    def action_load_file(self):
        """Toggle the file-browser tree (phase 0 only)."""
        if self.current_phase != PHASES[0].name:
            return

        if self.right_panel.content_type == DynamicPanelContentType.DIRECTORY_TREE:
            self.right_panel.content_type = DynamicPanelContentType.HIDDEN
            return

        self.right_panel.content_type = DynamicPanelContentType.DIRECTORY_TREE
        self._populate_directory_tree()
        self.right_panel.directory_tree.focus()
        self.post_to_action_bar("Select a .json workspace to load.", "info")

    def action_load_example(self):
        """Load the bundled example workspace."""
        path = self._project_root / EXAMPLE_WORKSPACE
        if not path.exists():
            self.post_to_action_bar("Example workspace not found.", "error")
            return
        self.load_workspace(path)

    def action_start_validation(self):
        """Start the validation phase."""
        self.set_phase(PHASES[1])

    def action_toggle_auto_progress(self):
        """Toggle automatic progress."""
        self.running = not self.running
        self.refresh_bindings()

    def action_increase_speed(self):
        """Increase the speed of auto progress."""
        self.tick_interval = max(0.1, self.tick_interval - 0.1)

    def action_decrease_speed(self):
        """Decrease the speed of auto progress."""
        self.tick_interval = self.tick_interval + 0.1

    def action_manual_tick(self):
        """Progress one tick manually."""
        if not self.running:
            self.progress_tick()

    def action_complete_step(self):
        """Complete the current step if not completed, move to next step if completed."""
        if self.phase_completed and not self.phase_failed:
            current_index = next(
                (
                    i
                    for i, phase in enumerate(PHASES)
                    if phase.name == self.current_phase
                ),
                None,
            )
            if current_index is not None and current_index + 1 < len(PHASES):
                self.set_phase(PHASES[current_index + 1])
        elif self.phase_failed:
            self.set_phase(PHASES[0])  # Restart from first phase
        else:
            self.running = False
            while not self.phase_completed and not self.phase_failed:
                self.progress_tick()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Check if an action may run."""
        if action in ("load_file", "load_example"):
            return self.current_phase == PHASES[0].name
        elif action == "start_validation":
            return self.current_phase == PHASES[0].name and self.workspace_path is not None
        elif action == "toggle_auto_progress":
            return (
                self.current_phase not in (PHASES[0].name, PHASES[-1].name)
                and not self.phase_completed
            )
        if action in ["increase_speed", "decrease_speed"]:
            return self.current_phase != PHASES[0].name and self.running
        elif action == "manual_tick":
            return (
                self.current_phase not in (PHASES[0].name, PHASES[-1].name)
                and not self.running
                and not self.phase_completed
            )
        elif action == "complete_step":
            return self.current_phase not in (PHASES[0].name, PHASES[-1].name)
        return True

    def entering_workspace_input(self):
        """Reload the workspace so a restarted run begins from the file's flags."""
        if self.workspace_path is not None:
            self.load_workspace(self.workspace_path)

    def entering_validation(self):
        """Prepare for the validation phase."""
        self.right_panel.warning_table.reset(self.pipeline.graph)
        self.pipeline.begin_validation()

    def compute_validation_tick(self) -> bool:
        """
        Compute one tick of the validation phase.
        Returns:
            bool: True if validation is complete, False otherwise.
        """
        done, report = self.pipeline.tick_validation()
        if done:
            return True
        if report is None:
            return False
        self.left_panel.block_tree.apply_progress_report(validation_report=report)
        self.right_panel.warning_table.apply_progress_report(validation_report=report)
        if report.action_bar_message:
            self.post_to_action_bar(report.action_bar_message, "info")
        return False

    def entering_code_generation(self):
        """Prepare for code generation."""
        self.right_panel.product_code_display.clear_program()
        self.pipeline.begin_code_generation(self.config.generator)

    def compute_code_generation_tick(self) -> bool:
        """
        Compute one tick of the code generation phase.
        Returns:
            bool: True if code generation is complete, False otherwise.
        """
        if self.phase_failed:
            return True
        try:
            done, report = self.pipeline.tick_code_generation()
        except GENERATION_ERRORS as e:
            self.error_message = str(e)
            self.running = False
            self.phase_failed = True
            return True
        if done:
            out_dir = Path(self.config.output_root) / self.file_name
            out_dir.mkdir(parents=True, exist_ok=True)
            out_path = out_dir / f"{self.file_name}.nqc"
            out_path.write_text(self.pipeline.output_code, encoding="utf-8")
            self.post_to_action_bar(
                f"Code generation completed. Output written to {out_path}.",
                "success",
            )
            return True

        if report is None:
            return False

        self.left_panel.block_tree.apply_progress_report(code_generation_report=report)
        self.right_panel.product_code_display.apply_progress_report(
            code_generation_report=report
        )

        if report.action_bar_message:
            self.post_to_action_bar(report.action_bar_message, "info")

        return False

    def entering_review(self):
        """Show every warning of the run next to the final code."""
        table = self.left_panel.warning_table
        table.reset(self.pipeline.graph)
        for handle, message in self.pipeline.warnings:
            table.add_warning("", handle, message)
        if not self.pipeline.warnings:
            self.post_to_action_bar("No warnings. The generated code is ready.", "success")


ticking_methods = {
    "Validation": BlockCodeViewer.compute_validation_tick,
    "Code Generation": BlockCodeViewer.compute_code_generation_tick,
}

entering_methods = {
    "Workspace Input": BlockCodeViewer.entering_workspace_input,
    "Validation": BlockCodeViewer.entering_validation,
    "Code Generation": BlockCodeViewer.entering_code_generation,
    "Review": BlockCodeViewer.entering_review,
}


if __name__ == "__main__":
    # usage: python BlockCodeViewer.py [config.json]
    try:
        app_config = load_config(sys.argv[1] if len(sys.argv) > 1 else None)
    except ConfigError as e:
        print(e)
        sys.exit(1)
    BlockCodeViewer(app_config).run()
