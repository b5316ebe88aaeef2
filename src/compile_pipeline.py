from __future__ import annotations

from pathlib import Path
from typing import Optional

from GeneratorComponents.BlockGraph import BlockGraph, GraphError
from GeneratorComponents.CodeGenerator import get_code_generation_reporter
from GeneratorComponents.Config import Config, GeneratorOptions, clean_file_name
from GeneratorComponents.Expressions import UnrenderableNodeTypeError
from GeneratorComponents.NqcKeywords import ReservedNameError
from GeneratorComponents.ProgressReport import CodeGenerationReport, ValidationReport
from GeneratorComponents.Scopes import ScopeError
from GeneratorComponents.Types import NodeHandle
from GeneratorComponents.Validator import get_validation_reporter
from GeneratorComponents.WorkspaceLoader import WorkspaceLoadError, load_workspace

# Errors that stop a run; everything else is a bug and propagates.
GENERATION_ERRORS = (UnrenderableNodeTypeError, ReservedNameError, ScopeError, GraphError)


class PipelineSession:
    """Shared generator pipeline state.

    This is a UI-agnostic orchestrator that both the Textual UI and the CLI can
    drive. It keeps the phase generators + the produced artifacts in one place,
    so stage sequencing and data flow can't drift between entrypoints.
    """

    def __init__(self) -> None:
        self.reset_all()

    def reset_all(self) -> None:
        self.file_name: str = ""
        self.graph: BlockGraph = BlockGraph()
        self.output_code: str = ""
        self.warnings: list[tuple[NodeHandle | None, str]] = []

        self._validation_generator = None
        self._code_generator = None

    # ----- Loading -----

    def load_workspace(self, path: str | Path) -> BlockGraph:
        path = Path(path)
        self.reset_all()
        self.file_name = path.stem
        self.graph = load_workspace(path)
        return self.graph

    def use_graph(self, graph: BlockGraph, file_name: str = "") -> None:
        self.reset_all()
        self.file_name = file_name
        self.graph = graph

    # ----- Validation -----

    def begin_validation(self) -> None:
        self.warnings.clear()
        self._validation_generator = get_validation_reporter(self.graph)

    def tick_validation(self) -> tuple[bool, ValidationReport | None]:
        if self._validation_generator is None:
            raise RuntimeError("Validation generator not initialized.")
        try:
            report: ValidationReport = next(self._validation_generator)
            if report.warning:
                self.warnings.append((report.looked_at_node, report.warning))
            return False, report
        except StopIteration:
            return True, None

    def finish_validation(self) -> None:
        """Consume remaining validation reports until completion."""
        if self._validation_generator is None:
            return
        while not self.tick_validation()[0]:
            pass

    # ----- Code generation -----

    def begin_code_generation(self, options: GeneratorOptions | None = None) -> None:
        self.output_code = ""
        self._code_generator = get_code_generation_reporter(self.graph, options)

    def tick_code_generation(self) -> tuple[bool, CodeGenerationReport | None]:
        if self._code_generator is None:
            raise RuntimeError("Code generator not initialized.")
        try:
            report: CodeGenerationReport = next(self._code_generator)
            if report.new_code:
                self.output_code += report.new_code
            if report.warning:
                self.warnings.append((report.looked_at_node, report.warning))
            return False, report
        except StopIteration:
            return True, None


def compile_file_to_outputs(
    input_json_path: str | Path,
    program_name: str | None = None,
    output_root: str | Path = "outputs",
    config: Config | None = None,
) -> tuple[bool, Optional[Path], str]:
    """Generate NQC for a workspace file end-to-end using the same reporters as the UI.

    Writes `<output_root>/<program_name>/<program_name>.nqc`.

    Returns: (ok, output_nqc_path, message)
    """

    input_json_path = Path(input_json_path)
    if program_name is None:
        program_name = config.program_name_for(input_json_path) if config is not None else input_json_path.stem
    program_name = clean_file_name(program_name)
    options = config.generator if config is not None else None

    session = PipelineSession()
    try:
        session.load_workspace(input_json_path)
    except WorkspaceLoadError as e:
        return False, None, str(e)

    # Validation
    session.begin_validation()
    session.finish_validation()

    # Codegen
    try:
        session.begin_code_generation(options)
        while True:
            done, _ = session.tick_code_generation()
            if done:
                break
    except GENERATION_ERRORS as e:
        return False, None, str(e)

    output_dir = Path(output_root) / program_name
    output_dir.mkdir(parents=True, exist_ok=True)
    output_nqc_path = output_dir / f"{program_name}.nqc"
    output_nqc_path.write_text(session.output_code, encoding="utf-8")

    message = f"Code generation completed. Output written to {output_nqc_path}."
    if session.warnings:
        message += f" {len(session.warnings)} warning(s):"
        for handle, warning in session.warnings:
            message += f"\n  block {handle}: {warning}" if handle is not None else f"\n  {warning}"
    return True, output_nqc_path, message
