"""Regression harness for the example workspaces.

Generates every `examples/workspaces/*.json` and compares the result with the
`.nqc` file next to it.
"""

from __future__ import annotations

import shutil
import sys
from difflib import unified_diff
from pathlib import Path

# Make `src/` importable (matches DirectCompiler / UI entrypoints).
_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from compile_pipeline import compile_file_to_outputs  # noqa: E402


def _collect_workspaces() -> list[Path]:
    workspace_dir = _REPO_ROOT / "examples" / "workspaces"
    return sorted(workspace_dir.glob("*.json"))


def _clean_program_outputs(*, output_root: Path, program_name: str) -> None:
    """Remove outputs for this program before generating."""
    output_root = output_root.resolve()
    program_output_dir = (output_root / program_name).resolve()
    if output_root not in program_output_dir.parents:
        raise RuntimeError(
            f"Refusing to delete outside output_root: {program_output_dir}"
        )
    if program_output_dir.exists():
        shutil.rmtree(program_output_dir)


def compare_output(expected_path: Path, generated_path: Path) -> str | None:
    """Returns a diff excerpt, or None when the files match."""
    expected = expected_path.read_text(encoding="utf-8")
    actual = generated_path.read_text(encoding="utf-8")
    if expected == actual:
        return None
    diff = list(
        unified_diff(
            expected.splitlines(),
            actual.splitlines(),
            fromfile="expected",
            tofile="actual",
            lineterm="",
        )
    )
    diff_str = "\n  ".join(diff[:20])
    if len(diff) > 20:
        diff_str += "\n  ... (more lines)"
    return diff_str or "Files differ in whitespace only."


def main(argv: list[str]) -> int:
    output_root = _REPO_ROOT / "outputs"

    files = _collect_workspaces()
    if not files:
        print("No files found under examples/workspaces/*.json")
        return 2

    failures: list[tuple[Path, str]] = []

    for path in files:
        program_name = path.stem
        rel_in = path.relative_to(_REPO_ROOT)

        _clean_program_outputs(output_root=output_root, program_name=program_name)

        ok, out_path, message = compile_file_to_outputs(
            input_json_path=path,
            program_name=program_name,
            output_root=output_root,
        )
        if not ok or out_path is None:
            print(f"FAIL {rel_in}: {message}")
            failures.append((path, message))
            continue

        expected_path = path.with_suffix(".nqc")
        if not expected_path.exists():
            print(f"OK   {rel_in} (no expected output)")
            continue

        diff = compare_output(expected_path, out_path)
        if diff is None:
            print(f"OK   {rel_in}")
        else:
            print(f"FAIL {rel_in} -> {out_path.relative_to(_REPO_ROOT)}")
            print(f"  {diff}")
            failures.append((path, "output mismatch"))

    print(f"\nTOTAL {len(files)}  FAILED {len(failures)}")

    if failures:
        print("\nFailures:")
        for path, msg in failures:
            print(f"- {path.relative_to(_REPO_ROOT)}: {msg}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
