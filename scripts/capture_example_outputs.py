"""Capture expected NQC programs for the example workspaces.

Generates every `examples/workspaces/*.json` and stores the program next to
it as `<name>.nqc`, the ground truth used by regression_compile_examples.py.

Run this after changing a renderer on purpose, then review the diff.
"""

import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from compile_pipeline import compile_file_to_outputs  # noqa: E402

WORKSPACES_DIR = _REPO_ROOT / "examples" / "workspaces"
OUTPUTS_DIR = _REPO_ROOT / "outputs"


def main():
    workspaces = sorted(WORKSPACES_DIR.glob("*.json"))
    print(f"Capturing expected programs from {len(workspaces)} workspaces...\n")

    captured = 0
    failed = 0
    for path in workspaces:
        ok, out_path, message = compile_file_to_outputs(
            input_json_path=path,
            program_name=path.stem,
            output_root=OUTPUTS_DIR,
        )
        if not ok or out_path is None:
            print(f"[FAIL] {path.stem}: {message}")
            failed += 1
            continue

        expected_path = path.with_suffix(".nqc")
        code = out_path.read_text(encoding="utf-8")
        changed = not expected_path.exists() or expected_path.read_text(encoding="utf-8") != code
        expected_path.write_text(code, encoding="utf-8")
        print(f"[OK] {path.stem}{' (updated)' if changed else ''}")
        captured += 1

    print(f"\n[DONE] Captured {captured} programs")
    print(f"[FAIL] Failed {failed} workspaces")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
