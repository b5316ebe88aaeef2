from pathlib import Path
import sys

_SRC_DIR = Path(__file__).resolve().parent / "src"
if _SRC_DIR.exists():
    src_str = str(_SRC_DIR)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from GeneratorComponents.Config import ConfigError, load_config

from compile_pipeline import compile_file_to_outputs

TEST_FILENAME = "./examples/workspaces/line_follower"


def compile_workspace(filename: str = TEST_FILENAME, config_path: str | None = None) -> bool:
    """Generate `<output_root>/<name>/<name>.nqc` from `<filename>.json`."""
    input_json_path = Path(filename)
    if input_json_path.suffix != ".json":
        input_json_path = input_json_path.with_name(input_json_path.name + ".json")
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"Code generation failed. {e}")
        return False

    ok, out_path, message = compile_file_to_outputs(
        input_json_path=input_json_path,
        output_root=config.output_root,
        config=config,
    )
    if not ok:
        print(f"Code generation failed. {message}")
        return False
    print(message)
    return True


if __name__ == "__main__":
    # usage: python DirectCompiler.py [workspace[.json]] [config.json]
    sys.exit(0 if compile_workspace(*sys.argv[1:3]) else 1)
