"""Comprehension CLI — comprehension run, comprehension build, comprehension check."""
import sys
import os

from comprehension.api import check, compile_comprehension, transpile
from comprehension.errors import ComprehensionError
from comprehension_runtime.config import get_config
from comprehension_runtime.exceptions import ComprehensionRuntimeError
from comprehension_runtime.logging_config import configure_logging


def _parse_take(args: list[str]) -> int | None:
    """Pull ``--take N`` out of *args*; None when absent."""
    if "--take" not in args:
        return None
    idx = args.index("--take")
    if idx + 1 >= len(args) or not args[idx + 1].isdigit():
        print("Error: --take needs a non-negative integer", file=sys.stderr)
        sys.exit(1)
    count = int(args[idx + 1])
    del args[idx:idx + 2]
    return count


def main():
    args = sys.argv[1:]
    if not args:
        print("Usage: comprehension <command> [file.comp] [--take N]", file=sys.stderr)
        print("Commands: run, build, check", file=sys.stderr)
        sys.exit(1)

    command = args.pop(0)

    if command in ("run", "build", "check"):
        try:
            config = get_config()
            configure_logging()
            take = _parse_take(args)
        except ComprehensionRuntimeError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        if not args:
            print(f"Usage: comprehension {command} <file.comp>", file=sys.stderr)
            sys.exit(1)
        filepath = args[0]
        if not os.path.exists(filepath):
            print(f"Error: file not found: {filepath}", file=sys.stderr)
            sys.exit(1)
        with open(filepath, encoding="utf-8") as f:
            source = f.read()

        try:
            if command == "check":
                check(source, config=config)
                print(f"OK: {filepath}")
                sys.exit(0)

            if command == "build":
                python_code = transpile(source, config=config)
                out_path = os.path.splitext(filepath)[0] + ".py"
                with open(out_path, "w") as out:
                    out.write(python_code)
                print(f"Built: {out_path}")
                sys.exit(0)

            if command == "run":
                if take is None:
                    take = config["cli"]["take"]
                for item in compile_comprehension(source, config=config).take(take):
                    print(repr(item))

        except (ComprehensionError, ComprehensionRuntimeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
