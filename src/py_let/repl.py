"""Interactive REPL (Read-Eval-Print Loop) for the variable engine.

The REPL is the terminal front end.  It builds an engine from the
configuration, loads the inherited environment, creates a shell, and
enters the classic loop:

    1. **Read** — display a prompt and read user input.
    2. **Eval** — pass the command to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — repeat until the shell returns the exit sentinel.

Whatever happens, the engine is torn down on the way out so inherited
variables get their startup values back and invented ones disappear.
"""

import argparse
import readline
import sys
from pathlib import Path

from py_let.completer import Completer
from py_let.config import (
    PROJECT_NAME,
    VERSION,
    ConfigError,
    EngineConfig,
    build_engine,
    load_config,
)
from py_let.engine import VariableEngine
from py_let.shell import Shell

_BANNER_WIDTH = 38
PROMPT = "py-let> "


def format_banner(engine: VariableEngine) -> str:
    """Return the startup banner for *engine*."""
    border = "=" * _BANNER_WIDTH
    header = f"\n  {border}\n            {PROJECT_NAME} v{VERSION}\n  {border}\n\n"
    body = f"  Loaded {len(engine.registry)} environment variables.\n"
    footer = "Type 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog=PROJECT_NAME, description="Variable assignment shell.")
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> None:
    """Build the engine and run the interactive REPL.

    This is the main entrypoint.  It handles:
    - Configuration loading.
    - Environment bootstrap and teardown.
    - The read-eval-print loop.
    - Graceful handling of Ctrl+C and Ctrl+D.
    """
    args = _parse_args(argv)
    try:
        config = load_config(args.config) if args.config is not None else EngineConfig()
        engine = build_engine(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)  # noqa: T201
        raise SystemExit(1) from e

    engine.bootstrap()
    shell = Shell(engine=engine)

    # Wire up tab completion via readline.
    completer = Completer(shell)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t")
    readline.parse_and_bind("tab: complete")

    print(format_banner(engine))  # noqa: T201

    try:
        while True:
            try:
                command = input(PROMPT)
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C — graceful exit
        print("\nInterrupted.")  # noqa: T201

    finally:
        engine.teardown()
        print("Environment restored.")  # noqa: T201
