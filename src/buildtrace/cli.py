"""buildtrace CLI: run a build step and record its provenance."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    try:
        buildtrace_version = get_version("buildtrace")
    except PackageNotFoundError:
        buildtrace_version = "dev"

    parser = argparse.ArgumentParser(
        prog="buildtrace",
        description="buildtrace: record provenance attestations for build steps"
    )
    parser.add_argument("--version", action="version", version=f"buildtrace {buildtrace_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Diagnostic log level (default: INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser(
        "run",
        help="Execute a command and write its provenance attestation",
        parents=[parent_parser]
    )
    run_parser.add_argument(
        "--cwd",
        type=Path,
        default=None,
        help="Working directory for the command (defaults to the current directory)"
    )
    run_parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Echo command output while it runs"
    )
    run_parser.add_argument(
        "--attestation",
        dest="attestation_path",
        type=Path,
        default=None,
        help="Path to write the attestation to (defaults to a provenance-*.json temp file)"
    )
    run_parser.add_argument(
        "--watch",
        dest="watch",
        type=Path,
        action="append",
        default=None,
        help="Directory to watch for artifacts (repeatable, snapshotted in order)"
    )
    run_parser.add_argument(
        "step",
        nargs=argparse.REMAINDER,
        help="Command and arguments to execute, after '--'"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point for buildtrace commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    level = logging.WARNING if args.quiet else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)

    if args.command == "run":
        step_argv = list(args.step)
        if step_argv and step_argv[0] == "--":
            step_argv = step_argv[1:]
        if not step_argv:
            print("Error: no command given. Usage: buildtrace run [options] -- COMMAND [ARGS...]", file=sys.stderr)
            return 1

        from .errors import BuildtraceError, ExecutionError
        from .kernel.run import CommandStep
        from .options import Options
        from .runner import Runner
        from .watcher import DirectoryWatcher

        try:
            options = Options.from_env(
                cwd=str(args.cwd.resolve()) if args.cwd else None,
                verbose=args.verbose,
                attestation_path=str(args.attestation_path.resolve()) if args.attestation_path else None,
            )
            runner = Runner(options)
            for directory in args.watch or []:
                runner.add_watcher(DirectoryWatcher(directory.resolve()))

            run = runner.run(CommandStep(cmd=step_argv[0], args=step_argv[1:]))
        except ExecutionError as e:
            print(f"Error: {e}", file=sys.stderr)
            return e.exit_code if e.exit_code and e.exit_code > 0 else 1
        except BuildtraceError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if not args.quiet:
            print("[OK] Run complete")
            print(f"  Attestation: {runner.attestation_path}")
            print(f"  Exit code: {run.exit_code}")
            print(f"  Artifacts: {len(run.artifacts)}")
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
