#!/usr/bin/env -S uv run python
"""Development task runner for Gator.

Usage:
    ./dev.py <command> [args...]

Quality Commands:
    fmt [--check]   Format code with ruff
    lint [--fix]    Lint code with ruff
    typecheck       Run mypy
    test            Run pytest (pass additional args after)
    check           Run fmt --check, lint, typecheck and test

Database Commands:
    db-migrate  Create tables in the configured database
    db-reset    Delete the database file and recreate it

Aggregator Commands:
    agg <interval>  Run the feed aggregator (same as `gator agg`)

    help        Show this help message
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent


def run(cmd: list[str]) -> int:
    """Run a command from the project root, printing it first."""
    print(f"\n→ {' '.join(cmd)}")
    return subprocess.run(cmd, cwd=PROJECT_ROOT, check=False).returncode


def cmd_fmt(check: bool = False) -> int:
    args = ["uv", "run", "ruff", "format"]
    if check:
        args.append("--check")
    return run([*args, "."])


def cmd_lint(fix: bool = False) -> int:
    args = ["uv", "run", "ruff", "check"]
    if fix:
        args.append("--fix")
    return run([*args, "."])


def cmd_typecheck() -> int:
    return run(["uv", "run", "mypy", "src"])


def cmd_test(args: list[str] | None = None) -> int:
    return run(["uv", "run", "pytest", *(args or [])])


def cmd_check() -> int:
    """Run every check, reporting all failures rather than stopping at the first."""
    results = [cmd_fmt(check=True), cmd_lint(), cmd_typecheck(), cmd_test()]
    if any(results):
        print("\n✗ Some checks failed")
        return 1
    print("\n✓ All checks passed")
    return 0


def cmd_db_migrate() -> int:
    return run(["uv", "run", "python", "-m", "gator.db.migrate"])


def cmd_db_reset() -> int:
    print("⚠️  This will delete all data. Are you sure? [y/N] ", end="")
    if input().strip().lower() != "y":
        print("Aborted.")
        return 1
    return run(["uv", "run", "python", "-m", "gator.db.reset"])


def cmd_agg(args: list[str]) -> int:
    return run(["uv", "run", "gator", "agg", *args])


def cmd_help() -> int:
    print(__doc__)
    return 0


def main() -> int:
    if len(sys.argv) < 2:
        return cmd_help()

    command = sys.argv[1]
    args = sys.argv[2:]

    match command:
        case "fmt":
            return cmd_fmt(check="--check" in args)
        case "lint":
            return cmd_lint(fix="--fix" in args)
        case "typecheck":
            return cmd_typecheck()
        case "test":
            return cmd_test(args)
        case "check":
            return cmd_check()
        case "db-migrate":
            return cmd_db_migrate()
        case "db-reset":
            return cmd_db_reset()
        case "agg":
            return cmd_agg(args)
        case "help" | "--help" | "-h":
            return cmd_help()
        case _:
            print(f"Unknown command: {command}")
            return cmd_help()


if __name__ == "__main__":
    sys.exit(main())
