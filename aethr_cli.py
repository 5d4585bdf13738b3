#!/usr/bin/env python3
"""
Aethr — Command-Line Interface

Thin wrapper around ResolutionOrchestrator. All settings come from the
environment (see AethrConfig.from_env); nothing here touches storage
directly.

Usage:
    aethr init                       # Create data dir, databases, seed KB
    aethr import [log]               # Import a `<epoch>\\t<command>` log
    aethr recall "<query>"           # Ranked commands from history + KB
    aethr fix "<error text>"         # One fix: rule → community → AI
    aethr seed [file.json]           # Load a JSON seed file into the KB
    aethr status                     # Row counts and paths

Exit codes: 0 on success or "no result", 1 when storage cannot be opened
or an input file cannot be read.
"""
import argparse
import asyncio
import json
import os
import sys

# Panels and tables use box-drawing chars; Windows consoles default to cp1252
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8")

from rich.markup import escape
from rich.prompt import Confirm

from aethr.__version__ import __version__
from aethr.core.errors import StorageUnavailableError
from aethr.core.orchestrator import ResolutionOrchestrator
from aethr.core.types import FixResponse
from aethr.utils.config import AethrConfig
from aethr.utils.logging import (
    configure_logging, console,
    print_fix_response, print_recall_response, print_status,
)

COMMAND_LOG_FILENAME = "commands.log"


def _load(config: AethrConfig) -> ResolutionOrchestrator:
    return ResolutionOrchestrator.from_config(config)


# ─── Commands ────────────────────────────────────────────────────────────────

def cmd_init(args, config: AethrConfig) -> int:
    os.makedirs(config.resolved_data_dir, exist_ok=True)
    orchestrator = _load(config)
    try:
        status = orchestrator.status()
    finally:
        orchestrator.close()
    console.print(f"[green]✓ Aethr initialized in {escape(config.resolved_data_dir)}[/green]")
    console.print(f"[dim]  Knowledge base: {status['brain_count']} fixes · "
                  f"rules: {status['rule_count']}[/dim]")
    for warning in config.validate():
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")
    return 0


def cmd_import(args, config: AethrConfig) -> int:
    log_path = args.log or os.path.join(config.resolved_data_dir, COMMAND_LOG_FILENAME)
    try:
        with open(log_path, "r", encoding="utf-8", errors="replace") as f:
            lines = f.readlines()
    except OSError as e:
        console.print(f"[red]Cannot read {escape(log_path)}: {escape(str(e))}[/red]")
        return 1
    orchestrator = _load(config)
    try:
        added = orchestrator.import_history(lines, working_dir=args.working_dir)
    finally:
        orchestrator.close()
    console.print(f"[green]✓ Imported {added} new command(s) from {escape(log_path)}[/green]")
    return 0


def cmd_recall(args, config: AethrConfig) -> int:
    query = " ".join(args.query)
    orchestrator = _load(config)
    try:
        response = asyncio.run(orchestrator.recall(query, cwd=args.cwd, limit=args.limit))
    finally:
        orchestrator.close()
    if args.json:
        print(json.dumps({
            "found": response.found,
            "results": [
                {"command": r.command, "source": r.source.value,
                 "score": round(r.score, 4), "boosted": r.boosted}
                for r in response.results
            ],
            "context": response.context.sorted_tags(),
            "warnings": response.warnings,
        }, indent=2))
    else:
        print_recall_response(response, query)
    return 0


def cmd_fix(args, config: AethrConfig) -> int:
    error_text = " ".join(args.error)
    if error_text == "-" or not error_text:
        error_text = sys.stdin.read()
    ask = not args.no_feedback and sys.stdin.isatty()

    def confirm(response: FixResponse):
        print_fix_response(response)
        if not ask:
            return None
        return Confirm.ask("Did this fix work?", default=True)

    orchestrator = _load(config)
    try:
        response = asyncio.run(orchestrator.fix(error_text, cwd=args.cwd, confirm=confirm))
    finally:
        orchestrator.close()
    if not response.found:
        print_fix_response(response)
    elif response.feedback is True:
        console.print("[green]✓ Thanks, recorded as a working fix.[/green]")
    elif response.feedback is False:
        console.print("[dim]Recorded as not working.[/dim]")
    return 0


def cmd_seed(args, config: AethrConfig) -> int:
    seed_path = args.file or config.resolved_seed_path
    orchestrator = _load(config)
    try:
        try:
            added = orchestrator.brain.seed_from_file(seed_path)
        except (OSError, ValueError) as e:
            console.print(f"[red]Cannot load seed file {escape(seed_path)}: {escape(str(e))}[/red]")
            return 1
    finally:
        orchestrator.close()
    console.print(f"[green]✓ Seeded {added} fix(es) from {escape(seed_path)}[/green]")
    return 0


def cmd_status(args, config: AethrConfig) -> int:
    orchestrator = _load(config)
    try:
        print_status(orchestrator.status())
    finally:
        orchestrator.close()
    return 0


# ─── Entry Point ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aethr",
        description="Terminal error fixer and command recall.",
    )
    parser.add_argument("--version", action="version", version=f"aethr {__version__}")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init", help="Create the data directory and databases")

    p_import = sub.add_parser("import", help="Import a shell command log")
    p_import.add_argument("log", nargs="?", help="Log file (default: <data_dir>/commands.log)")
    p_import.add_argument("--working-dir", default=".", help="Directory recorded for each command")

    p_recall = sub.add_parser("recall", help="Find commands you or others have used")
    p_recall.add_argument("query", nargs="+")
    p_recall.add_argument("--cwd", default=None, help="Project directory for context boosts")
    p_recall.add_argument("--limit", type=int, default=None)
    p_recall.add_argument("--json", action="store_true", help="Machine-readable output")

    p_fix = sub.add_parser("fix", help="Suggest a fix for an error ('-' reads stdin)")
    p_fix.add_argument("error", nargs="*")
    p_fix.add_argument("--cwd", default=None, help="Project directory for context detection")
    p_fix.add_argument("--no-feedback", action="store_true", help="Don't ask whether it worked")

    p_seed = sub.add_parser("seed", help="Load a JSON seed file into the knowledge base")
    p_seed.add_argument("file", nargs="?", help="Seed file (default: bundled seed)")

    sub.add_parser("status", help="Show database counts and paths")
    return parser


COMMANDS = {
    "init": cmd_init,
    "import": cmd_import,
    "recall": cmd_recall,
    "fix": cmd_fix,
    "seed": cmd_seed,
    "status": cmd_status,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    config = AethrConfig.from_env()
    configure_logging(config.log_level)
    try:
        return COMMANDS[args.command](args, config)
    except StorageUnavailableError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        return 1


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
