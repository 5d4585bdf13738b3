"""
Aethr — Logging and Display

Two output channels, kept apart:
- Diagnostics go through structlog, routed to stderr via stdlib handlers.
- User-facing results are rendered with rich (panels and tables on stdout).
Core modules only ever log; rendering happens in the CLI.
"""
import logging
import sys
from typing import Any, Dict, List

import structlog
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.types import FixLayer, FixResponse, RecallResponse, ResultSource

console = Console()

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_LAYER_LABELS = {
    FixLayer.RULE_MATCH: "rule",
    FixLayer.COMMUNITY_MATCH: "community",
    FixLayer.LLM_FALLBACK: "AI suggestion",
}

_SOURCE_STYLES = {
    ResultSource.HISTORY: "green",
    ResultSource.COMMUNITY: "cyan",
    ResultSource.RULE: "magenta",
    ResultSource.LLM: "yellow",
}


# ─── Diagnostics ─────────────────────────────────────────────────────────────

def configure_logging(level: str = "WARNING") -> None:
    """Configure structlog once, rendering to stderr through stdlib logging."""
    default_level = _LEVEL_MAP.get(level.upper(), logging.WARNING)
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            pad_event_to=0,
            pad_level=False,
        ),
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(default_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(default_level)
    root_logger.addHandler(handler)

    # The SDK's HTTP client logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ─── Display ─────────────────────────────────────────────────────────────────

def print_fix_response(response: FixResponse):
    """Render a found fix with its provenance and alternates."""
    if not response.found:
        print_no_fix(response)
        return

    label = _LAYER_LABELS.get(response.layer, response.layer.value)
    lines = [f"[bold]{escape(response.command)}[/bold]"]
    if response.confidence is not None:
        lines.append(f"[dim]Confidence: {response.confidence:.0%} ({label})[/dim]")
    elif response.success_rate is not None:
        lines.append(f"[dim]Success rate: {response.success_rate:.0f}% ({label})[/dim]")
    else:
        lines.append(f"[dim]Source: {label}[/dim]")
    if response.explanation:
        lines.append("")
        lines.append(escape(response.explanation))
    if not response.verified:
        lines.append("")
        lines.append("[yellow]⚠ Unverified: review before running.[/yellow]")

    border = "yellow" if not response.verified else "green"
    console.print(Panel("\n".join(lines), title="[bold]🔧 Suggested fix[/bold]",
                        border_style=border, padding=(0, 1)))

    if response.alternates:
        console.print("[dim]Alternatives:[/dim]")
        for alt in response.alternates:
            rate = f" ({alt.success_rate:.0f}%)" if alt.success_rate is not None else ""
            console.print(f"[dim]  • {escape(alt.command)}{rate}[/dim]")
    _print_warnings(response.warnings)


def print_no_fix(response: FixResponse):
    tried = ", ".join(response.attempted_layers) or "none"
    console.print(Panel(
        f"[red]No fix found.[/red]\n[dim]Layers tried: {tried}[/dim]",
        title="[bold]🔧 Aethr[/bold]", border_style="red", padding=(0, 1),
    ))
    _print_warnings(response.warnings)


def print_recall_response(response: RecallResponse, query: str = ""):
    """Ranked recall results as a table."""
    if not response.found:
        console.print(f"[dim]No matching commands for \"{escape(query)}\".[/dim]")
        _print_warnings(response.warnings)
        return

    title = f"🔎 Recall: {escape(query)}" if query else "🔎 Recall"
    table = Table(title=title, border_style="blue")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Command", style="bold")
    table.add_column("Source")
    table.add_column("Score", justify="right")
    for i, result in enumerate(response.results, 1):
        style = _SOURCE_STYLES.get(result.source, "white")
        source = f"[{style}]{result.source.value}[/{style}]"
        if result.boosted:
            source += " ⚡"
        table.add_row(str(i), escape(result.command), source, f"{result.score:.2f}")
    console.print(table)

    footer = f"{len(response.results)} result(s) in {response.search_time_ms:.0f}ms"
    if response.context:
        footer += f" · context: {response.context.tag_string()}"
    if response.boosted_count:
        footer += f" · {response.boosted_count} boosted"
    console.print(f"[dim]{footer}[/dim]")
    _print_warnings(response.warnings)


def print_status(status: Dict[str, Any]):
    table = Table(title="📊 Aethr — Status", border_style="blue")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("History entries", f"{status.get('history_count', 0):,}")
    table.add_row("Knowledge base fixes", f"{status.get('brain_count', 0):,}")
    table.add_row("Rules loaded", str(status.get("rule_count", 0)))
    table.add_row("Model fallback", "✅" if status.get("llm_enabled") else "❌")
    table.add_row("History DB", escape(str(status.get("history_db", ""))))
    table.add_row("Knowledge base DB", escape(str(status.get("brain_db", ""))))
    table.add_row("Rules file", escape(str(status.get("rules_path", ""))))
    console.print(table)


def _print_warnings(warnings: List[str]):
    for warning in warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")
