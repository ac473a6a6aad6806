"""Terminal output formatting: box layout, colors, width control."""

import shutil
from typing import List

import click

from .diff import CategoryDiff, DiffResult
from .graph import DependencyGraph

MAX_LISTED = 8  # keys shown per section before "... and N more"


def _get_width() -> int:
    try:
        return min(72, shutil.get_terminal_size((72, 24)).columns)
    except OSError:
        return 72


def _wrap(text: str, indent: int = 0, width: int = 72) -> List[str]:
    """Wrap text to width, first line has indent, following lines +2."""
    prefix = " " * indent
    extra = "  "
    lines = []
    rest = text
    first = True
    while rest:
        max_len = width - (indent if first else indent + len(extra))
        if len(rest) <= max_len:
            lines.append(prefix + rest)
            break
        break_at = rest.rfind(" ", 0, max_len + 1)
        if break_at <= 0:
            break_at = max_len
        chunk = rest[:break_at].strip()
        rest = rest[break_at:].strip()
        lines.append(prefix + chunk)
        prefix = " " * indent + extra
        first = False
    return lines


def _short(value) -> str:
    text = "null" if value is None else str(value)
    return text if len(text) <= 40 else text[:37] + "..."


def _category_lines(c: CategoryDiff, width: int) -> List[str]:
    lines = []
    title = c.kind.value.replace("_", " ").upper()
    counts = c.counts
    lines.append(f" {title}  +{counts['added']} -{counts['removed']} ~{counts['modified']}")
    for key in c.added[:MAX_LISTED]:
        for ln in _wrap(f"+ {key}", indent=2, width=width):
            lines.append(click.style(ln, fg="green"))
    for key in c.removed[:MAX_LISTED]:
        for ln in _wrap(f"- {key}", indent=2, width=width):
            lines.append(click.style(ln, fg="red"))
    for m in c.modified[:MAX_LISTED]:
        lines.append(click.style(f"  ~ {m.key}", fg="yellow"))
        for attr, change in m.changes.items():
            detail = f"{attr}: {_short(change.old)} -> {_short(change.new)}"
            for ln in _wrap(detail, indent=6, width=width):
                lines.append(click.style(ln, dim=True))
    hidden = max(0, len(c.added) - MAX_LISTED) + max(0, len(c.removed) - MAX_LISTED)
    hidden += max(0, len(c.modified) - MAX_LISTED)
    if hidden:
        lines.append(click.style(f"  ... and {hidden} more (use --json)", dim=True))
    return lines


def format_diff(result: DiffResult, source_label: str, target_label: str) -> str:
    """Build the human diff output as a single string."""
    width = _get_width()
    lines = []

    lines.append("┌" + "─" * (width - 2) + "┐")
    lines.append(" orgdrift · inventory diff")
    for ln in _wrap(f"{source_label} -> {target_label}", indent=1, width=width):
        lines.append(click.style(ln, dim=True))
    lines.append("─" * width)

    s = result.summary
    totals = f" Changes  +{s.added} added  -{s.removed} removed  ~{s.modified} modified"
    lines.append(click.style(totals, fg="yellow" if result.has_changes else "green"))
    lines.append("─" * width)

    if result.has_changes:
        for c in result.categories:
            if c.has_changes:
                lines.extend(_category_lines(c, width))
    else:
        lines.append(" No drift detected.")

    lines.append("─" * width)
    footer = " Run with --json for machine output  ·  --ci for exit codes"
    if len(footer) > width:
        footer = " --json  ·  --ci  ·  --help"
    lines.append(click.style(footer, dim=True))
    lines.append("└" + "─" * (width - 2) + "┘")
    return "\n".join(lines)


def format_graph(graph: DependencyGraph) -> str:
    """Build the human graph output: counts, load order, cycles."""
    width = _get_width()
    lines = []

    lines.append("┌" + "─" * (width - 2) + "┐")
    lines.append(" orgdrift · dependency graph")
    lines.append("─" * width)
    lines.append(f" {len(graph.nodes)} objects, {len(graph.edges)} relationships")
    lines.append("─" * width)
    if graph.load_order:
        lines.append(" LOAD ORDER")
        for i, name in enumerate(graph.load_order, 1):
            lines.append(f"  {i:>3}. {name}")
    else:
        lines.append(" No objects in inventory.")
    cyclic = graph.load_cyclic()
    if cyclic:
        lines.append("─" * width)
        lines.append(click.style(" UNRESOLVED (cyclic dependencies)", fg="yellow"))
        for ln in _wrap(", ".join(cyclic), indent=2, width=width):
            lines.append(click.style(ln, fg="yellow", dim=True))
    lines.append("└" + "─" * (width - 2) + "┘")
    return "\n".join(lines)
