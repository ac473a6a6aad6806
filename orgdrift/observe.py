"""Logging hooks attached to graph and diff results by the caller. The algorithms never log."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .diff import DiffResult
from .graph import DependencyGraph

logger = logging.getLogger("orgdrift")

REDACTED = "[REDACTED]"
SENSITIVE_KEYS = frozenset({"access_token", "accesstoken", "token", "password", "secret"})


# LogRecord attributes; `extra` may not overwrite them
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def redact(context: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of `context` with credential-like keys masked and record-attribute clashes prefixed."""
    out: dict[str, Any] = {}
    for k, v in context.items():
        key = f"ctx_{k}" if k in _RESERVED else k
        out[key] = REDACTED if k.lower() in SENSITIVE_KEYS else v
    return out


def log_graph(graph: DependencyGraph, log: logging.Logger | None = None, **context: Any) -> None:
    log = log or logger
    cyclic = graph.cyclic()
    extra = redact(context)
    extra.update(nodes=len(graph.nodes), edges=len(graph.edges), order=len(graph.order), cyclic=len(cyclic))
    log.info(
        "Dependency graph built: %d nodes, %d edges, %d ordered",
        len(graph.nodes),
        len(graph.edges),
        len(graph.order),
        extra=extra,
    )
    if cyclic:
        log.warning("Unresolved dependency cycle among: %s", ", ".join(cyclic), extra=extra)


def log_diff(result: DiffResult, log: logging.Logger | None = None, **context: Any) -> None:
    log = log or logger
    s = result.summary
    extra = redact(context)
    extra.update(has_changes=result.has_changes, added=s.added, removed=s.removed, modified=s.modified)
    log.info(
        "Scan diff completed: %d added, %d removed, %d modified",
        s.added,
        s.removed,
        s.modified,
        extra=extra,
    )
    for c in result.categories:
        if c.has_changes:
            log.debug("%s: %s", c.kind.value, c.counts, extra=extra)


def configure_logging(verbose: bool = False) -> None:
    """stderr logging for the CLI: DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
