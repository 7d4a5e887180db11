"""CLI query interface for the deal approval audit trail.

Prints the chronological audit trail of one deal, optionally filtered by
event type, or the deal list when no deal is given. Output formats: table
(default) or JSON.

Usage::

    python -m approvals.audit.cli --deal 3f2c... --format json
    python -m approvals.audit.cli --deal 3f2c... --event-type VIEWED
    python -m approvals.audit.cli
"""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from approvals.domain.types import ApprovalEventType
from approvals.store.schema import close_approval_db, init_approval_db
from approvals.store.store import ApprovalStore


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for audit trail queries.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(description="Query the deal approval audit trail")

    parser.add_argument(
        "--deal",
        type=str,
        help="Deal ID whose audit trail to print (omit to list deals)",
    )
    parser.add_argument(
        "--event-type",
        type=str,
        choices=[event.value for event in ApprovalEventType],
        help="Filter the audit trail by event type",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--db",
        type=str,
        default="data/approvals.db",
        help="Path to approval database (default: data/approvals.db)",
    )

    return parser


def _truncate(value: Any, width: int) -> str:
    s = str(value if value is not None else "")
    if len(s) > width:
        return s[: width - 3] + "..."
    return s


def _format_rows(rows: list[list[Any]], headers: list[str], widths: list[int]) -> str:
    lines: list[str] = []

    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True))
    lines.append(header_line)
    lines.append("-" * len(header_line))

    for row in rows:
        cells = [_truncate(value, width) for value, width in zip(row, widths, strict=True)]
        lines.append("  ".join(c.ljust(w) for c, w in zip(cells, widths, strict=True)))

    return "\n".join(lines)


def format_events_table(events: list[dict[str, Any]]) -> str:
    """Format audit events as a human-readable table.

    Columns: Timestamp, Event, IP, User-Agent.

    Args:
        events: Audit events as dicts (``ApprovalEvent.model_dump(mode="json")``).

    Returns:
        Formatted table string with header row.
    """
    if not events:
        return "No results found."

    rows = []
    for event in events:
        metadata = event.get("metadata") or {}
        rows.append(
            [
                event.get("created_at"),
                event.get("event_type"),
                metadata.get("ip"),
                metadata.get("user_agent"),
            ]
        )
    return _format_rows(rows, ["Timestamp", "Event", "IP", "User-Agent"], [32, 10, 18, 40])


def format_deals_table(deals: list[dict[str, Any]]) -> str:
    """Format deals as a human-readable table.

    Columns: Created, Deal ID, Client, Total, Status.
    """
    if not deals:
        return "No results found."

    rows = [
        [
            deal.get("created_at"),
            deal.get("id"),
            deal.get("client_name"),
            f"{deal.get('currency')} {deal.get('total', 0) / 100:.2f}",
            deal.get("status"),
        ]
        for deal in deals
    ]
    return _format_rows(
        rows, ["Created", "Deal ID", "Client", "Total", "Status"], [32, 36, 24, 14, 10]
    )


def format_json(results: list[dict[str, Any]]) -> str:
    """Format results as a pretty-printed JSON string."""
    return json.dumps(results, indent=2)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments, query the approval database, and print results."""
    parser = build_parser()
    args = parser.parse_args(argv)

    db_path = Path(args.db)
    if not db_path.exists():
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = init_approval_db(db_path)

    try:
        store = ApprovalStore(conn)
        if args.deal:
            events = store.list_events(args.deal)
            if args.event_type:
                events = [e for e in events if e.event_type == args.event_type]
            results = [event.model_dump(mode="json") for event in events]
            formatter = format_events_table
        else:
            results = [deal.model_dump(mode="json") for deal in store.list_deals()]
            formatter = format_deals_table

        output = format_json(results) if args.output_format == "json" else formatter(results)

        print(output)
    finally:
        close_approval_db(conn)


if __name__ == "__main__":
    main()
