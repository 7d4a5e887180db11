"""Audit trail CLI for inspecting deals and their approval events."""

from approvals.audit.cli import (
    build_parser,
    format_deals_table,
    format_events_table,
    format_json,
)

__all__ = [
    "build_parser",
    "format_deals_table",
    "format_events_table",
    "format_json",
]
