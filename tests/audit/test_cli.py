"""Tests for the audit trail CLI."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from approvals.audit.cli import (
    build_parser,
    format_deals_table,
    format_events_table,
    format_json,
    main,
)
from approvals.domain.models import ApprovalEvent, ApprovalToken, Deal, EventMetadata, LineItem
from approvals.domain.types import ApprovalEventType, DealStatus
from approvals.store.schema import close_approval_db, init_approval_db
from approvals.store.store import ApprovalStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """A database holding one deal with a SENT and a VIEWED event."""
    path = tmp_path / "approvals.db"
    conn = init_approval_db(path)
    store = ApprovalStore(conn)
    meta = EventMetadata(ip="10.0.0.1", user_agent="Firefox")
    store.create_deal(
        Deal(
            id="deal-1",
            client_name="Acme",
            currency="EUR",
            total=2000,
            items=[LineItem(description="Day", quantity=2, unit_price=1000)],
            status=DealStatus.SENT,
            created_at=NOW,
            updated_at=NOW,
        ),
        ApprovalToken(
            id="tok-1", deal_id="deal-1", token_hash="a" * 64, expires_at=NOW, created_at=NOW
        ),
        ApprovalEvent(
            id="ev-1", deal_id="deal-1", event_type=ApprovalEventType.SENT, metadata=meta, created_at=NOW
        ),
    )
    store.append_event(
        ApprovalEvent(
            id="ev-2", deal_id="deal-1", event_type=ApprovalEventType.VIEWED, metadata=meta, created_at=NOW
        )
    )
    close_approval_db(conn)
    return path


class TestBuildParser:
    def test_accepts_all_arguments(self) -> None:
        args = build_parser().parse_args(
            ["--deal", "deal-1", "--event-type", "VIEWED", "--format", "json", "--db", "/tmp/x.db"]
        )
        assert args.deal == "deal-1"
        assert args.event_type == "VIEWED"
        assert args.output_format == "json"
        assert args.db == "/tmp/x.db"

    def test_default_values(self) -> None:
        args = build_parser().parse_args([])
        assert args.deal is None
        assert args.output_format == "table"
        assert args.db == "data/approvals.db"

    def test_rejects_unknown_event_type(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--event-type", "DELETED"])


class TestFormatting:
    def test_empty_results(self) -> None:
        assert format_events_table([]) == "No results found."
        assert format_deals_table([]) == "No results found."

    def test_events_table_has_header_and_rows(self) -> None:
        table = format_events_table(
            [
                {
                    "created_at": "2026-03-01T12:00:00Z",
                    "event_type": "SENT",
                    "metadata": {"ip": "10.0.0.1", "user_agent": "x" * 80},
                }
            ]
        )
        lines = table.splitlines()
        assert lines[0].startswith("Timestamp")
        assert "SENT" in lines[2]
        assert "..." in lines[2]

    def test_json(self) -> None:
        assert json.loads(format_json([{"a": 1}])) == [{"a": 1}]


class TestMain:
    def test_prints_audit_trail(self, db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--deal", "deal-1", "--db", str(db_path)])
        out = capsys.readouterr().out
        assert "SENT" in out
        assert "VIEWED" in out
        assert "Firefox" in out

    def test_filters_by_event_type_as_json(
        self, db_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--deal", "deal-1", "--event-type", "VIEWED", "--format", "json", "--db", str(db_path)])
        events = json.loads(capsys.readouterr().out)
        assert [e["event_type"] for e in events] == ["VIEWED"]

    def test_lists_deals_without_deal_id(
        self, db_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--db", str(db_path)])
        out = capsys.readouterr().out
        assert "deal-1" in out
        assert "EUR 20.00" in out

    def test_creates_missing_database(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["--db", str(tmp_path / "new" / "approvals.db")])
        assert capsys.readouterr().out.strip() == "No results found."
