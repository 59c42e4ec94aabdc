from datetime import date, datetime
from decimal import Decimal

import pytest

from treasury.domain import INFLOW, OUTFLOW, FilterCriteria, Transaction
from treasury.events import REPORT_GENERATED
from treasury.export import ExportError
from treasury.progression import ProgressionTracker
from treasury.services import PDF, XLSX, ReportService
from treasury.session import Session
from treasury.store import MemoryStore


def make_session():
    return Session("u1", MemoryStore(), clock=lambda: datetime(2024, 3, 1, 9, 30))


def make_transactions():
    return (
        Transaction("t1", date(2024, 1, 5), INFLOW, Decimal("100"), "Offering", "Offerings", "Ana"),
        Transaction("t2", date(2024, 2, 10), OUTFLOW, Decimal("40"), "Electricity", "Utilities", "Carlos"),
    )


def test_view_uses_configured_top_n():
    svc = ReportService(make_session(), top_n=1)
    view = svc.view(list(make_transactions()), FilterCriteria(year=2024))
    assert view.totals.balance == Decimal("60")
    assert [c.name for c in view.top_categories] == ["Offerings"]


def test_export_counts_report_and_notifies():
    session = make_session()
    published = []
    session.bus.subscribe(REPORT_GENERATED, lambda e, p: published.append(p["count"]) or {})
    svc = ReportService(session)

    exported = svc.export(XLSX, make_transactions(), FilterCriteria(year=2024, month=2))

    assert exported.filename == "Detailed_Transactions_February_2024.xlsx"
    assert exported.data[:2] == b"PK"
    assert session.store.get("reports-generated-u1") == "1"
    assert published == [1]
    assert [n.title for n in session.notifier.drain()] == ["Excel exported"]

    svc.export(PDF, make_transactions(), FilterCriteria())
    assert session.store.get("reports-generated-u1") == "2"
    assert published == [1, 2]


def test_export_feeds_progression():
    session = make_session()
    tracker = ProgressionTracker(session)
    tracker.start()
    tracker.subscribe()
    xp_before = tracker.stats.xp

    ReportService(session).export(PDF, make_transactions(), FilterCriteria())

    assert tracker.stats.reports_generated == 1
    assert tracker.stats.xp == xp_before + 15


def test_failed_export_is_not_counted():
    session = make_session()

    def broken_writer(view, period, exported_at):
        raise ExportError("disk full")

    svc = ReportService(session, writers={XLSX: broken_writer})
    with pytest.raises(ExportError):
        svc.export(XLSX, make_transactions(), FilterCriteria())

    assert session.store.get("reports-generated-u1") is None
    assert session.notifier.drain() == []


def test_unknown_format():
    svc = ReportService(make_session())
    with pytest.raises(ExportError):
        svc.export("docx", make_transactions(), FilterCriteria())


def test_injected_writer_receives_period_and_timestamp():
    calls = []

    def writer(view, period, exported_at):
        calls.append((len(view.transactions), period, exported_at))
        return b"ok"

    svc = ReportService(make_session(), writers={"csv": writer})
    exported = svc.export("csv", make_transactions(), FilterCriteria(year=2024))
    assert calls == [(2, "2024", datetime(2024, 3, 1, 9, 30))]
    assert exported.data == b"ok"
    assert exported.mime == "application/octet-stream"
