import logging
from typing import Callable, Dict, Iterable, NamedTuple, Optional

from treasury.domain import FilterCriteria, ReportView, Transaction
from treasury.events import REPORT_GENERATED
from treasury.export import ExportError, export_filename, to_excel, to_pdf
from treasury.notifications import Notification
from treasury.reports import build_report, export_rows, period_description
from treasury.session import Session
from treasury.store import REPORTS_GENERATED, read_int

logger = logging.getLogger(__name__)

XLSX = "xlsx"
PDF = "pdf"

MIME_TYPES = {
    XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    PDF: "application/pdf",
}

SUCCESS_MESSAGES = {
    XLSX: Notification("Excel exported", "The detailed report was exported successfully."),
    PDF: Notification("PDF exported", "The detailed report was exported as a PDF document."),
}


class ExportedReport(NamedTuple):
    filename: str
    data: bytes
    mime: str


def write_excel(view, period, exported_at) -> bytes:
    return to_excel(export_rows(view, period, exported_at))


DEFAULT_WRITERS: Dict[str, Callable[..., bytes]] = {
    XLSX: write_excel,
    PDF: to_pdf,
}


class ReportService:
    """Facade over the report aggregation and the export writers.

    writers: mapping of file extension -> function taking (view, period, exported_at) -> bytes.
    A writer signals failure by raising ExportError; nothing is counted then.
    """

    def __init__(
        self,
        session: Session,
        top_n: int = 10,
        writers: Optional[Dict[str, Callable[..., bytes]]] = None,
    ):
        self.session = session
        self.top_n = top_n
        self.writers = dict(DEFAULT_WRITERS if writers is None else writers)

    def view(self, trans: Iterable[Transaction], criteria: FilterCriteria) -> ReportView:
        return build_report(tuple(trans), criteria, self.top_n)

    def export(
        self, fmt: str, trans: Iterable[Transaction], criteria: FilterCriteria
    ) -> ExportedReport:
        if fmt not in self.writers:
            raise ExportError(f"Unsupported export format: {fmt}")

        view = self.view(trans, criteria)
        period = period_description(criteria)
        data = self.writers[fmt](view, period, self.session.clock())

        count = self._count_report()
        logger.info("User %s exported %s report #%d for %s", self.session.user_id, fmt, count, period)
        self.session.bus.publish(REPORT_GENERATED, {"user_id": self.session.user_id, "count": count})
        self.session.notifier.notify(SUCCESS_MESSAGES.get(fmt, Notification("Report exported")))
        return ExportedReport(export_filename(period, fmt), data, MIME_TYPES.get(fmt, "application/octet-stream"))

    def _count_report(self) -> int:
        key = self.session.key(REPORTS_GENERATED)
        count = read_int(self.session.store, key) + 1
        self.session.store.set(key, str(count))
        return count
