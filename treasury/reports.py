from datetime import datetime
from decimal import Decimal
from functools import lru_cache

from treasury.aggregates import (
    category_breakdown,
    monthly_series,
    top_categories,
    totals,
    type_breakdown,
)
from treasury.domain import ALL, INFLOW, MONTH_NAMES, FilterCriteria, ReportView, Transaction
from treasury.filters import filter_transactions

REPORT_TITLE = "DETAILED TRANSACTION REPORT - TREASURY"
TABLE_HEADER = ("Date", "Type", "Amount", "Description", "Category", "Responsible", "Notes")


@lru_cache(maxsize=32)
def build_report(
    trans: tuple[Transaction, ...], criteria: FilterCriteria, top_n: int = 10
) -> ReportView:
    filtered = filter_transactions(trans, criteria)
    tot = totals(filtered)
    cats = category_breakdown(filtered)
    return ReportView(
        transactions=filtered,
        totals=tot,
        categories=cats,
        types=type_breakdown(tot),
        top_categories=tuple(top_categories(cats, top_n)),
        monthly=monthly_series(filtered, criteria.year),
    )


def period_description(criteria: FilterCriteria) -> str:
    if criteria.start_date and criteria.end_date:
        return (
            f"{criteria.start_date.strftime('%d/%m/%Y')} to "
            f"{criteria.end_date.strftime('%d/%m/%Y')}"
        )
    if criteria.month != ALL and criteria.year != ALL:
        return f"{MONTH_NAMES[int(criteria.month) - 1]}/{criteria.year}"
    if criteria.month != ALL:
        return MONTH_NAMES[int(criteria.month) - 1]
    if criteria.year != ALL:
        return str(criteria.year)
    return "All periods"


def format_currency(value: Decimal) -> str:
    """Format an amount the Brazilian way, e.g. R$ 1.234,56."""
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{sign}R$ {text}"


def type_label(kind: str) -> str:
    return "Inflow" if kind == INFLOW else "Outflow"


def transaction_row(t: Transaction) -> list:
    return [
        t.date.strftime("%d/%m/%Y"),
        type_label(t.type),
        str(t.amount),
        t.description,
        t.category,
        t.responsible,
        t.notes or "",
    ]


def export_rows(view: ReportView, period: str, exported_at: datetime) -> list[list]:
    """Row/column data of an exported report: header block, summary, detail table."""
    rows: list[list] = [
        [REPORT_TITLE],
        [""],
        ["Period:", period],
        ["Exported at:", exported_at.strftime("%d/%m/%Y %H:%M")],
        [""],
        ["FINANCIAL SUMMARY"],
        [""],
        ["Total inflows", format_currency(view.totals.inflow)],
        ["Total outflows", format_currency(view.totals.outflow)],
        ["Balance", format_currency(view.totals.balance)],
        [""],
        ["DETAILED TRANSACTIONS"],
        [""],
        list(TABLE_HEADER),
    ]
    rows.extend(transaction_row(t) for t in view.transactions)
    return rows
