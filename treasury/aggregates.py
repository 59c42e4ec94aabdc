from decimal import Decimal
from typing import Iterable, Iterator, Union

from treasury.domain import (
    ALL,
    INFLOW,
    MONTH_NAMES,
    OUTFLOW,
    CategorySlice,
    MonthlyPoint,
    Totals,
    Transaction,
    TypeSlice,
)

ZERO = Decimal("0")


def totals(trans: Iterable[Transaction]) -> Totals:
    inflow = ZERO
    outflow = ZERO
    for t in trans:
        if t.type == INFLOW:
            inflow += t.amount
        elif t.type == OUTFLOW:
            outflow += t.amount
    return Totals(inflow=inflow, outflow=outflow)


def category_breakdown(trans: Iterable[Transaction]) -> tuple[CategorySlice, ...]:
    """Sum amounts per category, in order of first appearance.

    Each slice carries the type of the last transaction seen for its
    category, so a category mixing inflows and outflows is colored by
    whichever came last.
    """
    groups: dict[str, tuple[Decimal, str]] = {}
    for t in trans:
        amount, _ = groups.get(t.category, (ZERO, t.type))
        groups[t.category] = (amount + t.amount, t.type)
    return tuple(
        CategorySlice(name=name, amount=amount, type=kind)
        for name, (amount, kind) in groups.items()
    )


def type_breakdown(tot: Totals) -> tuple[TypeSlice, TypeSlice]:
    return (
        TypeSlice(name="Inflows", amount=tot.inflow, type=INFLOW),
        TypeSlice(name="Outflows", amount=tot.outflow, type=OUTFLOW),
    )


def top_categories(slices: Iterable[CategorySlice], k: int = 10) -> Iterator[CategorySlice]:
    ordered = sorted(slices, key=lambda s: s.amount, reverse=True)
    for s in ordered[: max(0, k)]:
        yield s


def month_label(year: int, month: int, with_year: bool) -> str:
    name = MONTH_NAMES[month - 1]
    return f"{name}/{year}" if with_year else name


def monthly_series(
    trans: Iterable[Transaction], year: Union[int, str] = ALL
) -> tuple[MonthlyPoint, ...]:
    """Inflow/outflow sums per calendar month.

    With a specific year every month of that year is present, zero-filled.
    Otherwise only observed (year, month) pairs appear, in chronological
    order, so equal month names from different years stay separate.
    """
    sums: dict[tuple[int, int], list[Decimal]] = {}
    if year != ALL:
        for month in range(1, 13):
            sums[(int(year), month)] = [ZERO, ZERO]

    for t in trans:
        if year != ALL and t.date.year != int(year):
            continue
        bucket = sums.setdefault((t.date.year, t.date.month), [ZERO, ZERO])
        if t.type == INFLOW:
            bucket[0] += t.amount
        else:
            bucket[1] += t.amount

    with_year = year == ALL
    return tuple(
        MonthlyPoint(
            label=month_label(y, m, with_year),
            year=y,
            month=m,
            inflow=inflow,
            outflow=outflow,
        )
        for (y, m), (inflow, outflow) in sorted(sums.items())
    )
