from datetime import date
from typing import Callable, Iterable, Optional, Union

from treasury.domain import ALL, FilterCriteria, Transaction

Predicate = Callable[[Transaction], bool]


def by_year(year: Union[int, str]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return year == ALL or t.date.year == int(year)

    return _filter


def by_month(month: Union[int, str]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return month == ALL or t.date.month == int(month)

    return _filter


def by_date_range(start: Optional[date], end: Optional[date]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        if start is not None and t.date < start:
            return False
        if end is not None and t.date > end:
            return False
        return True

    return _filter


def by_search(text: Optional[str]) -> Predicate:
    needle = (text or "").lower()

    def _filter(t: Transaction) -> bool:
        if not needle:
            return True
        return (
            needle in t.description.lower()
            or needle in t.category.lower()
            or needle in t.responsible.lower()
        )

    return _filter


def predicates_for(criteria: FilterCriteria) -> tuple[Predicate, ...]:
    return (
        by_year(criteria.year),
        by_month(criteria.month),
        by_date_range(criteria.start_date, criteria.end_date),
        by_search(criteria.search_text),
    )


def filter_transactions(
    trans: Iterable[Transaction], criteria: FilterCriteria
) -> tuple[Transaction, ...]:
    """Return the transactions matching every criterion, most recent first.

    Transactions sharing a date keep their original relative order.
    """
    preds = predicates_for(criteria)
    matched = [t for t in trans if all(p(t) for p in preds)]
    # sorted() is stable with reverse=True as well
    return tuple(sorted(matched, key=lambda t: t.date, reverse=True))
