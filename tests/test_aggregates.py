from datetime import date
from decimal import Decimal
from itertools import islice

from treasury.aggregates import (
    category_breakdown,
    monthly_series,
    top_categories,
    totals,
    type_breakdown,
)
from treasury.domain import ALL, INFLOW, OUTFLOW, CategorySlice, FilterCriteria, Transaction
from treasury.filters import filter_transactions


def make_tx(id, ts, kind, amount, category="General"):
    return Transaction(
        id=id,
        date=date.fromisoformat(ts),
        type=kind,
        amount=Decimal(amount),
        description="",
        category=category,
        responsible="",
    )


def test_totals_exact_decimal_balance():
    trans = (
        make_tx("t1", "2024-01-01", INFLOW, "0.10"),
        make_tx("t2", "2024-01-02", INFLOW, "0.20"),
        make_tx("t3", "2024-01-03", OUTFLOW, "0.30"),
    )
    tot = totals(trans)
    assert tot.inflow == Decimal("0.30")
    assert tot.outflow == Decimal("0.30")
    assert tot.balance == Decimal("0.00")
    assert tot.inflow - tot.outflow == tot.balance


def test_totals_empty():
    tot = totals(())
    assert tot.inflow == 0
    assert tot.outflow == 0
    assert tot.balance == 0


def test_category_breakdown_first_occurrence_order_and_last_type():
    trans = (
        make_tx("t1", "2024-01-01", OUTFLOW, "50", "Events"),
        make_tx("t2", "2024-01-02", INFLOW, "10", "Offerings"),
        make_tx("t3", "2024-01-03", INFLOW, "30", "Events"),
    )
    slices = category_breakdown(trans)
    assert [s.name for s in slices] == ["Events", "Offerings"]
    assert slices[0].amount == Decimal("80")
    assert slices[0].type == INFLOW


def test_category_breakdown_is_case_sensitive():
    trans = (
        make_tx("t1", "2024-01-01", OUTFLOW, "5", "food"),
        make_tx("t2", "2024-01-02", OUTFLOW, "5", "Food"),
    )
    assert len(category_breakdown(trans)) == 2


def test_type_breakdown_two_buckets():
    tot = totals((make_tx("t1", "2024-01-01", INFLOW, "12"),))
    inflows, outflows = type_breakdown(tot)
    assert (inflows.name, inflows.amount, inflows.type) == ("Inflows", Decimal("12"), INFLOW)
    assert (outflows.name, outflows.amount, outflows.type) == ("Outflows", Decimal("0"), OUTFLOW)


def test_top_categories_sorted_and_limited():
    slices = tuple(CategorySlice(f"c{i}", Decimal(i), OUTFLOW) for i in range(15))
    top = list(top_categories(slices, 10))
    assert len(top) == 10
    assert top[0].name == "c14"
    assert [s.amount for s in top] == sorted((s.amount for s in top), reverse=True)


def test_top_categories_is_lazy():
    slices = (CategorySlice("a", Decimal(1), INFLOW), CategorySlice("b", Decimal(2), INFLOW))
    gen = top_categories(slices, 10)
    assert next(gen).name == "b"
    assert len(list(islice(gen, 5))) == 1


def test_monthly_series_year_selected_has_twelve_points():
    trans = (
        make_tx("t1", "2024-01-05", INFLOW, "100"),
        make_tx("t2", "2024-02-10", OUTFLOW, "40"),
    )
    series = monthly_series(trans, 2024)
    assert len(series) == 12
    assert [p.label for p in series][:2] == ["January", "February"]
    assert (series[0].inflow, series[0].outflow, series[0].balance) == (100, 0, 100)
    assert (series[1].inflow, series[1].outflow, series[1].balance) == (0, 40, -40)
    assert all(p.inflow == 0 and p.outflow == 0 for p in series[2:])


def test_monthly_series_year_points_sum_to_year_totals():
    trans = (
        make_tx("t1", "2024-03-05", INFLOW, "100.50"),
        make_tx("t2", "2024-03-10", OUTFLOW, "40.25"),
        make_tx("t3", "2024-11-10", OUTFLOW, "9.99"),
        make_tx("t4", "2023-11-10", OUTFLOW, "999"),
    )
    year_trans = filter_transactions(trans, FilterCriteria(year=2024))
    series = monthly_series(year_trans, 2024)
    tot = totals(year_trans)
    assert len(series) == 12
    assert sum(p.inflow for p in series) == tot.inflow
    assert sum(p.outflow for p in series) == tot.outflow
    assert all(p.inflow >= 0 and p.outflow >= 0 for p in series)


def test_monthly_series_year_ignores_other_years():
    trans = (
        make_tx("t1", "2024-01-05", INFLOW, "100"),
        make_tx("t2", "2023-03-10", OUTFLOW, "40"),
        make_tx("t3", "2025-03-10", INFLOW, "7"),
    )
    series = monthly_series(trans, 2024)
    assert len(series) == 12
    assert {p.year for p in series} == {2024}
    assert series[0].inflow == Decimal("100")
    assert sum(p.outflow for p in series) == 0
    assert series[2].inflow == 0


def test_monthly_series_all_years_keeps_years_apart():
    trans = (
        make_tx("t1", "2024-01-05", INFLOW, "100"),
        make_tx("t2", "2023-01-10", OUTFLOW, "40"),
        make_tx("t3", "2023-06-10", OUTFLOW, "5"),
    )
    series = monthly_series(trans, ALL)
    assert [p.label for p in series] == ["January/2023", "June/2023", "January/2024"]
    assert series[0].outflow == Decimal("40")
    assert series[2].inflow == Decimal("100")


def test_monthly_series_all_years_empty():
    assert monthly_series((), ALL) == ()
