import asyncio
from typing import Dict, Iterable, List

from treasury.aggregates import totals
from treasury.domain import FilterCriteria, Totals, Transaction
from treasury.filters import filter_transactions


async def yearly_totals(trans: Iterable[Transaction], years: List[int]) -> Dict[int, Totals]:
    """Compute inflow/outflow totals for each year concurrently.

    Years without transactions map to zero totals.
    """
    snapshot = tuple(trans)

    async def year_totals(year: int) -> tuple[int, Totals]:
        subset = filter_transactions(snapshot, FilterCriteria(year=year))
        await asyncio.sleep(0)  # cooperate
        return year, totals(subset)

    results = await asyncio.gather(*(year_totals(y) for y in years))
    return {k: v for k, v in results}
