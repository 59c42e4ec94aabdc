import json
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Tuple

from treasury.domain import INFLOW, OUTFLOW, TRANSACTION_TYPES, Transaction


def _text(value) -> str:
    return "" if value is None else str(value)


def _sheet_id(value) -> str:
    # pandas turns an id column with blanks into floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def transaction_from_dict(d: dict) -> Transaction:
    kind = d.get("type")
    if kind not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type: {kind!r}")
    try:
        amount = Decimal(str(d["amount"]))
    except (InvalidOperation, KeyError) as exc:
        raise ValueError(f"Invalid amount in transaction {d.get('id')!r}") from exc
    if amount < 0:
        raise ValueError(f"Negative amount in transaction {d.get('id')!r}")
    raw_date = d.get("date")
    ts = raw_date if isinstance(raw_date, date) else date.fromisoformat(str(raw_date)[:10])
    return Transaction(
        id=str(d["id"]),
        date=ts,
        type=kind,
        amount=amount,
        description=_text(d.get("description")),
        category=_text(d.get("category")),
        responsible=_text(d.get("responsible")),
        notes=_text(d.get("notes")),
    )


def transaction_to_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "date": t.date.isoformat(),
        "type": t.type,
        "amount": str(t.amount),
        "description": t.description,
        "category": t.category,
        "responsible": t.responsible,
        "notes": t.notes,
    }


def load_seed(path: str) -> Tuple[Transaction, ...]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return tuple(transaction_from_dict(t) for t in data["transactions"])


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def remove_transaction(
    trans: Tuple[Transaction, ...], tid: str
) -> Tuple[Transaction, ...]:
    return tuple(t for t in trans if t.id != tid)


def inflow_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == INFLOW, trans))


def outflow_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == OUTFLOW, trans))


def available_years(trans: Tuple[Transaction, ...]) -> Tuple[int, ...]:
    return tuple(sorted({t.date.year for t in trans}))


def transactions_from_frame(df, id_prefix: str = "sheet") -> Tuple[Transaction, ...]:
    """Read a spreadsheet of transactions, one per row.

    Column names are matched case-insensitively; rows without an id get
    ``<id_prefix>-<row number>``.
    """
    frame = df.rename(columns=lambda c: str(c).strip().lower())
    missing = [c for c in ("date", "type", "amount") if c not in frame.columns]
    if missing:
        raise ValueError(f"Sheet is missing columns: {', '.join(missing)}")

    out = []
    for pos, row in enumerate(frame.to_dict("records"), start=1):
        record = {k: ("" if v is None or v != v else v) for k, v in row.items()}  # NaN -> ""
        raw_id = record.get("id", "")
        record["id"] = _sheet_id(raw_id) if raw_id != "" else f"{id_prefix}-{pos}"
        record["type"] = str(record["type"]).strip().lower()
        raw_date = record["date"]
        if hasattr(raw_date, "date"):
            record["date"] = raw_date.date()
        out.append(transaction_from_dict(record))
    return tuple(out)
