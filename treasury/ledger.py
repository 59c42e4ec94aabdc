import logging
from typing import Tuple

from treasury.domain import Transaction
from treasury.events import SHEET_MANAGED, TRANSACTIONS_CHANGED
from treasury.session import Session
from treasury.store import TRANSACTIONS, read_json, write_json
from treasury.transforms import (
    add_transaction,
    remove_transaction,
    transaction_from_dict,
    transaction_to_dict,
)

logger = logging.getLogger(__name__)


class TransactionLedger:
    """The signed-in user's transaction list, stored under transacoes-<uid>.

    Every change is written to the store first and then announced on the
    session bus as TRANSACTIONS_CHANGED with the new count.
    """

    def __init__(self, session: Session, seed: Tuple[Transaction, ...] = ()):
        self.session = session
        self.seed = seed

    @property
    def key(self) -> str:
        return self.session.key(TRANSACTIONS)

    def load(self) -> Tuple[Transaction, ...]:
        if self.session.store.get(self.key) is None:
            if self.seed:
                logger.info("Seeding %d transactions for user %s", len(self.seed), self.session.user_id)
                self._write(self.seed)
            return self.seed

        data = read_json(self.session.store, self.key)
        if not isinstance(data, list):
            # unreadable lists are not overwritten, the user may still recover them
            return ()
        try:
            return tuple(transaction_from_dict(d) for d in data)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Invalid transaction under %s, treating list as empty: %s", self.key, exc)
            return ()

    def add(self, t: Transaction) -> Tuple[Transaction, ...]:
        return self._commit(add_transaction(self.load(), t))

    def remove(self, tid: str) -> Tuple[Transaction, ...]:
        return self._commit(remove_transaction(self.load(), tid))

    def import_sheet(self, imported: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
        """Append the rows of an uploaded sheet; the sheet counts as managed."""
        current = self.load()
        known = {t.id for t in current}
        fresh = tuple(t for t in imported if t.id not in known)
        trans = self._commit(current + fresh)
        logger.info("User %s imported %d transactions from a sheet", self.session.user_id, len(fresh))
        self.session.bus.publish(SHEET_MANAGED, {"user_id": self.session.user_id})
        return trans

    def _commit(self, trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
        self._write(trans)
        self.session.bus.publish(
            TRANSACTIONS_CHANGED,
            {"user_id": self.session.user_id, "count": len(trans)},
        )
        return trans

    def _write(self, trans: Tuple[Transaction, ...]) -> None:
        write_json(self.session.store, self.key, [transaction_to_dict(t) for t in trans])
