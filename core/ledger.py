"""Peer-to-peer debt ledger with automatic net settlement."""

import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.storage import InMemoryStore, KeyValueStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_KEY = "blackjack_ledger_v2"

# Edges at or below this are treated as settled
EPSILON = Decimal("0.001")
# Edges at or below this are hidden from get_debts()
DISPLAY_THRESHOLD = Decimal("0.01")

Amount = Decimal | int | float | str


def to_decimal(amount: Amount) -> Decimal:
    """Convert a money amount to Decimal without float artifacts."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


@dataclass(frozen=True)
class Debt:
    """``debtor`` owes ``creditor`` ``amount``."""

    debtor: str
    creditor: str
    amount: Decimal


class DebtLedger:
    """
    Directed graph of who owes whom.

    At most one edge exists between any two players: a transfer first
    cancels against any debt running the other way, so the ledger only ever
    holds the net position of each pair.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        key: str = DEFAULT_LEDGER_KEY,
    ) -> None:
        """
        Load the ledger from a store.

        Args:
            store: Persistence backend (in-memory if not provided)
            key: Key the debt graph is stored under
        """
        self._store = store or InMemoryStore()
        self._key = key
        # debtor -> creditor -> amount
        self._debts: dict[str, dict[str, Decimal]] = {}
        self._load()

    def record_transfer(self, debtor: str, creditor: str, amount: Amount) -> bool:
        """
        Record that ``debtor`` owes ``creditor`` an additional ``amount``.

        Non-positive amounts and self-transfers are ignored.

        Returns:
            True if the ledger changed
        """
        value = to_decimal(amount)
        if value <= 0 or debtor == creditor:
            return False
        self._net(debtor, creditor, value)
        self._save()
        return True

    def _net(self, debtor: str, creditor: str, value: Decimal) -> None:
        """Cancel ``value`` against the reverse edge, then add any remainder."""
        reverse = self.get_debt(creditor, debtor)
        if reverse > 0:
            if reverse >= value:
                self._set_debt(creditor, debtor, reverse - value)
                return
            self._set_debt(creditor, debtor, Decimal("0"))
            value -= reverse

        self._set_debt(debtor, creditor, self.get_debt(debtor, creditor) + value)

    def get_debt(self, debtor: str, creditor: str) -> Decimal:
        """Amount ``debtor`` currently owes ``creditor``."""
        return self._debts.get(debtor, {}).get(creditor, Decimal("0"))

    def _set_debt(self, debtor: str, creditor: str, amount: Decimal) -> None:
        creditors = self._debts.setdefault(debtor, {})
        if amount <= EPSILON:
            creditors.pop(creditor, None)
            if not creditors:
                del self._debts[debtor]
        else:
            creditors[creditor] = amount

    def get_net_balance(self, player_id: str) -> Decimal:
        """What others owe this player minus what this player owes others."""
        balance = Decimal("0")
        for creditors in self._debts.values():
            balance += creditors.get(player_id, Decimal("0"))
        for amount in self._debts.get(player_id, {}).values():
            balance -= amount
        return balance

    def get_debts(self) -> list[Debt]:
        """Snapshot of all visible debts, rounded to cents. Order is not guaranteed."""
        return [
            Debt(
                debtor=debtor,
                creditor=creditor,
                amount=amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            )
            for debtor, creditors in self._debts.items()
            for creditor, amount in creditors.items()
            if amount > DISPLAY_THRESHOLD
        ]

    def reset(self) -> None:
        """Clear all debts."""
        self._debts.clear()
        self._save()

    def to_records(self) -> list[list]:
        """Serializable form: ``[[debtor, [[creditor, amount], ...]], ...]``."""
        return [
            [debtor, [[creditor, float(amount)] for creditor, amount in creditors.items()]]
            for debtor, creditors in self._debts.items()
        ]

    def _replay(self, records: list) -> None:
        """Rebuild the graph from stored records, netting opposing edges."""
        self._debts = {}
        for debtor, creditors in records:
            for creditor, amount in creditors:
                value = to_decimal(amount)
                if value > 0 and str(debtor) != str(creditor):
                    self._net(str(debtor), str(creditor), value)

    def _save(self) -> None:
        try:
            self._store.set(self._key, json.dumps(self.to_records()))
        except StorageError as exc:
            logger.error("Failed to save ledger: %s", exc)

    def _load(self) -> None:
        try:
            data = self._store.get(self._key)
        except StorageError as exc:
            logger.warning("Failed to load ledger: %s", exc)
            return
        if not data:
            return
        try:
            self._replay(json.loads(data))
        except (ValueError, TypeError, InvalidOperation) as exc:
            logger.warning("Failed to load ledger, starting empty: %s", exc)
            self._debts = {}
