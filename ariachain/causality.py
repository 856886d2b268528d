"""Causal links between transactions of one batch."""

from __future__ import annotations

from typing import Dict, List, Sequence

from ariachain.transaction import Transaction, TransactionResult


class TransactionCausalityJudge:
    """Decides whether a transaction may stand given how its causes ended.

    Transaction ``b`` is taken as a cause of ``a`` when their ids share no bits.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._causes: Dict[int, List[Transaction]] = {}

    def set_causality(self, transactions: Sequence[Transaction]) -> None:
        """Record the causes of every transaction in ``transactions``."""
        if not self.enabled:
            return
        for txn in transactions:
            self._causes[txn.tid] = [
                other for other in transactions if txn.tid & other.tid == 0
            ]

    def judge(self, txn: Transaction) -> bool:
        """Return False if any recorded cause of ``txn`` aborted without retry."""
        return all(
            cause.result is not TransactionResult.ABORT_NO_RETRY
            for cause in self._causes.get(txn.tid, ())
        )