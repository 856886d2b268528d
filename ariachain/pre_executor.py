"""Pre-execution of a batch to filter out transactions bound to conflict."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ariachain.causality import TransactionCausalityJudge
from ariachain.chaincode import ChaincodeManager
from ariachain.kvstore import VersionedDB, get_db_instance
from ariachain.pre_reserve_table import TransactionPreReserveTable
from ariachain.transaction import Transaction, TransactionResult


class TransactionPreExecutor:
    """Simulates transactions read-only, then keeps those free of conflicts."""

    def __init__(
        self,
        db: Optional[VersionedDB] = None,
        chaincodes: Optional[ChaincodeManager] = None,
        pre_execute: bool = True,
        judge_causality: bool = False,
    ) -> None:
        self.db = db if db is not None else get_db_instance()
        self.chaincodes = chaincodes
        self.pre_execute_enabled = pre_execute
        self.judge_causality_enabled = judge_causality
        self.pre_reserve_table = TransactionPreReserveTable()
        self.causality_judge = TransactionCausalityJudge(judge_causality)

    def pre_execute(self, transactions: Sequence[Transaction]) -> bool:
        """Run every transaction read-only and reserve what it touched."""
        if self.chaincodes is None:
            raise RuntimeError("pre-execution needs a chaincode manager")
        for txn in transactions:
            txn.read_only = True
            chaincode = self.chaincodes.create(txn, self.db)
            if not chaincode.invoke_transaction():
                txn.result = TransactionResult.ABORT_NO_PRE
            self.pre_reserve_table.reserve_rwset(txn.rwset, txn.tid)
        return True

    def dependency_analyse(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """Return the transactions worth running, reset for real execution."""
        kept: List[Transaction] = []
        for txn in transactions:
            if txn.result is TransactionResult.ABORT_NO_PRE:
                continue
            dep = self.pre_reserve_table.dependency_analysis(txn.rwset, txn.tid)
            if dep.waw or (dep.war and dep.raw):
                continue
            txn.reset_rwset()
            txn.read_only = False
            kept.append(txn)
        return kept

    def set_causality(self, transactions: Sequence[Transaction]) -> bool:
        """Record causal links of the batch; False when disabled or empty."""
        if not self.pre_execute_enabled or not self.judge_causality_enabled:
            return False
        if not transactions:
            return False
        self.causality_judge.set_causality(transactions)
        return True

    def judge_causality(self, txn: Transaction) -> bool:
        """Return True only when judging is enabled and no cause of ``txn`` failed."""
        return self.judge_causality_enabled and self.causality_judge.judge(txn)