"""Transaction executors: run chaincode, reserve read/write sets and commit."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Callable, Optional, Protocol, Sequence

from ariachain.chaincode import ChaincodeManager
from ariachain.kvstore import VersionedDB, get_db_instance
from ariachain.pre_reserve_table import TransactionPreReserveTable
from ariachain.transaction import (
    KVRWSet,
    Transaction,
    TransactionDependency,
    TransactionResult,
)

log = logging.getLogger(__name__)


class ReserveTable(Protocol):
    """What an executor needs from a reservation table."""

    def reserve_rwset(self, rwset: KVRWSet, tid: int) -> Any: ...

    def dependency_analysis(self, rwset: KVRWSet, tid: int) -> TransactionDependency: ...


ReserveTableFor = Callable[[int], Optional[ReserveTable]]


class _EpochReserveTables:
    """Hands out one reservation table per epoch, replacing it when the epoch moves on."""

    def __init__(self) -> None:
        self._epoch: Optional[int] = None
        self._table: Optional[TransactionPreReserveTable] = None
        self._lock = threading.Lock()

    def __call__(self, epoch: int) -> TransactionPreReserveTable:
        with self._lock:
            if self._table is None or self._epoch != epoch:
                self._table = TransactionPreReserveTable()
                self._epoch = epoch
            return self._table


class ExecutorType(IntEnum):
    """The kinds of executor that can be made."""

    NORMAL = 0
    AGGREGATE = 1
    QUERY = 2


class TransactionExecutor(ABC):
    """Executes a batch of transactions of one epoch, then commits them."""

    def __init__(
        self,
        db: Optional[VersionedDB] = None,
        reserve_table_for: Optional[ReserveTableFor] = None,
        chaincodes: Optional[ChaincodeManager] = None,
    ) -> None:
        self.db = db if db is not None else get_db_instance()
        self.reserve_table_for: ReserveTableFor = (
            reserve_table_for if reserve_table_for is not None else _EpochReserveTables()
        )
        self.chaincodes = chaincodes
        self.reserve_table: Optional[ReserveTable] = None

    @abstractmethod
    def execute_list(self, transactions: Sequence[Transaction]) -> bool:
        """Run the read phase for ``transactions``."""

    def _fetch_reserve_table(self, epoch: int) -> ReserveTable:
        table = self.reserve_table_for(epoch)
        if table is None:
            raise RuntimeError(f"reserve table not found for epoch {epoch}")
        self.reserve_table = table
        return table

    def _chaincodes(self) -> ChaincodeManager:
        if self.chaincodes is None:
            raise RuntimeError("this executor has no chaincode manager")
        return self.chaincodes

    def commit_list(self, transactions: Sequence[Transaction]) -> bool:
        """Decide and apply each transaction's outcome from its dependencies."""
        if self.reserve_table is None:
            raise RuntimeError("commit_list called before execute_list")
        table = self.reserve_table
        for txn in transactions:
            if txn.result is TransactionResult.ABORT_NO_RETRY:
                self.db.abort_update(txn.tid)
                continue
            dep = table.dependency_analysis(txn.rwset, txn.tid)
            if dep.waw:
                txn.result = TransactionResult.ABORT
            elif not dep.war or not dep.raw:
                try:
                    self.db.commit_update(txn.tid)
                except KeyError:
                    log.error("tx abort with rw set error: %d", txn.tid)
                    txn.result = TransactionResult.ABORT_NO_RETRY
                else:
                    txn.result = TransactionResult.COMMIT
            else:
                self.db.abort_update(txn.tid)
                txn.result = TransactionResult.ABORT
        return True


class NormalExecutor(TransactionExecutor):
    """Runs each transaction's chaincode and reserves its read/write set."""

    def execute_list(self, transactions: Sequence[Transaction]) -> bool:
        if not transactions:
            return False
        table = self._fetch_reserve_table(transactions[0].epoch)
        chaincodes = self._chaincodes()
        for txn in transactions:
            chaincode = chaincodes.create(txn, self.db)
            if not chaincode.invoke_transaction():
                txn.result = TransactionResult.ABORT_NO_RETRY
                continue
            table.reserve_rwset(txn.rwset, txn.tid)
        return True


class AggregationExecutor(TransactionExecutor):
    """Reserves already gathered read/write sets without running chaincode."""

    def execute_list(self, transactions: Sequence[Transaction]) -> bool:
        if not transactions:
            return False
        table = self._fetch_reserve_table(transactions[0].epoch)
        for txn in transactions:
            if txn.result is TransactionResult.ABORT_NO_RETRY:
                continue
            table.reserve_rwset(txn.rwset, txn.tid)
        return True


class QueryExecutor(TransactionExecutor):
    """Runs read-only transactions; it never commits anything."""

    def execute_list(self, transactions: Sequence[Transaction]) -> bool:
        chaincodes = self._chaincodes()
        for txn in transactions:
            if not txn.read_only:
                log.debug("transaction %d is not read-only, abort", txn.tid)
                txn.result = TransactionResult.ABORT_NO_RETRY
                continue
            chaincode = chaincodes.create(txn, self.db)
            if not chaincode.invoke_transaction():
                txn.result = TransactionResult.ABORT_NO_RETRY
                log.debug("read-only transaction %d invoke failed", txn.tid)
                return False
            txn.result = TransactionResult.COMMIT
        return True

    def commit_list(self, transactions: Sequence[Transaction]) -> bool:
        return False


_KINDS = {
    ExecutorType.NORMAL: NormalExecutor,
    ExecutorType.AGGREGATE: AggregationExecutor,
    ExecutorType.QUERY: QueryExecutor,
}


def make_executor(
    kind: ExecutorType,
    db: Optional[VersionedDB] = None,
    reserve_table_for: Optional[ReserveTableFor] = None,
    chaincodes: Optional[ChaincodeManager] = None,
) -> TransactionExecutor:
    """Create an executor of ``kind``; ValueError for an unknown kind."""
    return _KINDS[ExecutorType(kind)](db, reserve_table_for, chaincodes)