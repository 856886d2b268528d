"""Transactions, their read/write sets and the dependency flags derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class TransactionResult(IntEnum):
    """Outcome of a transaction within an epoch."""

    PENDING = 0
    COMMIT = 1
    ABORT = 2
    ABORT_NO_RETRY = 3
    ABORT_NO_PRE = 4


@dataclass
class KVRead:
    """A key read by a transaction."""

    table: str
    key: str
    value: str = ""


@dataclass
class KVWrite:
    """A key written (or deleted) by a transaction."""

    table: str
    key: str
    value: str = ""
    is_delete: bool = False


@dataclass
class KVRWSet:
    """The reads and writes gathered while a transaction runs."""

    reads: List[KVRead] = field(default_factory=list)
    writes: List[KVWrite] = field(default_factory=list)

    def clear(self) -> None:
        """Forget every read and write."""
        self.reads.clear()
        self.writes.clear()


@dataclass
class TransactionDependency:
    """Conflicts found for a transaction against lower transaction ids."""

    waw: bool = False
    war: bool = False
    raw: bool = False


@dataclass(eq=False)
class Transaction:
    """A unit of work: the chaincode call it makes and what it did."""

    tid: int
    epoch: int = 0
    header: str = ""
    payload: bytes = b""
    read_only: bool = False
    result: TransactionResult = TransactionResult.PENDING
    rwset: KVRWSet = field(default_factory=KVRWSet)

    def reset_rwset(self) -> None:
        """Drop the gathered read/write set so the transaction can run again."""
        self.rwset = KVRWSet()

    def reset(self) -> None:
        """Return the transaction to its unexecuted state, epoch 0."""
        self.reset_rwset()
        self.epoch = 0
        self.result = TransactionResult.PENDING