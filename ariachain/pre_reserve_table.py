"""Reservation table used to pre-screen transactions for conflicts."""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import DefaultDict, Dict, Iterable, Tuple

from ariachain.transaction import KVRWSet, TransactionDependency

_Table = DefaultDict[str, Dict[str, int]]


class TransactionPreReserveTable:
    """Remembers, per table and key, the lowest transaction id that read or wrote it.

    An id of 0 means no reservation.
    """

    def __init__(self) -> None:
        self._reads: _Table = defaultdict(dict)
        self._writes: _Table = defaultdict(dict)
        self._lock = threading.Lock()

    @staticmethod
    def _reserve(table: _Table, items: Iterable[Tuple[str, str]], tid: int) -> None:
        for table_name, key in items:
            slot = table[table_name]
            current = slot.get(key, 0)
            if current == 0 or current > tid:
                slot[key] = tid

    def reserve_rwset(self, rwset: KVRWSet, tid: int) -> bool:
        """Reserve every key in ``rwset`` for ``tid`` unless a lower id holds it."""
        with self._lock:
            self._reserve(self._reads, ((r.table, r.key) for r in rwset.reads), tid)
            self._reserve(self._writes, ((w.table, w.key) for w in rwset.writes), tid)
        return True

    @staticmethod
    def _conflicts(table: _Table, items: Iterable[Tuple[str, str]], tid: int) -> bool:
        for table_name, key in items:
            holder = table[table_name].get(key, 0)
            if holder != 0 and holder < tid:
                return True
        return False

    def dependency_analysis(self, rwset: KVRWSet, tid: int) -> TransactionDependency:
        """Report conflicts of ``rwset`` with reservations held by lower ids."""
        writes = [(w.table, w.key) for w in rwset.writes]
        reads = [(r.table, r.key) for r in rwset.reads]
        with self._lock:
            return TransactionDependency(
                waw=self._conflicts(self._writes, writes, tid),
                war=self._conflicts(self._reads, writes, tid),
                raw=self._conflicts(self._writes, reads, tid),
            )