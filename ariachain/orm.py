"""A minimal ORM that records every read and write of a chaincode call."""

from __future__ import annotations

from typing import List, Optional, Set

from ariachain.kvstore import HashMapStorage, VersionedDB
from ariachain.transaction import KVRead, KVRWSet, KVWrite


class ResultsIterator:
    """The single-row result of a key lookup.

    Reading a column records the row's key in the read set once.
    """

    def __init__(
        self,
        key: str,
        value: str,
        rwset: Optional[KVRWSet] = None,
        table: str = "",
    ) -> None:
        self.key = key
        self.value = value
        self.rwset = rwset
        self.table = table
        self._index = 0
        self._read_keys: Set[str] = set()

    def has_next(self) -> bool:
        """Return True while the row has not been stepped past."""
        return self._index < 1

    def next(self) -> bool:
        """Step past the current row; return False if already exhausted."""
        if self.has_next():
            self._index += 1
            return True
        return False

    def get_string(self, attr: str) -> str:
        """Return the key for ``attr == "key"``, otherwise the value."""
        if self.key not in self._read_keys and self.rwset is not None:
            self.rwset.reads.append(KVRead(self.table, self.key, self.value))
            self._read_keys.add(self.key)
        if attr == "key":
            return self.key
        return self.value


class Query:
    """Looks up one key of a table."""

    def __init__(self, table: str, storage: HashMapStorage, rwset: KVRWSet) -> None:
        self.table = table
        self.storage = storage
        self.rwset = rwset
        self._col = ""
        self.results: Optional[ResultsIterator] = None

    def filter(self, attr: str, value: str) -> None:
        """Select the row whose key equals ``value``."""
        self._col = value

    def execute(self) -> ResultsIterator:
        """Run the lookup and return its result."""
        value = self.storage.select(self._col, self.table)
        self.results = ResultsIterator(self._col, value, self.rwset, self.table)
        return self.results


class Insert:
    """Writes one row of a table into the write set."""

    def __init__(self, table: str, rwset: KVRWSet) -> None:
        self.table = table
        self.rwset = rwset
        self.key = ""

    def set(self, attr: str, value: object) -> bool:
        """Set the ``key`` or ``value`` column; setting the value records the write.

        Only string values are supported; anything else returns False, as does
        an unknown column. Writing a key twice raises ValueError.
        """
        if not isinstance(value, str):
            return False
        if attr == "key":
            self.key = value
            return True
        if attr == "value":
            if any(write.key == self.key for write in self.rwset.writes):
                raise ValueError(f"duplicate write of key {self.key!r}")
            self.rwset.writes.append(KVWrite(self.table, self.key, value))
            return True
        return False


class ORMHelper:
    """Creates queries and inserts for one transaction and buffers its writes."""

    def __init__(
        self,
        tid: int,
        rwset: KVRWSet,
        db: VersionedDB,
        read_only: bool = False,
    ) -> None:
        if rwset.reads or rwset.writes:
            raise ValueError("read/write set must start empty")
        self.tid = tid
        self.rwset = rwset
        self.db = db
        self.read_only = read_only
        self.queries: List[Query] = []
        self.inserts: List[Insert] = []

    def new_query(self, table: str) -> Query:
        """Return a new query on ``table``."""
        query = Query(table, self.db.storage, self.rwset)
        self.queries.append(query)
        return query

    def new_insert(self, table: str) -> Insert:
        """Return a new insert into ``table``."""
        insert = Insert(table, self.rwset)
        self.inserts.append(insert)
        return insert

    def execute(self) -> bool:
        """Buffer the gathered writes unless the transaction is read-only."""
        if self.read_only:
            return True
        return self.db.buffer_updates(self.tid, self.rwset)

    def __enter__(self) -> "ORMHelper":
        return self

    def __exit__(self, *args: object) -> None:
        self.execute()