"""Chaincodes run by transactions, and the registry that picks one by type."""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, MutableSequence, Optional, Sequence, Tuple, Type

from ariachain.kvstore import VersionedDB, get_db_instance
from ariachain.orm import ORMHelper
from ariachain.rng import Random
from ariachain.transaction import KVWrite, Transaction

log = logging.getLogger(__name__)

_SYS_TABLE = "aria_sys"
_FIELD_SIZE = 10
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _to_int(text: str) -> int:
    """Parse the leading integer of ``text``; 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= (1 << 31) else value


def _decode_args(payload: Any) -> List[Any]:
    """Turn a transaction payload (JSON text or bytes) into an argument list."""
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        if not payload.strip():
            return []
        payload = json.loads(payload)
    if isinstance(payload, (list, tuple)):
        return list(payload)
    return [payload]


def quicksort(data: MutableSequence[int]) -> None:
    """Sort ``data`` in place with a Lomuto-partition quicksort."""
    pending: List[Tuple[int, int]] = [(0, len(data) - 1)]
    while pending:
        start, end = pending.pop()
        if start >= end:
            continue
        pivot = data[end]
        pointer = start
        for i in range(start, end):
            if data[i] < pivot:
                if pointer != i:
                    data[i], data[pointer] = data[pointer], data[i]
                pointer += 1
        data[end], data[pointer] = data[pointer], data[end]
        pending.append((start, pointer - 1))
        pending.append((pointer + 1, end))


class ChaincodeObject(ABC):
    """A chaincode bound to one transaction, recording its reads and writes."""

    def __init__(self, transaction: Transaction, db: Optional[VersionedDB] = None) -> None:
        self.transaction = transaction
        self.transaction_id = transaction.tid
        self.db = db if db is not None else get_db_instance()
        self.helper = ORMHelper(
            transaction.tid, transaction.rwset, self.db, transaction.read_only
        )

    @abstractmethod
    def invoke(self, function: str, args: Sequence[Any]) -> bool:
        """Run chaincode ``function`` with ``args``; False aborts the transaction."""

    def invoke_transaction(self) -> bool:
        """Run the transaction's own call, then buffer its writes."""
        result = self.invoke(self.transaction.header, _decode_args(self.transaction.payload))
        self.helper.execute()
        return result

    def __enter__(self) -> "ChaincodeObject":
        return self

    def __exit__(self, *args: object) -> None:
        self.helper.execute()


class SmallBankChaincode(ChaincodeObject):
    """The SmallBank benchmark: saving and checking balances per account."""

    BALANCE = 1000
    SAVING_TAB = "saving"
    CHECKING_TAB = "checking"
    TABLE = "small_bank"
    accounts = 10_000

    def __init__(self, transaction: Transaction, db: Optional[VersionedDB] = None) -> None:
        super().__init__(transaction, db)
        self._functions: Dict[str, Tuple[Callable[..., bool], int]] = {
            "amalgamate": (self._amalgamate, 2),
            "getBalance": (self._query, 1),
            "updateBalance": (self._update_balance, 2),
            "updateSaving": (self._update_saving, 2),
            "sendPayment": (self._send_payment, 3),
            "writeCheck": (self._write_check, 2),
        }

    def invoke(self, function: str, args: Sequence[Any]) -> bool:
        if function == "create_data":
            return self._init_data()
        try:
            method, arity = self._functions[function]
        except KeyError:
            return False
        if len(args) != arity:
            raise ValueError(f"{function} takes {arity} arguments, got {len(args)}")
        return method(*(str(arg) for arg in args))

    def _get(self, key: str) -> str:
        query = self.helper.new_query(self.TABLE)
        query.filter("key", key)
        results = query.execute()
        if not results.has_next():
            return str(self.BALANCE)
        value = results.get_string("value")
        return value if value else str(self.BALANCE)

    def _put(self, key: str, value: int) -> None:
        insert = self.helper.new_insert(self.TABLE)
        insert.set("key", key)
        insert.set("value", str(value))

    def _saving(self, account: str) -> str:
        return f"{self.SAVING_TAB}_{account}"

    def _checking(self, account: str) -> str:
        return f"{self.CHECKING_TAB}_{account}"

    def _query(self, account: str) -> bool:
        saving = _to_int(self._get(self._saving(account)))
        checking = _to_int(self._get(self._checking(account)))
        log.debug("query account: %s, saving: %d, checking: %d", account, saving, checking)
        return True

    def _amalgamate(self, source: str, dest: str) -> bool:
        if source == dest:
            return False
        src_balance = _to_int(self._get(self._saving(source)))
        dest_balance = _to_int(self._get(self._checking(dest)))
        self._put(self._saving(source), 0)
        self._put(self._checking(dest), dest_balance + src_balance)
        return True

    def _adjust(self, key: str, amount_raw: str) -> bool:
        balance = _to_int(self._get(key))
        amount = _to_int(amount_raw)
        if amount < 0 and balance < -amount:
            return False
        self._put(key, balance + amount)
        return True

    def _update_balance(self, account: str, amount: str) -> bool:
        return self._adjust(self._checking(account), amount)

    def _update_saving(self, account: str, amount: str) -> bool:
        return self._adjust(self._saving(account), amount)

    def _send_payment(self, source: str, dest: str, amount_raw: str) -> bool:
        if source == dest:
            return False
        src_balance = _to_int(self._get(self._checking(source)))
        dest_balance = _to_int(self._get(self._checking(dest)))
        amount = _to_int(amount_raw)
        src_balance -= amount
        if src_balance < 0 or amount < 0:
            return False
        self._put(self._checking(source), src_balance)
        self._put(self._checking(dest), dest_balance + amount)
        return True

    def _write_check(self, account: str, amount_raw: str) -> bool:
        balance = _to_int(self._get(self._checking(account))) - _to_int(amount_raw)
        if balance < 0:
            return False
        self._put(self._checking(account), balance)
        return True

    def _init_data(self) -> bool:
        rng = Random()
        for tab in (self.CHECKING_TAB, self.SAVING_TAB):
            for i in range(self.accounts):
                self._put(f"{tab}_{i}", rng.next_u64() % 100)
        return True


class OrmTestChaincode(ChaincodeObject):
    """Chaincode that exercises the ORM and simulates slow or heavy calls."""

    TABLE = "test_table"
    keys_per_partition = 200_000

    def __init__(self, transaction: Transaction, db: Optional[VersionedDB] = None) -> None:
        super().__init__(transaction, db)
        self.random = Random(self.transaction_id)

    def invoke(self, function: str, args: Sequence[Any]) -> bool:
        if function == "correct_test":
            return self._correct_test(str(args[0]))
        if function == "create_table":
            return self._create_table()
        if function == "create_data":
            return self._create_data()
        if function == "mixed":
            return self._mixed(args[0])
        if function == "time":
            return self._time_consume()
        if function == "calculate":
            return self._calculate_consume()
        return False

    def _create_table(self) -> bool:
        self.transaction.rwset.writes.append(
            KVWrite(_SYS_TABLE, self.TABLE, f"place holder of {self.transaction_id}")
        )
        return True

    def _create_data(self) -> bool:
        for i in range(self.keys_per_partition):
            insert = self.helper.new_insert(self.TABLE)
            insert.set("key", str(i))
            insert.set("value", self.random.a_string(_FIELD_SIZE, _FIELD_SIZE))
        return True

    def _read_all(self, key: str) -> None:
        query = self.helper.new_query(self.TABLE)
        query.filter("key", key)
        results = query.execute()
        while results.has_next():
            log.info(
                "%d READ: (%s, %s)",
                self.transaction_id,
                results.get_string("key"),
                results.get_string("value"),
            )
            results.next()

    def _correct_test(self, key: str) -> bool:
        self._read_all(key)
        value = str(self.transaction_id)
        insert = self.helper.new_insert(self.TABLE)
        insert.set("key", key)
        insert.set("value", value)
        log.info("%d INSERT: (%s, %s)", self.transaction_id, key, value)
        return True

    def _mixed(self, raw: Any) -> bool:
        if isinstance(raw, (bytes, bytearray, str)):
            raw = json.loads(raw)
        if not isinstance(raw, Mapping):
            raise ValueError("mixed expects an object with 'update' and 'reads'")
        for key in raw.get("update", ()):
            insert = self.helper.new_insert(self.TABLE)
            insert.set("key", str(key))
            insert.set(
                "value",
                self.random.a_string(_FIELD_SIZE, _FIELD_SIZE) + str(self.transaction_id),
            )
        for key in raw.get("reads", ()):
            self._read_all(str(key))
        return True

    @staticmethod
    def _time_consume() -> bool:
        time.sleep(0.020)
        return True

    @staticmethod
    def _calculate_consume() -> bool:
        generator = Random(2626345)
        data = [_to_int32(generator.next_u64()) for _ in range(100_000)]
        quicksort(data)
        return True


class ChaincodeManager:
    """Creates chaincode objects of one configured type."""

    _TYPES: Dict[str, Type[ChaincodeObject]] = {
        "small_bank": SmallBankChaincode,
        "test": OrmTestChaincode,
    }

    def __init__(self, cc_type: str) -> None:
        try:
            self._factory = self._TYPES[cc_type]
        except KeyError:
            raise ValueError(
                f"unknown chaincode type {cc_type!r} (support: {', '.join(self._TYPES)})"
            ) from None
        self.cc_type = cc_type

    def create(self, transaction: Transaction, db: Optional[VersionedDB] = None) -> ChaincodeObject:
        """Return a chaincode of the configured type bound to ``transaction``."""
        return self._factory(transaction, db)