import json
import string

import pytest

from ariachain.chaincode import (
    ChaincodeManager,
    OrmTestChaincode,
    SmallBankChaincode,
    quicksort,
)
from ariachain.kvstore import HashMapStorage, VersionedDB
from ariachain.transaction import KVRead, KVWrite, Transaction


@pytest.fixture
def db():
    return VersionedDB(HashMapStorage())


def _written(txn):
    return {w.key: w.value for w in txn.rwset.writes}


def test_get_balance_records_reads(db):
    txn = Transaction(tid=1)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("getBalance", ["7"]) is True
    assert [r.key for r in txn.rwset.reads] == ["saving_7", "checking_7"]
    assert txn.rwset.writes == []


def test_update_balance_adds_amount(db):
    db.storage.update("checking_a", "300", "small_bank")
    txn = Transaction(tid=2)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("updateBalance", ["a", "50"]) is True
    assert txn.rwset.writes == [KVWrite("small_bank", "checking_a", "350")]


def test_update_balance_rejects_overdraw(db):
    db.storage.update("checking_a", "10", "small_bank")
    txn = Transaction(tid=3)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("updateBalance", ["a", "-11"]) is False
    assert txn.rwset.writes == []


def test_update_saving_parses_leading_digits(db):
    db.storage.update("saving_x", "12abc", "small_bank")
    txn = Transaction(tid=4)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("updateSaving", ["x", "0"]) is True
    assert _written(txn) == {"saving_x": "12"}


def test_send_payment_preserves_total(db):
    db.storage.update("checking_a", "100", "small_bank")
    db.storage.update("checking_b", "20", "small_bank")
    txn = Transaction(tid=5)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("sendPayment", ["a", "b", "30"]) is True
    written = _written(txn)
    assert int(written["checking_a"]) + int(written["checking_b"]) == 120
    assert int(written["checking_a"]) < 100


@pytest.mark.parametrize("args", [["a", "a", "1"], ["a", "b", "-1"], ["a", "b", "1000000"]])
def test_send_payment_rejected(db, args):
    txn = Transaction(tid=6)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("sendPayment", args) is False
    assert txn.rwset.writes == []


def test_amalgamate_moves_everything(db):
    db.storage.update("saving_a", "40", "small_bank")
    db.storage.update("checking_b", "10", "small_bank")
    txn = Transaction(tid=7)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("amalgamate", ["a", "b"]) is True
    written = _written(txn)
    assert written["saving_a"] == "0"
    assert int(written["checking_b"]) == 40 + 10


def test_amalgamate_same_account_rejected(db):
    cc = SmallBankChaincode(Transaction(tid=8), db)
    assert cc.invoke("amalgamate", ["a", "a"]) is False


def test_write_check_overdraw_rejected(db):
    db.storage.update("checking_a", "5", "small_bank")
    txn = Transaction(tid=9)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke("writeCheck", ["a", "6"]) is False
    assert txn.rwset.writes == []


def test_unknown_function_returns_false(db):
    cc = SmallBankChaincode(Transaction(tid=10), db)
    assert cc.invoke("nope", []) is False


def test_wrong_argument_count_raises(db):
    cc = SmallBankChaincode(Transaction(tid=11), db)
    with pytest.raises(ValueError):
        cc.invoke("sendPayment", ["a", "b"])


def test_create_data_is_deterministic(db):
    results = []
    for tid in (12, 13):
        txn = Transaction(tid=tid)
        cc = SmallBankChaincode(txn, db)
        cc.accounts = 5
        assert cc.invoke("create_data", []) is True
        results.append([(w.key, w.value) for w in txn.rwset.writes])
    assert results[0] == results[1]
    keys = [k for k, _ in results[0]]
    assert keys[:5] == [f"checking_{i}" for i in range(5)]
    assert keys[5:] == [f"saving_{i}" for i in range(5)]
    assert all(0 <= int(v) < 100 for _, v in results[0])


def test_invoke_transaction_buffers_and_commit_applies(db):
    db.storage.update("checking_9", "0", "small_bank")
    txn = Transaction(tid=14, header="updateBalance", payload=json.dumps(["9", "5"]).encode())
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke_transaction() is True
    assert db.commit_update(14) is True
    assert db.storage.select("checking_9", "small_bank") == "5"


def test_read_only_transaction_is_not_buffered(db):
    txn = Transaction(tid=15, header="getBalance", payload=b'["1"]', read_only=True)
    cc = SmallBankChaincode(txn, db)
    assert cc.invoke_transaction() is True
    with pytest.raises(KeyError):
        db.commit_update(15)


def test_correct_test_reads_then_writes_tid(db):
    db.storage.update("k", "old", "test_table")
    txn = Transaction(tid=21)
    cc = OrmTestChaincode(txn, db)
    assert cc.invoke("correct_test", ["k"]) is True
    assert txn.rwset.reads == [KVRead("test_table", "k", "old")]
    assert txn.rwset.writes == [KVWrite("test_table", "k", "21")]


def test_create_table_records_placeholder(db):
    txn = Transaction(tid=5)
    cc = OrmTestChaincode(txn, db)
    assert cc.invoke("create_table", []) is True
    assert [(w.key, w.value) for w in txn.rwset.writes] == [
        ("test_table", "place holder of 5")
    ]


def test_create_data_writes_alphanumeric_values(db):
    txn = Transaction(tid=22)
    cc = OrmTestChaincode(txn, db)
    cc.keys_per_partition = 4
    assert cc.invoke("create_data", []) is True
    assert [w.key for w in txn.rwset.writes] == ["0", "1", "2", "3"]
    allowed = set(string.ascii_letters + string.digits)
    assert all(len(w.value) == 10 and set(w.value) <= allowed for w in txn.rwset.writes)


def test_mixed_writes_and_reads(db):
    txn = Transaction(tid=23)
    cc = OrmTestChaincode(txn, db)
    assert cc.invoke("mixed", [{"update": ["a", "b"], "reads": ["c"]}]) is True
    assert [w.key for w in txn.rwset.writes] == ["a", "b"]
    assert all(w.value.endswith("23") and len(w.value) == 12 for w in txn.rwset.writes)
    assert [r.key for r in txn.rwset.reads] == ["c"]


def test_mixed_is_deterministic_per_tid(db):
    payload = json.dumps({"update": ["x"], "reads": []})
    values = []
    for _ in range(2):
        txn = Transaction(tid=24)
        OrmTestChaincode(txn, db).invoke("mixed", [payload])
        values.append(txn.rwset.writes[0].value)
    assert values[0] == values[1]


def test_orm_unknown_function(db):
    assert OrmTestChaincode(Transaction(tid=25), db).invoke("nothing", []) is False


def test_calculate_and_time(db):
    cc = OrmTestChaincode(Transaction(tid=26), db)
    assert cc.invoke("calculate", []) is True
    assert cc.invoke("time", []) is True


@pytest.mark.parametrize(
    "data",
    [[], [1], [3, 1, 2], [5, 5, 1, 5, 0], [-4, 7, -4, 0, 9, -1]],
)
def test_quicksort_sorts(data):
    values = list(data)
    quicksort(values)
    assert values == sorted(data)


def test_quicksort_handles_long_descending_input():
    values = list(range(5000, 0, -1))
    quicksort(values)
    assert values == list(range(1, 5001))


def test_manager_creates_configured_type(db):
    txn = Transaction(tid=30)
    cc = ChaincodeManager("small_bank").create(txn, db)
    assert isinstance(cc, SmallBankChaincode)
    assert cc.invoke("getBalance", ["1"]) is True
    assert len(txn.rwset.reads) == 2


def test_manager_test_type(db):
    txn = Transaction(tid=31)
    cc = ChaincodeManager("test").create(txn, db)
    assert cc.invoke("correct_test", ["z"]) is True
    assert txn.rwset.writes == [KVWrite("test_table", "z", "31")]


def test_manager_rejects_unknown_type():
    with pytest.raises(ValueError):
        ChaincodeManager("unknown")