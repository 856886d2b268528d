# ariachain

Building blocks for an Aria-style deterministic blockchain database. Transactions of one
epoch run against the same snapshot. Their read/write sets are reserved in a table, and
dependency analysis then decides which transactions commit and which abort. Serialized
blocks can be stored per epoch in memory or in files.

## Installation

```
pip install .
pip install ".[test]"   # adds pytest
```

The package has no runtime dependencies.

## Modules

- `ariachain.rng.Random`: a 48-bit linear congruential generator. It offers `next_bits`,
  `next_u64`, `next_double`, `uniform_dist` (inclusive range), `rand_str`, `a_string`
  (alphanumeric, random length) and `non_uniform_distribution`.
- `ariachain.generators`: workload value generators. The classes are `UniformGenerator`,
  `DiscreteGenerator` (weighted choices added with `add_value`), `ConstGenerator`,
  `ZipfianGenerator`, `CounterGenerator` (thread-safe, with `reset`) and
  `SkewedLatestGenerator`, which favours values near a counter's latest value. Each has
  `next()` and `last()`.
- `ariachain.thread_pool.ThreadPool`: a fixed number of named worker threads fed from a
  queue. `execute(func)` queues a task. `shutdown()` lets queued tasks finish and joins the
  threads. The pool can also be used as a context manager.
- `ariachain.worker_instance`: `WorkerInstance` holds the two-way handshake between a
  coordinator and one worker. It has `coordinator_wait`, `worker_wait`,
  `set_worker_state` and `set_coordinator_state`. The module also defines the
  `AriaGlobalState` and `WorkerState` enums and the `Workload` dataclass.
- `ariachain.workers`: `AriaWorker` runs the read and commit phases with one executor.
  `AggregationWorker` switches between a normal executor and an aggregation executor,
  depending on each workload's `aggregation_workload` flag. Both loops end when the
  coordinator announces `EXIT`.
- `ariachain.transaction`: the `Transaction` dataclass, the `TransactionResult` enum, the
  `KVRead`, `KVWrite` and `KVRWSet` types, and `TransactionDependency` (flags `waw`, `war`
  and `raw`).
- `ariachain.pre_reserve_table.TransactionPreReserveTable`: for each table and key, it
  records the lowest transaction id that read or wrote the key. `dependency_analysis`
  reports conflicts with lower ids.
- `ariachain.causality.TransactionCausalityJudge`: transaction `b` counts as a cause of
  `a` when their ids share no bits. `judge` returns False if any cause ended in
  `ABORT_NO_RETRY`.
- `ariachain.kvstore`:
  - `HashMapStorage` is an in-memory key-value store. All tables share one key namespace.
  - `VersionedDB` buffers each transaction's writes until `commit_update` or
    `abort_update`. `commit_update` raises `KeyError` when nothing was buffered for that
    transaction.
  - `get_db_instance()` returns a process-wide shared instance.
- `ariachain.orm`: `ORMHelper`, `Query`, `Insert` and `ResultsIterator`. Chaincode reads
  and writes through these, and every access is recorded in the transaction's read/write
  set. Writing the same key twice raises `ValueError`.
- `ariachain.block_storage`: `MemoryBlockStorage`, and `FileBlockStorage`, which writes
  `<epoch>.bin` files and a `block_num.txt` counter into a directory. Both offer
  `append_block`, `load_block` and `latest_saved_epoch`. `load_block` raises `KeyError`
  for an epoch that has not been saved.
- `ariachain.chaincode`:
  - `SmallBankChaincode` provides `amalgamate`, `getBalance`, `updateBalance`,
    `updateSaving`, `sendPayment`, `writeCheck` and `create_data`.
  - `OrmTestChaincode` provides `correct_test`, `create_table`, `create_data`, `mixed`,
    `time` and `calculate`.
  - `ChaincodeManager(cc_type)` picks the chaincode by name, `"small_bank"` or `"test"`.
  - `quicksort` sorts a list in place.

  A transaction's `header` names the function. Its `payload` is JSON text or bytes that
  decode to the argument list.
- `ariachain.executor`:
  - `NormalExecutor` runs chaincode and reserves the read/write sets.
  - `AggregationExecutor` reserves read/write sets that were already gathered.
  - `QueryExecutor` runs read-only transactions and never commits.
  - `make_executor(kind, db, reserve_table_for, chaincodes)` creates an executor for an
    `ExecutorType`.
  - `commit_list` aborts a transaction on a write-after-write conflict. It also aborts a
    transaction that has both write-after-read and read-after-write conflicts. Every other
    transaction is committed.
- `ariachain.pre_executor.TransactionPreExecutor`: simulates a batch read-only and drops
  the transactions bound to conflict. It can also record and judge causal links.

## Example

```python
from ariachain.chaincode import ChaincodeManager
from ariachain.executor import ExecutorType, make_executor
from ariachain.kvstore import VersionedDB
from ariachain.pre_reserve_table import TransactionPreReserveTable
from ariachain.transaction import Transaction

db = VersionedDB()
table = TransactionPreReserveTable()
executor = make_executor(
    ExecutorType.NORMAL, db, lambda epoch: table, ChaincodeManager("small_bank")
)

batch = [
    Transaction(tid=1, epoch=1, header="updateBalance", payload='["1", "50"]'),
    Transaction(tid=2, epoch=1, header="sendPayment", payload='["2", "3", "10"]'),
]
executor.execute_list(batch)
executor.commit_list(batch)

print([txn.result.name for txn in batch])           # ['COMMIT', 'COMMIT']
print(db.storage.select("checking_1", "small_bank"))  # '1050'
```

Workload generators:

```python
from ariachain.rng import Random
from ariachain.generators import ZipfianGenerator

rng = Random(42)
print(rng.a_string(5, 10))

keys = ZipfianGenerator(0, 999, 7, 0.99)
print([keys.next() for _ in range(5)])
```

## What it does not do

This is a library, not a running node. It has:

- no command-line program;
- no network server or client;
- no consensus, epoch service or block construction (hashing, Merkle roots, signatures);
- no YCSB chaincode.

Key-value state exists only in memory (`HashMapStorage`). The block stores keep opaque
bytes given to them by the caller.

## Running the tests

```
pytest
```