import threading

import pytest

from ariachain.worker_instance import (
    AriaGlobalState,
    WorkerInstance,
    WorkerState,
    Workload,
)
from ariachain.workers import AggregationWorker, AriaWorker, Worker


class RecordingExecutor:
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def execute_list(self, transactions):
        self.log.append((self.name, "execute", list(transactions)))
        return True

    def commit_list(self, transactions):
        self.log.append((self.name, "commit", list(transactions)))
        return True


def make_instance(aggregate=False):
    inst = WorkerInstance(0, AriaGlobalState.START)
    inst.workload = Workload(epoch=1, transactions=["t1", "t2"], aggregation_workload=aggregate)
    return inst


def start(worker):
    thread = threading.Thread(target=worker.run, daemon=True)
    thread.start()
    return thread


def finish(inst, thread):
    inst.set_coordinator_state(AriaGlobalState.EXIT)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert inst.worker_state is WorkerState.EXITED


def test_worker_is_abstract():
    with pytest.raises(TypeError):
        Worker(make_instance())


def test_aria_worker_read_then_commit():
    log = []
    inst = make_instance()
    worker = AriaWorker(inst, RecordingExecutor("n", log))
    thread = start(worker)
    inst.coordinator_wait({WorkerState.ASSIGNED})
    inst.set_coordinator_state(AriaGlobalState.ARIA_READ)
    inst.coordinator_wait({WorkerState.FINISH_READ})
    assert log == [("n", "execute", ["t1", "t2"])]
    inst.set_coordinator_state(AriaGlobalState.ARIA_COMMIT)
    inst.coordinator_wait({WorkerState.READY})
    assert log[-1] == ("n", "commit", ["t1", "t2"])
    finish(inst, thread)
    assert len(log) == 2


def test_aria_worker_exits_before_work():
    log = []
    inst = make_instance()
    thread = start(AriaWorker(inst, RecordingExecutor("n", log)))
    inst.coordinator_wait({WorkerState.ASSIGNED})
    finish(inst, thread)
    assert log == []


def test_aggregation_worker_normal_path():
    log = []
    inst = make_instance(aggregate=False)
    worker = AggregationWorker(inst, RecordingExecutor("n", log), RecordingExecutor("a", log))
    thread = start(worker)
    inst.coordinator_wait({WorkerState.ASSIGNED})
    inst.set_coordinator_state(AriaGlobalState.ARIA_READ)
    inst.coordinator_wait({WorkerState.FINISH_AGGREGATE})
    assert log == [("n", "execute", ["t1", "t2"])]
    inst.set_coordinator_state(AriaGlobalState.ARIA_COMMIT)
    inst.coordinator_wait({WorkerState.READY})
    assert log[-1] == ("n", "commit", ["t1", "t2"])
    finish(inst, thread)


def test_aggregation_worker_aggregate_path():
    log = []
    inst = make_instance(aggregate=True)
    worker = AggregationWorker(inst, RecordingExecutor("n", log), RecordingExecutor("a", log))
    assert worker.is_aggregate is True
    thread = start(worker)
    inst.coordinator_wait({WorkerState.ASSIGNED})
    inst.set_coordinator_state(AriaGlobalState.ARIA_READ)
    inst.coordinator_wait({WorkerState.FINISH_READ})
    assert log == []
    inst.set_coordinator_state(AriaGlobalState.AGGREGATE)
    inst.coordinator_wait({WorkerState.FINISH_AGGREGATE})
    assert log == [("a", "execute", ["t1", "t2"])]
    inst.set_coordinator_state(AriaGlobalState.ARIA_COMMIT)
    inst.coordinator_wait({WorkerState.READY})
    assert log[-1] == ("a", "commit", ["t1", "t2"])
    finish(inst, thread)


def test_aggregation_worker_exit_while_waiting_for_aggregate():
    log = []
    inst = make_instance(aggregate=True)
    worker = AggregationWorker(inst, RecordingExecutor("n", log), RecordingExecutor("a", log))
    thread = start(worker)
    inst.coordinator_wait({WorkerState.ASSIGNED})
    inst.set_coordinator_state(AriaGlobalState.ARIA_READ)
    inst.coordinator_wait({WorkerState.FINISH_READ})
    finish(inst, thread)
    assert log == []