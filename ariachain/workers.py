"""Worker loops that drive transaction executors through the Aria phases."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Protocol, Sequence

from ariachain.worker_instance import AriaGlobalState, WorkerInstance, WorkerState

log = logging.getLogger(__name__)


class _Executor(Protocol):
    def execute_list(self, transactions: Sequence[Any]) -> bool: ...

    def commit_list(self, transactions: Sequence[Any]) -> bool: ...


class Worker(ABC):
    """A loop bound to one WorkerInstance."""

    def __init__(self, instance: WorkerInstance) -> None:
        self.instance = instance

    @abstractmethod
    def run(self) -> None:
        """Process workloads until the coordinator announces EXIT."""

    def _exit(self) -> None:
        log.debug("worker %s received exit signal", self.instance.worker_id)
        self.instance.set_worker_state(WorkerState.EXITED)

    def _transactions(self) -> Sequence[Any]:
        workload = self.instance.workload
        return workload.transactions if workload is not None else []


class AriaWorker(Worker):
    """Runs read then commit for each epoch with one executor."""

    def __init__(self, instance: WorkerInstance, executor: _Executor) -> None:
        super().__init__(instance)
        self.executor = executor
        instance.set_worker_state(WorkerState.READY)

    def run(self) -> None:
        inst = self.instance
        inst.set_worker_state(WorkerState.ASSIGNED)
        while True:
            if not inst.worker_wait(AriaGlobalState.ARIA_READ):
                self._exit()
                return
            self.executor.execute_list(self._transactions())
            inst.set_worker_state(WorkerState.FINISH_READ)
            if not inst.worker_wait(AriaGlobalState.ARIA_COMMIT):
                self._exit()
                return
            self.executor.commit_list(self._transactions())
            inst.set_worker_state(WorkerState.READY)


class AggregationWorker(Worker):
    """Switches per workload between normal and aggregation execution."""

    def __init__(
        self,
        instance: WorkerInstance,
        normal_executor: _Executor,
        aggregate_executor: _Executor,
    ) -> None:
        super().__init__(instance)
        self.normal_executor = normal_executor
        self.aggregate_executor = aggregate_executor
        instance.set_worker_state(WorkerState.READY)
        self.is_aggregate = self._workload_is_aggregate()

    def _workload_is_aggregate(self) -> bool:
        workload = self.instance.workload
        return bool(workload is not None and workload.aggregation_workload)

    def run(self) -> None:
        inst = self.instance
        inst.set_worker_state(WorkerState.ASSIGNED)
        while True:
            if not inst.worker_wait(AriaGlobalState.ARIA_READ):
                self._exit()
                return
            self.is_aggregate = self._workload_is_aggregate()
            if self.is_aggregate:
                executor = self.aggregate_executor
                inst.set_worker_state(WorkerState.FINISH_READ)
                if not inst.worker_wait(AriaGlobalState.AGGREGATE):
                    self._exit()
                    return
            else:
                executor = self.normal_executor
            executor.execute_list(self._transactions())
            inst.set_worker_state(WorkerState.FINISH_AGGREGATE)
            if not inst.worker_wait(AriaGlobalState.ARIA_COMMIT):
                self._exit()
                return
            executor.commit_list(self._transactions())
            inst.set_worker_state(WorkerState.READY)