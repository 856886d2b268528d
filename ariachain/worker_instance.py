"""State shared between the coordinator and one worker thread."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Iterable, List, Optional


class AriaGlobalState(Enum):
    """Phase announced by the coordinator."""

    START = "start"
    ARIA_READ = "aria_read"
    ARIA_COMMIT = "aria_commit"
    EXIT = "exit"
    AGGREGATE = "aggregate"


class WorkerState(IntEnum):
    """Progress reported by a worker."""

    READY = 0
    ASSIGNED = 1
    FINISH_READ = 2
    FINISH_AGGREGATE = 3
    EXITED = 4


@dataclass
class Workload:
    """Transactions handed to a worker for one epoch."""

    epoch: int = 0
    transactions: List[Any] = field(default_factory=list)
    aggregation_workload: bool = False


class WorkerInstance:
    """Holds a worker's thread, workload and the two-way state handshake."""

    def __init__(self, worker_id: int, global_state: AriaGlobalState) -> None:
        self.worker_id = worker_id
        self.thread: Optional[threading.Thread] = None
        self.instance: Any = None
        self.workload: Optional[Workload] = None
        self._worker_state = WorkerState.READY
        self._global_state = global_state
        self._producer = threading.Condition()
        self._consumer = threading.Condition()

    def coordinator_wait(self, states: Iterable[WorkerState]) -> None:
        """Block until the worker reports one of ``states``."""
        wanted = frozenset(states)
        with self._producer:
            self._producer.wait_for(lambda: self._worker_state in wanted)

    def worker_wait(self, state: AriaGlobalState) -> bool:
        """Block until the coordinator announces ``state`` or EXIT.

        Returns False when EXIT was announced.
        """
        with self._consumer:
            self._consumer.wait_for(
                lambda: self._global_state in (state, AriaGlobalState.EXIT)
            )
            return self._global_state is not AriaGlobalState.EXIT

    def set_worker_state(self, state: WorkerState) -> None:
        """Record the worker's progress and wake the coordinator."""
        with self._producer:
            self._worker_state = state
            self._producer.notify_all()

    def set_coordinator_state(self, state: AriaGlobalState) -> None:
        """Announce a new phase and wake the worker."""
        with self._consumer:
            self._global_state = state
            self._consumer.notify_all()

    @property
    def worker_state(self) -> WorkerState:
        return self._worker_state

    @property
    def global_state(self) -> AriaGlobalState:
        return self._global_state