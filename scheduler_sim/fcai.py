"""
FCAI scheduling: a round-robin variant whose quantum adapts per process.

Every process carries its own quantum. A dispatch first runs the process
non-preemptively for 40% of its quantum, then keeps going one unit at a
time until the quantum runs out, the process finishes, or a ready process
with a strictly lower FCAI factor shows up. The quantum then grows by 2
(exhausted) or by the unused part (preempted).

The factor combines static priority, arrival time and remaining burst,
scaled so that the latest arrival and the longest burst both map to 10:

    factor = (10 - priority) + ceil(arrival / v1) + ceil(remaining / v2)
    v1 = max(arrival) / 10,  v2 = max(burst) / 10
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from typing import Deque, Dict, List, Optional

from .errors import InvalidWorkloadError
from .metrics import build_result
from .models import ExecutionSegment, Process, ScheduleResult
from .workload_io import validate_context_switch

logger = logging.getLogger(__name__)

QUANTUM_GROWTH_ON_EXHAUSTION = 2


class SelectionMode(enum.Enum):
    FCFS = "fcfs"
    BEST_FACTOR = "best-factor"


def scaled_ceil(value: int, maximum: int) -> int:
    """
    ceil(value / (maximum / 10)) in exact integer arithmetic, with
    division by a zero scale defined as 0.
    """
    if maximum == 0:
        return 0
    return -(-10 * value // maximum)


def non_preemptive_time(quantum: int) -> int:
    """ceil(0.4 * quantum)"""
    return -(-2 * quantum // 5)


class FCAIRun:
    """
    State of one FCAI run over a fixed process set.

    Processes live in a single arena keyed by PID; the pending and ready
    queues only hold PIDs.
    """

    def __init__(self, processes: List[Process], default_quantum: Optional[int] = None):
        self.arena: Dict[int, Process] = {p.pid: p for p in processes}
        self.max_arrival = max((p.arrival_time for p in processes), default=0)
        self.max_burst = max((p.burst_time for p in processes), default=0)

        # Check every process before assigning defaults, so a rejected
        # workload is left untouched.
        for p in processes:
            quantum = default_quantum if p.current_quantum is None else p.current_quantum
            if quantum is None or quantum <= 0:
                raise InvalidWorkloadError(
                    f"FCAI requires a positive quantum for process {p.name!r} (use --quantum)"
                )
        for p in processes:
            if p.current_quantum is None:
                p.current_quantum = default_quantum

        self.pending: Deque[int] = deque(p.pid for p in sorted(processes, key=lambda p: p.arrival_time))
        self.ready: Deque[int] = deque()
        self.mode = SelectionMode.FCFS
        self.time = 0
        self.timeline: List[ExecutionSegment] = []
        self.quantum_history: Dict[int, List[int]] = {p.pid: [p.current_quantum] for p in processes}

    def factor(self, process: Process) -> int:
        return (
            (10 - process.priority)
            + scaled_ceil(process.arrival_time, self.max_arrival)
            + scaled_ceil(process.remaining_time, self.max_burst)
        )

    def refresh_ready_queue(self) -> None:
        """Admit arrived processes, then recompute factors of everything queued."""
        while self.pending and self.arena[self.pending[0]].arrival_time <= self.time:
            self.ready.append(self.pending.popleft())
        for pid in self.ready:
            p = self.arena[pid]
            p.fcai_factor = self.factor(p)

    def best_ready(self) -> Optional[Process]:
        best: Optional[Process] = None
        for pid in self.ready:
            p = self.arena[pid]
            if best is None or (p.fcai_factor, p.arrival_time) < (best.fcai_factor, best.arrival_time):
                best = p
        return best

    def select(self) -> Process:
        if self.mode is SelectionMode.BEST_FACTOR:
            chosen = self.best_ready()
            self.ready.remove(chosen.pid)
            return chosen
        return self.arena[self.ready.popleft()]

    def dispatch(self, process: Process, context_switch: int) -> None:
        start = self.time
        quantum = process.current_quantum

        executed = min(non_preemptive_time(quantum), process.remaining_time)
        process.run_for(executed)
        self.time += executed
        remaining_quantum = quantum - executed

        while process.remaining_time > 0 and remaining_quantum > 0:
            best = self.best_ready()
            if best is not None and best.fcai_factor < process.fcai_factor:
                break
            process.run_for(1)
            self.time += 1
            remaining_quantum -= 1
            self.refresh_ready_queue()

        self.timeline.append(ExecutionSegment.for_process(process, start_time=start, duration=self.time - start))

        if process.remaining_time == 0:
            process.complete(self.time)
            self.mode = SelectionMode.FCFS
            logger.debug("FCAI: %s ran %d-%d and completed", process.name, start, self.time)
        else:
            if remaining_quantum == 0:
                process.current_quantum = quantum + QUANTUM_GROWTH_ON_EXHAUSTION
                self.mode = SelectionMode.FCFS
            else:
                process.current_quantum = quantum + remaining_quantum
                self.mode = SelectionMode.BEST_FACTOR
            self.ready.append(process.pid)
            self.quantum_history[process.pid].append(process.current_quantum)
            logger.debug(
                "FCAI: %s ran %d-%d, quantum %d -> %d",
                process.name,
                start,
                self.time,
                quantum,
                process.current_quantum,
            )

        self.time += context_switch

    def run(self, context_switch: int) -> None:
        while self.pending or self.ready:
            self.refresh_ready_queue()
            while not self.ready and self.pending:
                self.time += 1
                self.refresh_ready_queue()
            if not self.ready:
                break

            self.dispatch(self.select(), context_switch)


def schedule_fcai(
    processes: List[Process], context_switch: int = 0, quantum: Optional[int] = None
) -> ScheduleResult:
    """
    FCAI scheduling. ``quantum`` is the initial quantum for processes that
    do not carry their own.
    """
    validate_context_switch(context_switch)
    run = FCAIRun(processes, default_quantum=quantum)
    run.run(context_switch)
    return build_result(
        "FCAI",
        processes,
        run.timeline,
        context_switch,
        quantum,
        quantum_history=run.quantum_history,
    )
