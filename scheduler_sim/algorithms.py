from __future__ import annotations

import heapq
import logging
from typing import Dict, List, Optional, Set, Tuple

from .fcai import schedule_fcai
from .metrics import build_result
from .models import ExecutionSegment, Process, ScheduleResult
from .workload_io import validate_context_switch

logger = logging.getLogger(__name__)

# A process is starved once current_time - arrival - remaining exceeds this.
STARVATION_THRESHOLD = 20


def is_starved(process: Process, current_time: int) -> bool:
    return (
        process.remaining_time > 0
        and current_time - process.arrival_time - process.remaining_time > STARVATION_THRESHOLD
    )


def schedule_priority(
    processes: List[Process], context_switch: int = 0, quantum: Optional[int] = None
) -> ScheduleResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority. The whole workload
    is ordered up front by (priority, arrival time) and run in that order;
    the CPU idles only when the next process in that order has not arrived.
    """
    validate_context_switch(context_switch)
    order = sorted(processes, key=lambda p: (p.priority, p.arrival_time))

    time = 0
    timeline: List[ExecutionSegment] = []

    for p in order:
        if p.arrival_time > time:
            time = p.arrival_time

        timeline.append(ExecutionSegment.for_process(p, start_time=time, duration=p.burst_time))
        p.run_for(p.burst_time)
        p.complete(time + p.burst_time)

        time += p.burst_time + context_switch

    return build_result("Priority (non-preemptive)", processes, timeline, context_switch, quantum)


def schedule_sjf(
    processes: List[Process], context_switch: int = 0, quantum: Optional[int] = None
) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive) with starvation avoidance.

    At each decision point, among processes that have arrived, a starved
    process runs first; otherwise the one with the smallest burst wins
    (tie-breaker: earlier arrival).
    """
    validate_context_switch(context_switch)
    pool: List[Process] = sorted(processes, key=lambda p: (p.arrival_time, p.burst_time, p.priority))

    time = 0
    timeline: List[ExecutionSegment] = []
    starved: List[int] = []

    while pool:
        available = [p for p in pool if p.arrival_time <= time]
        if not available:
            time += 1
            continue

        chosen = next((p for p in available if is_starved(p, time)), None)
        if chosen is not None:
            logger.info("SJF: process %s starved at t=%d, executing immediately", chosen.name, time)
            starved.append(chosen.pid)
        else:
            chosen = min(available, key=lambda p: (p.remaining_time, p.arrival_time))

        pool.remove(chosen)

        burst = chosen.remaining_time
        timeline.append(ExecutionSegment.for_process(chosen, start_time=time, duration=burst))
        chosen.run_for(burst)
        chosen.complete(time + burst)

        time += burst + context_switch

    return build_result("SJF (non-preemptive)", processes, timeline, context_switch, quantum, starved=starved)


def schedule_srtf(
    processes: List[Process], context_switch: int = 0, quantum: Optional[int] = None
) -> ScheduleResult:
    """
    Shortest Remaining Time First (preemptive SJF) with starvation avoidance.

    The CPU is handed out one time unit at a time, so the timeline holds one
    unit-length segment per unit executed. A starved process is instead run
    to completion in one go and leaves a single unit-length marker segment,
    flagged ``starved``, placed at its completion time.
    """
    validate_context_switch(context_switch)
    by_pid: Dict[int, Process] = {p.pid: p for p in processes}
    arrival_order = sorted(processes, key=lambda p: p.arrival_time)

    # Heap entries are (remaining, arrival, pid); only the popped process
    # changes its remaining time, so queued keys never go stale.
    ready: List[Tuple[int, int, int]] = []
    queued: Set[int] = set()

    time = 0
    completed = 0
    last_pid: Optional[int] = None
    timeline: List[ExecutionSegment] = []
    starved: List[int] = []

    def enqueue_new_arrivals(current_time: int) -> None:
        for p in arrival_order:
            if p.pid not in queued and p.arrival_time <= current_time and p.remaining_time > 0:
                heapq.heappush(ready, (p.remaining_time, p.arrival_time, p.pid))
                queued.add(p.pid)

    while completed < len(by_pid):
        enqueue_new_arrivals(time)

        forced = False
        for p in arrival_order:
            if not is_starved(p, time):
                continue
            logger.info("SRTF: process %s starved at t=%d, executing immediately", p.name, time)
            time += context_switch + p.remaining_time
            p.run_for(p.remaining_time)
            p.complete(time)
            timeline.append(ExecutionSegment.for_process(p, start_time=time, duration=1, starved=True))
            starved.append(p.pid)
            completed += 1
            forced = True
            if p.pid in queued:
                queued.discard(p.pid)
                ready[:] = [entry for entry in ready if entry[2] != p.pid]
                heapq.heapify(ready)

        # Anything that arrived during a forced run competes for the next unit.
        if forced:
            enqueue_new_arrivals(time)

        if not ready:
            time += 1
            last_pid = None
            continue

        _, _, pid = heapq.heappop(ready)
        queued.discard(pid)
        current = by_pid[pid]

        if last_pid is not None and last_pid != pid:
            time += context_switch

        timeline.append(ExecutionSegment.for_process(current, start_time=time, duration=1))
        current.run_for(1)
        time += 1

        if current.remaining_time == 0:
            current.complete(time)
            completed += 1
        else:
            heapq.heappush(ready, (current.remaining_time, current.arrival_time, pid))
            queued.add(pid)

        last_pid = pid

    return build_result("SRTF", processes, timeline, context_switch, quantum, starved=starved)


ALGORITHMS = {
    "priority": schedule_priority,
    "sjf": schedule_sjf,
    "srtf": schedule_srtf,
    "fcai": schedule_fcai,
}


def run_algorithm(
    name: str, processes: List[Process], context_switch: int = 0, quantum: Optional[int] = None
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. Quantum is only used by FCAI, as
    the default for processes that do not carry their own.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise ValueError(f"Unknown or unimplemented algorithm '{name}'")

    func = ALGORITHMS[name]
    return func(processes, context_switch=context_switch, quantum=quantum)
