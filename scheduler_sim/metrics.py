from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from .errors import DegenerateMetricsError, InvariantViolation
from .models import ExecutionSegment, Process, ProcessMetrics, ScheduleResult, SystemMetrics


def process_metrics(process: Process, timeline: Sequence[ExecutionSegment]) -> ProcessMetrics:
    """
    Derive waiting, turnaround and response time for a finished process.

    Waiting time is turnaround minus the original burst for every policy.
    """
    if process.completion_time is None:
        raise InvariantViolation(f"{process.name}: scheduler finished without completing it")

    starts = [s.start_time for s in timeline if s.pid == process.pid]
    if not starts:
        raise InvariantViolation(f"{process.name}: completed without any execution segment")
    start_time = min(starts)

    return ProcessMetrics(
        name=process.name,
        pid=process.pid,
        arrival_time=process.arrival_time,
        burst_time=process.burst_time,
        start_time=start_time,
        completion_time=process.completion_time,
        waiting_time=process.waiting_time,
        turnaround_time=process.turnaround_time,
        response_time=start_time - process.arrival_time,
        priority=process.priority,
    )


def _mean(values: List[int], what: str) -> float:
    if not values:
        raise DegenerateMetricsError(f"cannot compute average {what} over zero processes")
    return sum(values) / len(values)


def average_waiting_time(processes: Iterable[ProcessMetrics]) -> float:
    return _mean([p.waiting_time for p in processes], "waiting time")


def average_turnaround_time(processes: Iterable[ProcessMetrics]) -> float:
    return _mean([p.turnaround_time for p in processes], "turnaround time")


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    return {
        "avg_waiting": average_waiting_time(processes),
        "avg_turnaround": average_turnaround_time(processes),
        "avg_response": _mean([p.response_time for p in processes], "response time"),
    }


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute throughput, CPU utilization and the mean times for a populated
    result. Busy time is the sum of original bursts, since the SRTF
    starvation marker does not cover the time it stands for.
    """
    avg_waiting = average_waiting_time(result.processes)
    avg_turnaround = average_turnaround_time(result.processes)

    makespan = max(p.completion_time for p in result.processes)
    cpu_busy_time = sum(p.burst_time for p in result.processes)

    throughput = len(result.processes) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        avg_waiting_time=avg_waiting,
        avg_turnaround_time=avg_turnaround,
        starvation_count=len(result.starved),
    )
    result.system = system
    return system


def build_result(
    algorithm: str,
    processes: Sequence[Process],
    timeline: List[ExecutionSegment],
    context_switch: int,
    quantum: Optional[int] = None,
    starved: Optional[List[int]] = None,
    quantum_history: Optional[Dict[int, List[int]]] = None,
) -> ScheduleResult:
    """
    Assemble the result of a finished run. Fails with
    DegenerateMetricsError when there were no processes to schedule.
    """
    result = ScheduleResult(
        algorithm=algorithm,
        context_switch=context_switch,
        quantum=quantum,
        processes=[process_metrics(p, timeline) for p in processes],
        timeline=timeline,
        starved=list(starved or []),
        quantum_history=dict(quantum_history or {}),
    )
    compute_system_metrics(result)
    return result
