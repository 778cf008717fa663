from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from .errors import InvariantViolation


@dataclass
class Process:
    """
    A process and its scheduling state.

    ``burst_time`` is the original CPU demand and never changes; schedulers
    consume ``remaining_time`` through :meth:`run_for` and finish the process
    with :meth:`complete`.
    """

    name: str
    pid: int
    arrival_time: int
    burst_time: int
    priority: int = 0
    quantum: Optional[int] = None

    remaining_time: int = field(init=False)
    completion_time: Optional[int] = field(default=None, init=False)
    fcai_factor: int = field(default=0, init=False)
    current_quantum: Optional[int] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.remaining_time = self.burst_time
        self.current_quantum = self.quantum

    @property
    def is_complete(self) -> bool:
        return self.completion_time is not None

    def run_for(self, units: int) -> None:
        if units < 1:
            raise InvariantViolation(f"{self.name}: cannot run for {units} units")
        if self.is_complete:
            raise InvariantViolation(f"{self.name}: dispatched after completing at {self.completion_time}")
        if units > self.remaining_time:
            raise InvariantViolation(
                f"{self.name}: asked to run {units} units with only {self.remaining_time} remaining"
            )
        self.remaining_time -= units

    def complete(self, at: int) -> None:
        if self.is_complete:
            raise InvariantViolation(f"{self.name}: completion time already set to {self.completion_time}")
        if self.remaining_time != 0:
            raise InvariantViolation(f"{self.name}: completed with {self.remaining_time} units remaining")
        self.completion_time = at

    @property
    def turnaround_time(self) -> int:
        if self.completion_time is None:
            raise InvariantViolation(f"{self.name}: has not completed")
        return self.completion_time - self.arrival_time

    @property
    def waiting_time(self) -> int:
        return self.turnaround_time - self.burst_time


def fresh_copies(processes: Iterable[Process]) -> List[Process]:
    """
    Copy processes with their inputs only, so every scheduler run starts
    from untouched simulation state.
    """
    return [replace(p) for p in processes]


@dataclass(frozen=True)
class ExecutionSegment:
    """
    One contiguous slice of CPU time given to one process.
    """

    name: str
    pid: int
    priority: int
    start_time: int
    duration: int
    starved: bool = False

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    @classmethod
    def for_process(cls, process: Process, start_time: int, duration: int, starved: bool = False) -> "ExecutionSegment":
        return cls(
            name=process.name,
            pid=process.pid,
            priority=process.priority,
            start_time=start_time,
            duration=duration,
            starved=starved,
        )


@dataclass
class ProcessMetrics:
    name: str
    pid: int
    arrival_time: int
    burst_time: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int
    priority: int = 0


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    avg_waiting_time: float
    avg_turnaround_time: float
    starvation_count: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    context_switch: int
    quantum: Optional[int]
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[ExecutionSegment] = field(default_factory=list)
    system: Optional[SystemMetrics] = None
    starved: List[int] = field(default_factory=list)
    quantum_history: Dict[int, List[int]] = field(default_factory=dict)

    def completion_times(self) -> Dict[int, int]:
        return {p.pid: p.completion_time for p in self.processes}
