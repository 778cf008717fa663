"""
Scheduler simulator package.

Simulates non-preemptive Priority, Shortest-Job-First, Shortest-Remaining-
Time-First and the dynamic-quantum FCAI policy over abstract integer time,
and reports the execution timeline with waiting/turnaround metrics.
"""

from .algorithms import ALGORITHMS, run_algorithm
from .errors import DegenerateMetricsError, InvalidWorkloadError, InvariantViolation, SchedulerError
from .models import ExecutionSegment, Process, ScheduleResult

__version__ = "0.1.0"

__all__ = [
    "ALGORITHMS",
    "DegenerateMetricsError",
    "ExecutionSegment",
    "InvalidWorkloadError",
    "InvariantViolation",
    "Process",
    "ScheduleResult",
    "SchedulerError",
    "run_algorithm",
]
