from __future__ import annotations


class SchedulerError(Exception):
    """Base class for all errors raised by the simulator."""


class InvalidWorkloadError(SchedulerError, ValueError):
    """
    Raised by the input layer when a workload cannot be scheduled
    (negative arrival, non-positive burst or quantum, duplicate PIDs,
    empty process set).
    """


class DegenerateMetricsError(SchedulerError, ValueError):
    """Raised when an average is requested over zero processes."""


class InvariantViolation(SchedulerError, RuntimeError):
    """
    Internal inconsistency in a scheduler run. This is a programming error
    and is never caught inside the package.
    """
