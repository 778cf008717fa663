from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List, Mapping, Sequence

from .errors import InvalidWorkloadError
from .models import Process


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of validated
    Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise InvalidWorkloadError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    validate_processes(processes)
    return processes


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidWorkloadError(f"{path}: not valid JSON ({exc})") from exc

    if not isinstance(raw, list):
        raise InvalidWorkloadError("JSON workload must be a list of process objects")

    return [_process_from_mapping(entry, index) for index, entry in enumerate(raw)]


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return [_process_from_mapping(row, index) for index, row in enumerate(reader)]


def _optional_int(mapping: Mapping, key: str):
    value = mapping.get(key)
    return int(value) if value not in (None, "") else None


def _process_from_mapping(mapping, index: int) -> Process:
    try:
        name = str(mapping["name"])
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
        pid = _optional_int(mapping, "pid")
        priority = _optional_int(mapping, "priority")
        quantum = _optional_int(mapping, "quantum")
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise InvalidWorkloadError(f"Invalid process entry: {mapping!r}") from exc

    return Process(
        name=name,
        pid=index + 1 if pid is None else pid,
        arrival_time=arrival_time,
        burst_time=burst_time,
        priority=0 if priority is None else priority,
        quantum=quantum,
    )


def validate_processes(processes: Sequence[Process]) -> None:
    """
    Reject workloads the schedulers cannot run. The schedulers trust their
    input, so this is the only place these rules are checked.
    """
    if not processes:
        raise InvalidWorkloadError("Workload contains no processes")

    seen = set()
    for p in processes:
        if p.arrival_time < 0:
            raise InvalidWorkloadError(f"{p.name}: arrival time must be >= 0 (got {p.arrival_time})")
        if p.burst_time <= 0:
            raise InvalidWorkloadError(f"{p.name}: burst time must be > 0 (got {p.burst_time})")
        if p.quantum is not None and p.quantum <= 0:
            raise InvalidWorkloadError(f"{p.name}: quantum must be > 0 (got {p.quantum})")
        if p.pid in seen:
            raise InvalidWorkloadError(f"Duplicate PID {p.pid} ({p.name})")
        seen.add(p.pid)


def validate_context_switch(context_switch: int) -> None:
    if context_switch < 0:
        raise InvalidWorkloadError(f"Context switch time must be >= 0 (got {context_switch})")
