from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ExecutionSegment


def merge_adjacent(segments: Sequence[ExecutionSegment]) -> List[ExecutionSegment]:
    """
    Coalesce back-to-back segments of the same process, so SRTF's one-unit
    slices draw as a single bar.

    An SRTF starvation marker sits at its process's completion time; it is
    stretched back to the end of the previous segment so the forced run is
    drawn where it happened. Markers are never merged with other segments.
    """
    merged: List[ExecutionSegment] = []
    for seg in sorted(segments, key=lambda s: s.start_time):
        prev = merged[-1] if merged else None
        if seg.starved:
            run_start = prev.end_time if prev is not None else 0
            if seg.start_time > run_start:
                seg = replace(seg, start_time=run_start, duration=seg.start_time - run_start)
            merged.append(seg)
        elif (
            prev is not None
            and prev.pid == seg.pid
            and prev.end_time == seg.start_time
            and not prev.starved
        ):
            merged[-1] = ExecutionSegment(
                name=prev.name,
                pid=prev.pid,
                priority=prev.priority,
                start_time=prev.start_time,
                duration=prev.duration + seg.duration,
            )
        else:
            merged.append(seg)
    return merged


def render_gantt(segments: Sequence[ExecutionSegment]) -> str:
    """
    Plain-text Gantt chart, one character per time unit.
    """
    if not segments:
        return "(no execution)"

    segments = merge_adjacent(segments)

    line = "|"
    labels = ""
    time_marks = "0"
    last_time = 0

    for seg in segments:
        idle_gap = seg.start_time - last_time
        if idle_gap > 0:
            line += "." * idle_gap
            labels += " " * idle_gap
            last_time = seg.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, seg.duration)
        line += ("!" if seg.starved else "=") * width
        labels += seg.name[:width].ljust(width)
        last_time = seg.end_time
        time_marks += f"{last_time:>3}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


def build_rich_gantt(segments: Sequence[ExecutionSegment]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not segments:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    segments = merge_adjacent(segments)

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[int, str] = {}

    def pid_color(pid: int) -> str:
        if pid not in pid_to_color:
            pid_to_color[pid] = colors[len(pid_to_color) % len(colors)]
        return pid_to_color[pid]

    bars = Text()
    labels = Text()
    time_marks = "0"
    last_time = 0

    for seg in segments:
        idle_gap = seg.start_time - last_time
        if idle_gap > 0:
            bars.append(" " * idle_gap)
            labels.append(" " * idle_gap)
            last_time = seg.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, seg.duration)
        style = f"on {pid_color(seg.pid)}"
        if seg.starved:
            bars.append("!" * width, style=f"bold white {style}")
        else:
            bars.append(" " * width, style=style)
        labels.append(seg.name[:width].ljust(width), style="bold")

        last_time = seg.end_time
        time_marks += f"{last_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(bars)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
