import pytest

from scheduler_sim.errors import InvalidWorkloadError
from scheduler_sim.fcai import FCAIRun, SelectionMode, non_preemptive_time, scaled_ceil, schedule_fcai
from scheduler_sim.models import Process


def _spans(result):
    return [(s.name, s.start_time, s.duration) for s in result.timeline]


def test_scaled_ceil_is_exact():
    assert scaled_ceil(3, 3) == 10
    assert scaled_ceil(1, 3) == 4
    assert scaled_ceil(0, 7) == 0


def test_scaled_ceil_zero_scale():
    assert scaled_ceil(0, 0) == 0
    assert scaled_ceil(5, 0) == 0


def test_non_preemptive_time():
    assert [non_preemptive_time(q) for q in (1, 3, 4, 5, 10, 15)] == [1, 2, 2, 2, 4, 6]


def test_single_process_grows_quantum():
    p = Process("P", pid=1, arrival_time=0, burst_time=5, priority=1, quantum=3)
    res = schedule_fcai([p])

    # ceil(0.4 * 3) = 2 units, then 1 more to exhaust the quantum -> 3 + 2.
    assert _spans(res) == [("P", 0, 3), ("P", 3, 2)]
    assert p.completion_time == 5
    assert res.quantum_history == {1: [3, 5]}


def test_single_process_with_context_switch():
    p = Process("P", pid=1, arrival_time=0, burst_time=5, priority=1, quantum=3)
    res = schedule_fcai([p], context_switch=1)
    assert _spans(res) == [("P", 0, 3), ("P", 4, 2)]
    assert p.completion_time == 6


def test_single_process_factor_with_zero_arrival_scale():
    p = Process("P", pid=1, arrival_time=0, burst_time=4, priority=2, quantum=10)
    res = schedule_fcai([p])
    assert p.fcai_factor == 8 + 0 + 10
    assert _spans(res) == [("P", 0, 4)]


def test_exhausted_quantum_goes_back_in_fcfs_order():
    procs = [
        Process("P1", pid=1, arrival_time=0, burst_time=10, priority=5, quantum=4),
        Process("P2", pid=2, arrival_time=1, burst_time=2, priority=1, quantum=3),
    ]
    res = schedule_fcai(procs)

    assert _spans(res) == [("P1", 0, 4), ("P2", 4, 2), ("P1", 6, 6)]
    assert res.completion_times() == {1: 12, 2: 6}
    assert res.quantum_history == {1: [4, 6], 2: [3]}


def test_preemption_by_better_factor():
    procs = [
        Process("P1", pid=1, arrival_time=0, burst_time=10, priority=0, quantum=10),
        Process("P2", pid=2, arrival_time=2, burst_time=2, priority=10, quantum=4),
    ]
    res = schedule_fcai(procs)

    # P2 is admitted at t=5 with factor 0 + 10 + 2 = 12 < P1's 20, so P1
    # stops early and keeps its 5 unused units: 10 + 5 = 15.
    assert _spans(res) == [("P1", 0, 5), ("P2", 5, 2), ("P1", 7, 5)]
    assert res.completion_times() == {1: 12, 2: 7}
    assert res.quantum_history == {1: [10, 15], 2: [4]}


def test_default_quantum_fills_missing():
    procs = [
        Process("A", pid=1, arrival_time=0, burst_time=3),
        Process("B", pid=2, arrival_time=0, burst_time=2, quantum=5),
    ]
    res = schedule_fcai(procs, quantum=2)
    assert res.quantum_history[1][0] == 2
    assert res.quantum_history[2][0] == 5
    for p in procs:
        assert sum(s.duration for s in res.timeline if s.pid == p.pid) == p.burst_time


def test_missing_quantum_rejected():
    with pytest.raises(InvalidWorkloadError, match="quantum"):
        schedule_fcai([Process("A", pid=1, arrival_time=0, burst_time=3)])


def test_idle_until_first_arrival():
    p = Process("P", pid=1, arrival_time=4, burst_time=2, quantum=5)
    res = schedule_fcai([p])
    assert _spans(res) == [("P", 4, 2)]
    assert p.completion_time == 6


def test_best_factor_mode_ignores_queue_order():
    procs = [
        Process("A", pid=1, arrival_time=0, burst_time=9, priority=1, quantum=2),
        Process("B", pid=2, arrival_time=0, burst_time=1, priority=1, quantum=2),
    ]
    run = FCAIRun(procs)
    run.refresh_ready_queue()
    assert list(run.ready) == [1, 2]

    run.mode = SelectionMode.BEST_FACTOR
    assert run.select() is procs[1]
    assert list(run.ready) == [1]


def test_fcfs_mode_takes_head():
    procs = [
        Process("A", pid=1, arrival_time=0, burst_time=9, priority=1, quantum=2),
        Process("B", pid=2, arrival_time=0, burst_time=1, priority=1, quantum=2),
    ]
    run = FCAIRun(procs)
    run.refresh_ready_queue()
    assert run.mode is SelectionMode.FCFS
    assert run.select() is procs[0]


def _mode_procs():
    return [
        Process("P1", pid=1, arrival_time=0, burst_time=10, priority=0, quantum=10),
        Process("A", pid=2, arrival_time=1, burst_time=5, priority=5, quantum=3),
        Process("B", pid=3, arrival_time=2, burst_time=2, priority=10, quantum=4),
    ]


def test_preemption_switches_to_best_factor():
    res = schedule_fcai(_mode_procs())

    # P1 is preempted at t=5 with the ready queue [A, B, P1]. B has the
    # lowest factor (12 against A's 15), so it runs ahead of the head A.
    assert _spans(res) == [("P1", 0, 5), ("B", 5, 2), ("A", 7, 3), ("P1", 10, 5), ("A", 15, 2)]
    assert res.completion_times() == {1: 15, 2: 17, 3: 7}
    assert res.quantum_history == {1: [10, 15], 2: [3, 5], 3: [4]}


def test_mode_after_each_dispatch_outcome():
    procs = _mode_procs()
    p1, a, b = procs
    run = FCAIRun(procs)

    run.refresh_ready_queue()
    run.dispatch(run.select(), context_switch=0)
    assert run.mode is SelectionMode.BEST_FACTOR
    assert p1.current_quantum == 15
    assert list(run.ready) == [2, 3, 1]

    run.refresh_ready_queue()
    assert run.select() is b
    run.dispatch(b, context_switch=0)
    assert b.is_complete
    assert run.mode is SelectionMode.FCFS

    run.refresh_ready_queue()
    assert run.select() is a
    run.mode = SelectionMode.BEST_FACTOR
    run.dispatch(a, context_switch=0)
    assert not a.is_complete
    assert a.current_quantum == 5
    assert run.mode is SelectionMode.FCFS


def test_rejected_workload_keeps_quanta():
    procs = [
        Process("A", pid=1, arrival_time=0, burst_time=3),
        Process("B", pid=2, arrival_time=0, burst_time=2, quantum=0),
    ]
    with pytest.raises(InvalidWorkloadError, match="'B'"):
        schedule_fcai(procs, quantum=2)
    assert procs[0].current_quantum is None
