from types import SimpleNamespace

import pytest

from services.progress import build_progress, current_phase, phase_percent, project_percent


def make_phase(pid, order, total, done, title=None):
    tasks = [SimpleNamespace(is_done=i < done) for i in range(total)]
    return SimpleNamespace(id=pid, title=title or f"Phase {pid}", step_order=order, tasks=tasks)


def make_phases(totals, dones):
    return [make_phase(i + 1, i + 1, t, d) for i, (t, d) in enumerate(zip(totals, dones))]


@pytest.mark.parametrize("total,done,expected", [
    (0, 0, 0),
    (4, 0, 0),
    (4, 4, 100),
    (3, 1, 33),
    (3, 2, 67),
    (8, 1, 13),  # 12.5 rounds up
])
def test_phase_percent(total, done, expected):
    assert phase_percent(make_phase(1, 1, total, done)) == expected


def test_project_percent_zero_without_tasks():
    assert project_percent([]) == 0
    assert project_percent(make_phases([0, 0], [0, 0])) == 0


def test_project_percent_counts_tasks_not_phases():
    # 3 of 4 tasks done, even though one phase is fully done and one is not
    assert project_percent(make_phases([1, 3], [1, 2])) == 75


def test_current_phase_skips_done_and_empty_phases():
    phases = make_phases([2, 0, 3, 1, 4], [2, 0, 1, 0, 0])
    assert phases.index(current_phase(phases)) == 2


def test_current_phase_is_last_when_everything_is_done():
    phases = make_phases([1, 2, 0], [1, 2, 0])
    assert current_phase(phases).id == 3


def test_current_phase_none_without_phases():
    assert current_phase([]) is None


def test_current_phase_follows_order_not_list_position():
    late = make_phase(1, 2, 1, 0)
    early = make_phase(2, 1, 1, 0)
    assert current_phase([late, early]) is early


def test_build_progress():
    progress = build_progress(make_phases([2, 0, 3], [2, 0, 1]))
    assert (progress.done, progress.total, progress.percent) == (3, 5, 60)
    assert [p.percent for p in progress.phases] == [100, 0, 33]
    assert progress.current_phase_id == 3
    assert (progress.current_phase_done, progress.current_phase_total) == (1, 3)
