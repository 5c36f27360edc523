# services/progress.py
"""
Progress computation for a project's phases and tasks.

Everything here is pure and recomputed on every read; nothing is stored.
Phases are anything with `id`, `title`, `step_order` and `tasks`; tasks
are anything with `is_done`. ORM rows and plain test doubles both fit.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence


def _percent(done: int, total: int) -> int:
    """round(100 * done / total) with halves rounded up; 0 when there is nothing to do."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def _counts(phase) -> tuple:
    tasks = phase.tasks or []
    return sum(1 for t in tasks if t.is_done), len(tasks)


def sort_phases(phases: Sequence) -> list:
    return sorted(phases, key=lambda p: (p.step_order, p.id or 0))


def phase_percent(phase) -> int:
    done, total = _counts(phase)
    return _percent(done, total)


def project_percent(phases: Sequence) -> int:
    done = total = 0
    for phase in phases:
        d, t = _counts(phase)
        done += d
        total += t
    return _percent(done, total)


def current_phase(phases: Sequence):
    """
    First phase in order with an undone task. When every phase is done
    (or empty) the last phase is current; with no phases there is none.
    """
    ordered = sort_phases(phases)
    if not ordered:
        return None
    for phase in ordered:
        if any(not t.is_done for t in (phase.tasks or [])):
            return phase
    return ordered[-1]


@dataclass
class PhaseProgress:
    phase_id: int
    title: str
    step_order: int
    done: int
    total: int
    percent: int


@dataclass
class ProjectProgress:
    done: int
    total: int
    percent: int
    phases: List[PhaseProgress] = field(default_factory=list)
    current_phase_id: Optional[int] = None
    current_phase_title: Optional[str] = None
    current_phase_done: int = 0
    current_phase_total: int = 0


def build_progress(phases: Sequence) -> ProjectProgress:
    ordered = sort_phases(phases)
    phase_rows = []
    for phase in ordered:
        done, total = _counts(phase)
        phase_rows.append(PhaseProgress(
            phase_id=phase.id,
            title=phase.title,
            step_order=phase.step_order,
            done=done,
            total=total,
            percent=_percent(done, total),
        ))

    done = sum(p.done for p in phase_rows)
    total = sum(p.total for p in phase_rows)
    progress = ProjectProgress(done=done, total=total, percent=_percent(done, total), phases=phase_rows)

    current = current_phase(ordered)
    if current is not None:
        progress.current_phase_id = current.id
        progress.current_phase_title = current.title
        progress.current_phase_done, progress.current_phase_total = _counts(current)
    return progress
