# services/phase_service.py
"""
Structural editing of a project's phases.

The settings view builds a whole batch (retitles, reorders, additions and
deletions) and saves it in one call. The batch is applied in a single
transaction; the only per-phase failure is deleting a phase that still owns
tasks, which is reported back without blocking the rest of the batch.
"""
import logging
from typing import List, Sequence

from sqlmodel import Session

from core.exceptions import ValidationError
from core.security import Principal
from models.models import ProjectPhase
from schemas.project_schema import PhaseBatchResult, PhaseEdit, PhaseRejection
from services.access import commit_or_raise, get_project_for, require_admin
from services.progress import sort_phases
from services.project_service import to_phase_read

logger = logging.getLogger(__name__)

PHASE_HAS_TASKS = "Phase still has tasks. Move or delete them first."


def swap_adjacent(phases: Sequence, index: int, direction: str) -> list:
    """
    Move the phase at `index` one slot "up" or "down" by swapping its order
    with its neighbour. Returns the list re-sorted; out-of-range moves are no-ops.
    """
    ordered = list(phases)
    if direction not in ("up", "down"):
        raise ValidationError("Direction must be 'up' or 'down'.", field="direction")
    other = index - 1 if direction == "up" else index + 1
    if index < 0 or index >= len(ordered) or other < 0 or other >= len(ordered):
        return ordered

    a, b = ordered[index], ordered[other]
    a.step_order, b.step_order = b.step_order, a.step_order
    ordered[index], ordered[other] = b, a
    return ordered


def apply_phase_batch(session: Session, principal: Principal, project_id: int, edits: List[PhaseEdit]) -> PhaseBatchResult:
    require_admin(principal)
    project = get_project_for(session, principal, project_id)
    existing = {p.id: p for p in project.phases}

    for edit in edits:
        if edit.id is not None and edit.id not in existing:
            raise ValidationError(f"Phase {edit.id} does not belong to this project.", field="phases")
        if edit.id is None and not edit.delete and not edit.title.strip():
            raise ValidationError("Phase title is required.", field="phases")

    # Decide deletions before touching anything so lazy loads don't flush half a batch
    rejected: List[PhaseRejection] = []
    to_delete: List[ProjectPhase] = []
    for edit in edits:
        if edit.id is None or not edit.delete:
            continue
        phase = existing[edit.id]
        if phase.tasks:
            rejected.append(PhaseRejection(phase_id=phase.id, title=phase.title, reason=PHASE_HAS_TASKS))
        else:
            to_delete.append(phase)
    rejected_ids = {r.phase_id for r in rejected}

    # (a) deletions
    for phase in to_delete:
        project.phases.remove(phase)
        session.delete(phase)

    # (b) kept phases
    for edit in edits:
        if edit.id is None or edit.delete or edit.id in rejected_ids:
            continue
        phase = existing[edit.id]
        phase.title = edit.title.strip() or phase.title
        phase.step_order = edit.step_order

    # (c) new phases; a new row marked for deletion never existed
    for edit in edits:
        if edit.id is None and not edit.delete:
            project.phases.append(ProjectPhase(project_id=project.id, title=edit.title.strip(), step_order=edit.step_order))

    # (d) dense 1..N; the stable sort keeps existing rows ahead of new ones on ties
    survivors = sorted(
        [p for p in project.phases if p.id is not None] + [p for p in project.phases if p.id is None],
        key=lambda p: p.step_order,
    )
    for order, phase in enumerate(survivors, start=1):
        phase.step_order = order
        session.add(phase)

    commit_or_raise(session, "Failed to save phases")

    # (e) reload
    session.refresh(project)
    phases = sort_phases(project.phases)
    logger.info(
        "✅ Saved phases for project %s: %d phases, %d deleted, %d rejected",
        project_id, len(phases), len(to_delete), len(rejected),
    )
    return PhaseBatchResult(phases=[to_phase_read(p) for p in phases], rejected=rejected)
