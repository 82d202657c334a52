"""
Production Stage Engine

Owns WorkOrder.current_stage and the ProductionStageHistory ledger:
- start_stage: open an entry for a stage
- finish_stage: close the open entry, advance to the next stage and
  auto-start it (except when the next stage is delivered)
- update_stage: administrative jump to an arbitrary stage

Every function loads the work order with a row lock, checks its
precondition and mutates in the caller's transaction. Functions flush;
the caller commits.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from stitchops.core.status_config import (
    ProductionStage,
    TERMINAL_STAGE,
    get_next_stage,
    parse_stage,
    stage_label,
)
from stitchops.exceptions import NotFoundError, StageAlreadyStartedError, StageNotFoundError
from stitchops.logging_config import get_logger
from stitchops.models.work_order import WorkOrder, ProductionStageHistory

logger = get_logger(__name__)


@dataclass
class StageStartResult:
    entry: ProductionStageHistory
    work_order: WorkOrder


@dataclass
class StageTransitionResult:
    """Outcome of finish_stage"""
    entry: ProductionStageHistory
    work_order: WorkOrder
    duration: int
    next_stage: ProductionStage
    next_entry: Optional[ProductionStageHistory] = None


@dataclass
class StageUpdateResult:
    work_order: WorkOrder
    entry: ProductionStageHistory
    closed_entries: List[ProductionStageHistory] = field(default_factory=list)


# ============================================================================
# Ledger helpers
# ============================================================================

def get_work_order_for_update(db: Session, work_order_id: int) -> WorkOrder:
    """
    Load a work order with a row lock.

    Raises:
        NotFoundError: If the work order does not exist
    """
    work_order = (
        db.query(WorkOrder)
        .filter(WorkOrder.id == work_order_id)
        .with_for_update()
        .first()
    )
    if not work_order:
        raise NotFoundError("Work order", work_order_id)
    return work_order


def get_open_entry(db: Session, work_order_id: int, stage) -> Optional[ProductionStageHistory]:
    """The running history entry for (work order, stage), if any."""
    stage = parse_stage(stage)
    return (
        db.query(ProductionStageHistory)
        .filter(
            ProductionStageHistory.work_order_id == work_order_id,
            ProductionStageHistory.stage == stage.value,
            ProductionStageHistory.completed_at.is_(None),
        )
        .order_by(ProductionStageHistory.id.desc())
        .first()
    )


def compute_duration(started_at: datetime, completed_at: datetime) -> int:
    """
    Whole minutes between two timestamps, truncated.

    A negative interval (clock skew) is clamped to 0.
    """
    seconds = (completed_at - started_at).total_seconds()
    if seconds < 0:
        logger.warning(
            "Negative stage duration clamped to 0",
            extra={"started_at": started_at.isoformat(), "completed_at": completed_at.isoformat()},
        )
        return 0
    return int(seconds // 60)


def open_entry(
    db: Session,
    work_order: WorkOrder,
    stage: ProductionStage,
    user_id: str,
    notes: Optional[str] = None,
    started_at: Optional[datetime] = None,
) -> ProductionStageHistory:
    """Append an open history entry."""
    entry = ProductionStageHistory(
        work_order_id=work_order.id,
        stage=stage.value,
        started_at=started_at or datetime.utcnow(),
        completed_at=None,
        duration=None,
        notes=notes,
        user_id=user_id,
    )
    db.add(entry)
    return entry


def close_entry(
    entry: ProductionStageHistory,
    completed_at: datetime,
    notes: Optional[str] = None,
    duration: Optional[int] = None,
) -> ProductionStageHistory:
    """
    Complete an open entry.

    duration defaults to the elapsed whole minutes. notes replace the
    existing notes only when given.
    """
    if duration is None:
        duration = compute_duration(entry.started_at, completed_at)
    entry.completed_at = completed_at
    entry.duration = duration
    entry.notes = notes or entry.notes
    return entry


# ============================================================================
# Stage transitions
# ============================================================================

def start_stage(
    db: Session,
    work_order_id: int,
    stage,
    user_id: str,
    notes: Optional[str] = None,
) -> StageStartResult:
    """
    Open a history entry for a stage and make it the current stage.

    Raises:
        InvalidStageError: Unknown stage
        NotFoundError: Work order does not exist
        StageAlreadyStartedError: The stage already has an open entry
    """
    stage = parse_stage(stage)
    work_order = get_work_order_for_update(db, work_order_id)

    if get_open_entry(db, work_order.id, stage):
        logger.warning(
            f"Rejected start of {stage.value} on {work_order.work_order_number}: already running"
        )
        raise StageAlreadyStartedError(work_order.id, stage.value)

    now = datetime.utcnow()
    entry = open_entry(db, work_order, stage, user_id, notes=notes, started_at=now)

    work_order.current_stage = stage.value
    if stage == ProductionStage.ORDER_PROCESSING:
        work_order.started_at = now

    db.flush()
    logger.info(
        f"WO {work_order.work_order_number}: started {stage.value}",
        extra={"work_order_id": work_order.id, "stage": stage.value, "user_id": user_id},
    )
    return StageStartResult(entry=entry, work_order=work_order)


def finish_stage(
    db: Session,
    work_order_id: int,
    stage,
    user_id: str,
    notes: Optional[str] = None,
) -> StageTransitionResult:
    """
    Close the open entry for a stage and advance the work order.

    The next stage is auto-started unless it is delivered, in which case
    the work order is marked completed. Finishing delivered itself maps
    back to delivered.

    Raises:
        InvalidStageError: Unknown stage
        NotFoundError: Work order does not exist
        StageNotFoundError: The stage has no open entry
    """
    stage = parse_stage(stage)
    work_order = get_work_order_for_update(db, work_order_id)

    entry = get_open_entry(db, work_order.id, stage)
    if not entry:
        logger.warning(
            f"Rejected finish of {stage.value} on {work_order.work_order_number}: not running"
        )
        raise StageNotFoundError(work_order.id, stage.value)

    now = datetime.utcnow()
    close_entry(entry, now, notes=notes)

    next_stage = get_next_stage(stage)
    work_order.current_stage = next_stage.value

    next_entry = None
    if next_stage == TERMINAL_STAGE:
        work_order.completed_at = now
    else:
        work_order.completed_at = None
        next_entry = get_open_entry(db, work_order.id, next_stage)
        if next_entry is None:
            next_entry = open_entry(
                db,
                work_order,
                next_stage,
                user_id,
                notes=f"Auto-started after completing {stage_label(stage)}",
                started_at=now,
            )

    db.flush()
    logger.info(
        f"WO {work_order.work_order_number}: finished {stage.value} in {entry.duration}m, "
        f"now at {next_stage.value}",
        extra={
            "work_order_id": work_order.id,
            "stage": stage.value,
            "next_stage": next_stage.value,
            "duration": entry.duration,
            "user_id": user_id,
        },
    )
    return StageTransitionResult(
        entry=entry,
        work_order=work_order,
        duration=entry.duration,
        next_stage=next_stage,
        next_entry=next_entry,
    )


def update_stage(
    db: Session,
    work_order_id: int,
    new_stage,
    user_id: str,
    notes: Optional[str] = None,
) -> StageUpdateResult:
    """
    Administrative override: move a work order to any stage.

    Closes the open entries of the current stage (duration from each
    entry's own started_at), opens an entry for new_stage and sets
    completed_at only when new_stage is delivered. It does not follow
    the stage sequence.

    Raises:
        InvalidStageError: Unknown stage
        NotFoundError: Work order does not exist
        StageAlreadyStartedError: new_stage already has an open entry
    """
    new_stage = parse_stage(new_stage)
    work_order = get_work_order_for_update(db, work_order_id)
    previous_stage = work_order.current_stage

    if new_stage.value != previous_stage and get_open_entry(db, work_order.id, new_stage):
        raise StageAlreadyStartedError(work_order.id, new_stage.value)

    now = datetime.utcnow()
    open_current = (
        db.query(ProductionStageHistory)
        .filter(
            ProductionStageHistory.work_order_id == work_order.id,
            ProductionStageHistory.stage == previous_stage,
            ProductionStageHistory.completed_at.is_(None),
        )
        .all()
    )
    closed = [close_entry(entry, now) for entry in open_current]

    work_order.current_stage = new_stage.value
    work_order.completed_at = now if new_stage == TERMINAL_STAGE else None

    entry = open_entry(
        db,
        work_order,
        new_stage,
        user_id,
        notes=notes or f"Stage changed to {stage_label(new_stage)}",
        started_at=now,
    )

    db.flush()
    logger.warning(
        f"WO {work_order.work_order_number}: stage override {previous_stage} → {new_stage.value}",
        extra={"work_order_id": work_order.id, "user_id": user_id, "closed_entries": len(closed)},
    )
    return StageUpdateResult(work_order=work_order, entry=entry, closed_entries=closed)


def get_stage_timeline(db: Session, work_order_id: int) -> dict:
    """History entries in start order with the total recorded minutes."""
    work_order = db.get(WorkOrder, work_order_id)
    if not work_order:
        raise NotFoundError("Work order", work_order_id)

    entries = (
        db.query(ProductionStageHistory)
        .filter(ProductionStageHistory.work_order_id == work_order.id)
        .order_by(ProductionStageHistory.started_at, ProductionStageHistory.id)
        .all()
    )
    open_entries = [e for e in entries if e.completed_at is None]

    return {
        "work_order_id": work_order.id,
        "current_stage": work_order.current_stage,
        "entries": entries,
        "total_minutes": sum(e.duration or 0 for e in entries),
        "open_stage": open_entries[-1].stage if open_entries else None,
    }
