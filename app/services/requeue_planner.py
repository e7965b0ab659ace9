"""
Requeue planning.

An operator may send a stuck work item back to a stage it has already
reached, never ahead of it. These functions compute the legal targets and
reset the item's execution state. Persisting the item and queueing it
again is the caller's job.
"""

import logging
from typing import List

from app.core.errors import InvalidStageError, NotSupportedError
from app.models.work_item import FINAL_STATUSES, Stage, Status, WorkItem
from app.services.dispatch_router import canonical_stages, stage_position

logger = logging.getLogger(__name__)


def has_completed(item: WorkItem) -> bool:
    """True when the item reached a final outcome: success, cancelled, or failed with no retry."""
    if item.status in FINAL_STATUSES:
        return True
    return item.status == Status.FAILED.value and not item.retry


def legal_requeue_targets(item: WorkItem) -> List[Stage]:
    """
    Stages the item may be requeued to, in canonical order.

    Multi-stage actions can go back to any stage up to and including the
    current one. Single-stage actions can only go back to Requested.
    """
    stages = canonical_stages(item.action)
    if len(stages) == 1:
        return [Stage.REQUESTED]
    position = stage_position(item.action, item.stage)
    return list(stages[:position + 1])


def set_for_requeue(item: WorkItem, target_stage: str) -> WorkItem:
    """Reset the item so a worker will pick it up again at target_stage."""
    legal = legal_requeue_targets(item)
    if target_stage not in legal:
        logger.error(
            f"Rejected requeue of work item {item.id} ({item.action}) to '{target_stage}'. "
            f"Legal targets: {[s.value for s in legal]}"
        )
        raise InvalidStageError(f"Work item {item.id} cannot be requeued to '{target_stage}'")
    item.stage = Stage(target_stage).value
    item.status = Status.PENDING.value
    item.retry = True
    item.needs_admin_review = False
    item.node = ""
    item.pid = 0
    item.note = f"Requeued for {item.stage}"
    return item


def requeue_options(item: WorkItem) -> List[Stage]:
    """Stages to offer on the requeue form. Completed items can't be requeued."""
    if has_completed(item):
        logger.error(
            f"Invalid request for requeue form. Work item {item.id} ({item.name}) "
            f"has completed {item.action} and cannot be requeued."
        )
        raise NotSupportedError(f"Work item {item.id} has completed and cannot be requeued")
    return legal_requeue_targets(item)
