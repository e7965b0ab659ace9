"""
Stage ordering and dispatch routing.

Pure functions that know, for each work item action, the canonical order
of its stages and the NSQ topic a worker listens on for each stage.
"""

import logging
from typing import Dict, Tuple, Union

from app.core.errors import InvalidStageError, UnsupportedActionError, UnsupportedCombinationError
from app.models.work_item import Stage, WorkItemAction

logger = logging.getLogger(__name__)

INGEST_STAGES: Tuple[Stage, ...] = (
    Stage.RECEIVE,
    Stage.VALIDATE,
    Stage.REINGEST_CHECK,
    Stage.COPY_TO_STAGING,
    Stage.FORMAT_IDENTIFICATION,
    Stage.STORE,
    Stage.STORAGE_VALIDATION,
    Stage.RECORD,
    Stage.CLEANUP,
)

CANONICAL_STAGES: Dict[WorkItemAction, Tuple[Stage, ...]] = {
    WorkItemAction.INGEST: INGEST_STAGES,
    WorkItemAction.DELETE: (Stage.REQUESTED,),
    WorkItemAction.RESTORE_OBJECT: (Stage.REQUESTED,),
    WorkItemAction.RESTORE_FILE: (Stage.REQUESTED,),
    WorkItemAction.GLACIER_RESTORE: (Stage.REQUESTED,),
    WorkItemAction.FIXITY_CHECK: (Stage.REQUESTED,),
}

INGEST_TOPICS: Dict[Stage, str] = {
    Stage.RECEIVE: "ingest01_prefetch",
    Stage.VALIDATE: "ingest02_bag_validation",
    Stage.REINGEST_CHECK: "ingest03_reingest_check",
    Stage.COPY_TO_STAGING: "ingest04_staging",
    Stage.FORMAT_IDENTIFICATION: "ingest05_format_identification",
    Stage.STORE: "ingest06_storage",
    Stage.STORAGE_VALIDATION: "ingest07_storage_validation",
    Stage.RECORD: "ingest08_record",
    Stage.CLEANUP: "ingest09_cleanup",
}

# Single-stage actions go to one topic regardless of stage.
ACTION_TOPICS: Dict[WorkItemAction, str] = {
    WorkItemAction.DELETE: "delete_item",
    WorkItemAction.RESTORE_OBJECT: "restore_object",
    WorkItemAction.RESTORE_FILE: "restore_file",
    WorkItemAction.GLACIER_RESTORE: "restore_glacier",
    WorkItemAction.FIXITY_CHECK: "fixity_check",
}


def _as_action(action: Union[str, WorkItemAction]) -> WorkItemAction:
    try:
        return WorkItemAction(action)
    except ValueError:
        raise UnsupportedActionError(f"No stage sequence is defined for action '{action}'")


def _as_stage(stage: Union[str, Stage]) -> Stage:
    try:
        return Stage(stage)
    except ValueError:
        raise InvalidStageError(f"Unknown stage '{stage}'")


def canonical_stages(action: Union[str, WorkItemAction]) -> Tuple[Stage, ...]:
    """Return the fixed stage sequence for an action."""
    return CANONICAL_STAGES[_as_action(action)]


def stage_position(action: Union[str, WorkItemAction], stage: Union[str, Stage]) -> int:
    """Return the 0-based index of a stage within its action's sequence."""
    stages = canonical_stages(action)
    try:
        return stages.index(_as_stage(stage))
    except ValueError:
        raise InvalidStageError(f"Stage '{stage}' is not part of the {action} sequence")


def first_stage(action: Union[str, WorkItemAction]) -> Stage:
    return canonical_stages(action)[0]


def topic_for(action: Union[str, WorkItemAction], stage: Union[str, Stage]) -> str:
    """
    Return the NSQ topic for an action and stage.

    Raises UnsupportedCombinationError for any pair without a routing rule,
    including unknown actions and stages outside the action's sequence.
    """
    try:
        stage_position(action, stage)
    except (UnsupportedActionError, InvalidStageError) as e:
        logger.error(f"No topic for action '{action}' at stage '{stage}': {e}")
        raise UnsupportedCombinationError(
            f"No queue topic for action '{action}' at stage '{stage}'"
        ) from e
    action = WorkItemAction(action)
    if action == WorkItemAction.INGEST:
        return INGEST_TOPICS[Stage(stage)]
    return ACTION_TOPICS[action]
