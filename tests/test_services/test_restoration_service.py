import pytest
from unittest.mock import AsyncMock

from app.core.errors import AlreadyDeletedError, NotFoundError, PendingWorkError, PermissionDeniedError
from app.models.intellectual_object import State
from app.models.work_item import Stage, Status, WorkItemAction
from app.services.queue_client import QueueError
from app.services.restoration_service import RestorationService


@pytest.mark.asyncio
async def test_restore_object(session, context, intellectual_object, inst_user):
    item = await RestorationService(session, context).restore_object(intellectual_object.id, inst_user)

    assert item.action == WorkItemAction.RESTORE_OBJECT.value
    assert item.stage == Stage.REQUESTED.value
    assert item.status == Status.PENDING.value
    assert item.user == inst_user.email
    assert item.etag == "ingest-etag"
    context.queue_client.enqueue.assert_awaited_once_with("restore_object", item.id)


@pytest.mark.asyncio
async def test_restore_glacier_object(session, context, intellectual_object, inst_user):
    intellectual_object.storage_option = "Glacier-Deep-OR"
    session.add(intellectual_object)
    session.commit()

    item = await RestorationService(session, context).restore_object(intellectual_object.id, inst_user)

    assert item.action == WorkItemAction.GLACIER_RESTORE.value
    context.queue_client.enqueue.assert_awaited_once_with("restore_glacier", item.id)


@pytest.mark.asyncio
async def test_restore_file(session, context, generic_file, inst_user):
    item = await RestorationService(session, context).restore_file(generic_file.id, inst_user)

    assert item.action == WorkItemAction.RESTORE_FILE.value
    assert item.generic_file_id == generic_file.id
    context.queue_client.enqueue.assert_awaited_once_with("restore_file", item.id)


@pytest.mark.asyncio
async def test_restore_object_with_pending_work(session, context, intellectual_object, make_work_item, inst_user):
    make_work_item(intellectual_object, action=WorkItemAction.DELETE.value, stage=Stage.REQUESTED.value,
                   status=Status.PENDING.value)
    with pytest.raises(PendingWorkError):
        await RestorationService(session, context).restore_object(intellectual_object.id, inst_user)
    context.queue_client.enqueue.assert_not_awaited()


@pytest.mark.asyncio
async def test_restore_deleted_file(session, context, generic_file, inst_user):
    generic_file.state = State.DELETED.value
    session.add(generic_file)
    session.commit()
    with pytest.raises(AlreadyDeletedError):
        await RestorationService(session, context).restore_file(generic_file.id, inst_user)


@pytest.mark.asyncio
async def test_restore_requires_permission(session, context, intellectual_object, other_admin):
    with pytest.raises(PermissionDeniedError):
        await RestorationService(session, context).restore_object(intellectual_object.id, other_admin)


@pytest.mark.asyncio
async def test_restore_missing_object(session, context, inst_user):
    with pytest.raises(NotFoundError):
        await RestorationService(session, context).restore_object(12345, inst_user)


@pytest.mark.asyncio
async def test_restore_queue_failure(session, context, intellectual_object, inst_user):
    context.queue_client.enqueue = AsyncMock(side_effect=QueueError("timeout"))
    with pytest.raises(QueueError):
        await RestorationService(session, context).restore_object(intellectual_object.id, inst_user)
