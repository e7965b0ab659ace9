from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.models.deletion_request import DeletionRequest
from app.models.work_item import WorkItem, WorkItemAction


def _request_object_delete(client, obj, user, auth_headers_for):
    response = client.post(f"/api/v1/objects/{obj.id}/request_delete", headers=auth_headers_for(user))
    assert response.status_code == 201, response.json()
    return response.json()


def _review_token(context, request_id):
    """Pull the plaintext token out of the review link that was emailed."""
    for call in context.email_sender.send.call_args_list:
        body = call.args[2]
        marker = f"/deletions/review/{request_id}?token="
        if marker in body:
            return body.split(marker)[1].split()[0]
    raise AssertionError("No review link was sent")


def test_requires_authentication(client: TestClient, intellectual_object):
    response = client.post(f"/api/v1/objects/{intellectual_object.id}/request_delete")
    assert response.status_code == 401


def test_request_object_delete(client, context, intellectual_object, inst_user, inst_admin, auth_headers_for):
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)

    assert data["status"] == "pending"
    assert data["object_identifiers"] == [intellectual_object.identifier]
    assert data["requested_by_id"] == inst_user.id
    assert "encrypted_confirmation_token" not in data
    assert "token" not in str(data)


def test_request_file_delete(client, generic_file, inst_user, inst_admin, auth_headers_for):
    response = client.post(f"/api/v1/files/{generic_file.id}/request_delete", headers=auth_headers_for(inst_user))
    assert response.status_code == 201
    assert response.json()["file_identifiers"] == [generic_file.identifier]


def test_request_delete_with_pending_work(client, session: Session, intellectual_object, make_work_item,
                                          inst_user, auth_headers_for):
    make_work_item(intellectual_object, stage="Store", status="Started")
    response = client.post(f"/api/v1/objects/{intellectual_object.id}/request_delete",
                           headers=auth_headers_for(inst_user))

    assert response.status_code == 409
    assert response.json()["kind"] == "pending_work"
    assert "X-Error-ID" in response.headers
    assert session.exec(select(DeletionRequest)).all() == []


def test_request_delete_other_institution(client, intellectual_object, other_admin, auth_headers_for):
    response = client.post(f"/api/v1/objects/{intellectual_object.id}/request_delete",
                           headers=auth_headers_for(other_admin))
    assert response.status_code == 403
    assert response.json()["kind"] == "permission_denied"


def test_request_delete_missing_object(client, inst_user, auth_headers_for):
    response = client.post("/api/v1/objects/9999/request_delete", headers=auth_headers_for(inst_user))
    assert response.status_code == 404


def test_review_and_approve(client, session, context, intellectual_object, inst_user, inst_admin,
                            auth_headers_for):
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)
    token = _review_token(context, data["id"])
    headers = auth_headers_for(inst_admin)

    review = client.get(f"/api/v1/deletions/review/{data['id']}", params={"token": token}, headers=headers)
    assert review.status_code == 200
    assert review.json()["status"] == "pending"

    approve = client.post(f"/api/v1/deletions/approve/{data['id']}", data={"token": token}, headers=headers)
    assert approve.status_code == 200, approve.json()
    approved = approve.json()
    assert approved["status"] == "confirmed"
    assert approved["confirmed_by_id"] == inst_admin.id
    assert len(approved["work_item_ids"]) == 1
    assert approved["work_item_id"] == approved["work_item_ids"][0]

    item = session.get(WorkItem, approved["work_item_id"])
    assert item.action == WorkItemAction.DELETE.value
    context.queue_client.enqueue.assert_awaited_once_with("delete_item", item.id)

    again = client.post(f"/api/v1/deletions/approve/{data['id']}", data={"token": token}, headers=headers)
    assert again.status_code == 409
    assert again.json()["kind"] == "already_approved"

    cancel = client.post(f"/api/v1/deletions/cancel/{data['id']}", data={"token": token}, headers=headers)
    assert cancel.status_code == 409
    assert cancel.json()["kind"] == "already_approved"


def test_cancel(client, session, context, intellectual_object, inst_user, inst_admin, auth_headers_for):
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)
    token = _review_token(context, data["id"])

    response = client.post(f"/api/v1/deletions/cancel/{data['id']}", data={"token": token},
                           headers=auth_headers_for(inst_admin))

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["work_item_id"] is None
    context.queue_client.enqueue.assert_not_awaited()

    approve = client.post(f"/api/v1/deletions/approve/{data['id']}", data={"token": token},
                          headers=auth_headers_for(inst_admin))
    assert approve.status_code == 409
    assert approve.json()["kind"] == "already_cancelled"


def test_bad_token(client, context, intellectual_object, inst_user, inst_admin, auth_headers_for):
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)
    headers = auth_headers_for(inst_admin)

    for path in ("approve", "cancel"):
        response = client.post(f"/api/v1/deletions/{path}/{data['id']}", data={"token": "nope"}, headers=headers)
        assert response.status_code == 403
        assert response.json()["kind"] == "invalid_token"
    response = client.post(f"/api/v1/deletions/approve/{data['id']}", headers=headers)
    assert response.status_code == 403

    response = client.get(f"/api/v1/deletions/review/{data['id']}", params={"token": "nope"}, headers=headers)
    assert response.status_code == 403


def test_inst_user_cannot_approve(client, context, intellectual_object, inst_user, inst_admin, auth_headers_for):
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)
    token = _review_token(context, data["id"])

    review = client.get(f"/api/v1/deletions/review/{data['id']}", params={"token": token},
                        headers=auth_headers_for(inst_user))
    assert review.status_code == 403
    approve = client.post(f"/api/v1/deletions/approve/{data['id']}", data={"token": token},
                          headers=auth_headers_for(inst_user))
    assert approve.status_code == 403
    assert approve.json()["kind"] == "permission_denied"


def test_review_unknown_request(client, inst_admin, auth_headers_for):
    response = client.get("/api/v1/deletions/review/555", params={"token": "x"},
                          headers=auth_headers_for(inst_admin))
    assert response.status_code == 404


def test_show(client, intellectual_object, inst_user, inst_admin, other_admin, auth_headers_for):
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)

    response = client.get(f"/api/v1/deletions/show/{data['id']}", headers=auth_headers_for(inst_user))
    assert response.status_code == 200
    assert response.json()["id"] == data["id"]

    response = client.get(f"/api/v1/deletions/show/{data['id']}", headers=auth_headers_for(other_admin))
    assert response.status_code == 403


def test_approve_with_queue_down(client, session, context, intellectual_object, inst_user, inst_admin,
                                 auth_headers_for):
    from unittest.mock import AsyncMock
    from app.services.queue_client import QueueError

    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)
    token = _review_token(context, data["id"])
    context.queue_client.enqueue = AsyncMock(side_effect=QueueError("nsqd unreachable"))

    response = client.post(f"/api/v1/deletions/approve/{data['id']}", data={"token": token},
                           headers=auth_headers_for(inst_admin))

    assert response.status_code == 500
    assert "X-Error-ID" in response.headers
    request = session.get(DeletionRequest, data["id"])
    session.refresh(request)
    assert request.confirmed_at is not None
    assert request.work_item_id is None


def _links(body, base_url):
    return [line.strip()[len(base_url):] for line in body.splitlines() if line.strip().startswith(base_url)]


def test_alert_links_resolve(client, context, intellectual_object, inst_user, inst_admin, auth_headers_for):
    base_url = context.settings.base_url
    headers = auth_headers_for(inst_admin)
    data = _request_object_delete(client, intellectual_object, inst_user, auth_headers_for)
    review_link, show_link = _links(context.email_sender.send.call_args.args[2], base_url)

    review = client.get(review_link, headers=headers)
    assert review.status_code == 200
    assert review.json()["id"] == data["id"]
    show = client.get(show_link, headers=headers)
    assert show.status_code == 200

    token = _review_token(context, data["id"])
    approve = client.post(f"/api/v1/deletions/approve/{data['id']}", data={"token": token}, headers=headers)
    assert approve.status_code == 200
    work_item_link, _ = _links(context.email_sender.send.call_args.args[2], base_url)
    item = client.get(work_item_link, headers=headers)
    assert item.status_code == 200
    assert item.json()["id"] == approve.json()["work_item_id"]
