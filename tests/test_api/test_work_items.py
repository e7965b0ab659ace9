from app.models.work_item import Stage, Status


def test_get_work_item(client, intellectual_object, make_work_item, inst_user, other_admin, auth_headers_for):
    item = make_work_item(intellectual_object)

    response = client.get(f"/api/v1/work_items/{item.id}", headers=auth_headers_for(inst_user))
    assert response.status_code == 200
    assert response.json()["name"] == intellectual_object.bag_name

    response = client.get(f"/api/v1/work_items/{item.id}", headers=auth_headers_for(other_admin))
    assert response.status_code == 403


def test_get_missing_work_item(client, inst_user, auth_headers_for):
    assert client.get("/api/v1/work_items/777", headers=auth_headers_for(inst_user)).status_code == 404


def test_requeue_options(client, intellectual_object, make_work_item, sys_admin, auth_headers_for):
    item = make_work_item(intellectual_object, stage=Stage.STORE.value, status=Status.STARTED.value)

    response = client.get(f"/api/v1/work_items/{item.id}/requeue_options", headers=auth_headers_for(sys_admin))

    assert response.status_code == 200
    data = response.json()
    assert data["current_stage"] == "Store"
    assert data["stages"] == [
        "Receive", "Validate", "Reingest Check", "Copy To Staging", "Format Identification", "Store",
    ]


def test_requeue_options_for_completed_item(client, intellectual_object, make_work_item, sys_admin,
                                            auth_headers_for):
    item = make_work_item(intellectual_object)
    response = client.get(f"/api/v1/work_items/{item.id}/requeue_options", headers=auth_headers_for(sys_admin))
    assert response.status_code == 405
    assert response.json()["kind"] == "not_supported"


def test_requeue(client, context, intellectual_object, make_work_item, sys_admin, auth_headers_for):
    item = make_work_item(intellectual_object, stage=Stage.STORE.value, status=Status.FAILED.value,
                          retry=True, node="worker-2", pid=31)

    for method in ("put", "post"):
        response = getattr(client, method)(f"/api/v1/work_items/{item.id}/requeue", data={"stage": "Validate"},
                                           headers=auth_headers_for(sys_admin))
        assert response.status_code == 200, response.json()
        data = response.json()
        assert data["topic"] == "ingest02_bag_validation"
        assert data["work_item"]["stage"] == "Validate"
        assert data["work_item"]["status"] == "Pending"
        assert data["work_item"]["node"] == ""
        assert data["work_item"]["pid"] == 0
    assert context.queue_client.enqueue.await_count == 2


def test_requeue_to_later_stage(client, intellectual_object, make_work_item, sys_admin, auth_headers_for):
    item = make_work_item(intellectual_object, stage=Stage.STORE.value, status=Status.STARTED.value)
    response = client.put(f"/api/v1/work_items/{item.id}/requeue", data={"stage": "Cleanup"},
                          headers=auth_headers_for(sys_admin))
    assert response.status_code == 500
    assert response.json()["kind"] == "invalid_stage"


def test_requeue_without_stage(client, intellectual_object, make_work_item, sys_admin, auth_headers_for):
    item = make_work_item(intellectual_object, stage=Stage.STORE.value, status=Status.STARTED.value)
    response = client.put(f"/api/v1/work_items/{item.id}/requeue", headers=auth_headers_for(sys_admin))
    assert response.status_code == 500
    assert response.json()["kind"] == "invalid_stage"


def test_requeue_requires_sys_admin(client, intellectual_object, make_work_item, inst_admin, auth_headers_for):
    item = make_work_item(intellectual_object, stage=Stage.STORE.value, status=Status.STARTED.value)
    response = client.put(f"/api/v1/work_items/{item.id}/requeue", data={"stage": "Receive"},
                          headers=auth_headers_for(inst_admin))
    assert response.status_code == 403
