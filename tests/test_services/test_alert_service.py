import pytest
from jinja2 import UndefinedError
from sqlmodel import select

from app.models.alert import Alert, AlertType, AlertUser
from app.services.alert_service import AlertService


def _alert(institution, users):
    alert = Alert(
        institution_id=institution.id,
        type=AlertType.DELETION_CANCELLED.value,
        subject=AlertType.DELETION_CANCELLED.value,
    )
    alert.users = users
    return alert


TEMPLATE_DATA = {
    "canceller_name": "Alma Admin",
    "requester_name": "Ursula User",
    "item_type": "object",
    "identifiers": ["test.edu/bag1", "test.edu/bag2"],
    "deletion_read_only_url": "https://registry.example.edu/deletions/show/1",
}


def test_render_cancellation(session, context):
    content = AlertService(session, context).render("alerts/deletion_cancelled.txt", TEMPLATE_DATA)
    assert content.startswith("Alma Admin cancelled the request by Ursula User")
    assert "  test.edu/bag1\n  test.edu/bag2\n" in content
    assert "https://registry.example.edu/deletions/show/1" in content


def test_render_requires_all_values(session, context):
    data = dict(TEMPLATE_DATA)
    del data["canceller_name"]
    with pytest.raises(UndefinedError):
        AlertService(session, context).render("alerts/deletion_cancelled.txt", data)


def test_create_alert_sends_and_marks_each_recipient(session, context, institution, inst_admin, inst_user):
    alert = AlertService(session, context).create_alert(
        _alert(institution, [inst_admin, inst_user]), "alerts/deletion_cancelled.txt", TEMPLATE_DATA)

    assert alert.id is not None
    assert "Alma Admin cancelled" in alert.content
    assert context.email_sender.send.call_count == 2
    sent_to = {call.args[0] for call in context.email_sender.send.call_args_list}
    assert sent_to == {inst_admin.email, inst_user.email}
    links = session.exec(select(AlertUser).where(AlertUser.alert_id == alert.id)).all()
    assert len(links) == 2
    assert all(link.sent_at is not None for link in links)


def test_send_failure_is_logged_and_not_marked(session, context, institution, inst_admin, inst_user):
    def send(to, subject, body):
        if to == inst_user.email:
            raise ConnectionError("smtp unavailable")

    context.email_sender.send.side_effect = send
    alert = AlertService(session, context).create_alert(
        _alert(institution, [inst_admin, inst_user]), "alerts/deletion_cancelled.txt", TEMPLATE_DATA)

    links = {link.user_id: link for link in session.exec(select(AlertUser).where(AlertUser.alert_id == alert.id))}
    assert links[inst_admin.id].sent_at is not None
    assert links[inst_user.id].sent_at is None
