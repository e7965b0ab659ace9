"""
Alert Service

Renders alert text from templates, records alerts and emails them to
their recipients.
"""

from pathlib import Path
from typing import Any, Dict
from datetime import datetime
import logging

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from sqlalchemy import update
from sqlmodel import Session

from app.core.context import RegistryContext
from app.models.alert import Alert, AlertUser

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class AlertService:
    """Service for creating and sending alerts."""

    def __init__(self, db: Session, context: RegistryContext):
        self.db = db
        self.context = context
        self.templates = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            undefined=StrictUndefined,
            trim_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, template_name: str, template_data: Dict[str, Any]) -> str:
        return self.templates.get_template(template_name).render(**template_data)

    def create_alert(self, alert: Alert, template_name: str, template_data: Dict[str, Any]) -> Alert:
        """
        Fill in the alert's content from a template, save it with its
        recipients and work items, then email each recipient.

        Args:
            alert: Unsaved alert with institution, type, subject and users set
            template_name: Template path under app/templates, e.g. "alerts/deletion_requested.txt"
            template_data: Values for the template

        Returns:
            The saved alert
        """
        alert.content = self.render(template_name, template_data)
        alert.created_at = datetime.utcnow()
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)

        for recipient in alert.users:
            try:
                self.context.email_sender.send(recipient.email, alert.subject, alert.content)
            except Exception as e:
                logger.error(f"Saved but could not send alert {alert.id} to user {recipient.email}: {e}")
                continue
            self.mark_as_sent(alert, recipient.id)

        if self.context.settings.is_test_or_dev_env():
            logger.debug(f"Alert {alert.id} content:\n{alert.content}")
        return alert

    def mark_as_sent(self, alert: Alert, user_id: int) -> None:
        self.db.exec(
            update(AlertUser)
            .where(AlertUser.alert_id == alert.id, AlertUser.user_id == user_id)
            .values(sent_at=datetime.utcnow())
        )
        self.db.commit()
