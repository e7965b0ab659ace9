from dataclasses import dataclass, field

from fastapi import Request

from app.core.config import Settings
from app.core.tokens import ConfirmationTokenAuthority
from app.services.email_sender import LoggingEmailSender
from app.services.queue_client import NSQClient


@dataclass
class RegistryContext:
    """
    Collaborators shared by every service: settings, the queue client, the
    email transport and the confirmation token authority. Built once at
    startup and passed to service constructors.
    """
    settings: Settings
    queue_client: NSQClient
    email_sender: LoggingEmailSender
    token_authority: ConfirmationTokenAuthority = field(default_factory=ConfirmationTokenAuthority)


def build_context(settings: Settings) -> RegistryContext:
    return RegistryContext(
        settings=settings,
        queue_client=NSQClient(settings.nsq_url, timeout=settings.nsq_timeout),
        email_sender=LoggingEmailSender(),
    )


def get_context(request: Request) -> RegistryContext:
    """Dependency that returns the context built at startup."""
    return request.app.state.context
