import logging

logger = logging.getLogger(__name__)


class LoggingEmailSender:
    """
    Email transport for development and test.

    Production delivery (SES/SMTP) is an external collaborator with the same
    send() signature. Writing the body to the log lets developers follow
    review links without a mail server.
    """

    def send(self, to: str, subject: str, body: str) -> None:
        logger.info(f"Email to {to}: {subject}")
        logger.debug(body)
