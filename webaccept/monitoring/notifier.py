"""
Failure digest notification by plain-text email.
"""

import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

from webaccept.config.settings import Settings
from webaccept.monitoring.logger import get_logger

SUBJECT_PREFIX = "[WebAccept]"


class MailNotifier:
    """Sends the failure digest of a suite run."""

    def __init__(
        self,
        settings: Settings,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.settings = settings
        self.smtp_factory = smtp_factory
        self.logger = get_logger("webaccept.notifier", suite=settings.suite_name)

    def has_credentials(self) -> bool:
        """Whether sender, recipient and reply-to addresses are all set."""
        return all(
            value.strip()
            for value in (self.settings.mail_from, self.settings.mail_to, self.settings.mail_reply_to)
        )

    def subject(self) -> str:
        return f"{SUBJECT_PREFIX} Test failed, Branch: {self.settings.branch}"

    def build_message(self, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = self.subject()
        message["From"] = self.settings.mail_from
        message["To"] = self.settings.mail_to
        message["Reply-To"] = self.settings.mail_reply_to
        message.set_content(body, charset="utf-8")
        return message

    def send(self, body: str) -> bool:
        """
        Send the digest.

        Args:
            body: Concatenated failure digest lines

        Returns:
            True if the message was handed to the SMTP server
        """
        if not self.has_credentials():
            self.logger.warning("Invalid e-mail credentials, not possible to send the error mail")
            return False

        message = self.build_message(body)
        try:
            with self.smtp_factory(self.settings.smtp_host, self.settings.smtp_port) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            self.logger.error(f"Error mail could not be sent: {e}")
            return False

        self.logger.info("Error e-mail sent")
        return True


def create_notifier(settings: Settings) -> Optional[MailNotifier]:
    """Return a notifier when failure mails are enabled."""
    if not settings.send_error_mail:
        return None
    return MailNotifier(settings)
