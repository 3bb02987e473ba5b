"""
SMTP transport for dispatching letters to Santa.

One connection per message through aiosmtplib.send; failures surface as
DispatchError so the letters flush can abort as a whole.
"""

from email.message import EmailMessage
from email.utils import make_msgid

import aiosmtplib

from santa_letters.config import settings
from santa_letters.infrastructure.observability.logging import get_logger
from santa_letters.models.domain.letter_domain import Email, Letter

logger = get_logger(__name__)

SANTA_EMOJI = "\N{FATHER CHRISTMAS}"


def build_letter_email(letter: Letter, sender: str, recipient: str) -> Email:
    return Email(
        sender=sender,
        to=recipient,
        subject=f"Letter to {SANTA_EMOJI} from {letter.username}",
        text=letter.message,
    )


class DispatchError(Exception):
    """Sending a letter through the SMTP transport failed."""

    def __init__(self, message: str, letter_id: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.letter_id = letter_id
        self.recoverable = recoverable


class EmailService:
    def __init__(
        self,
        smtp_config: dict | None = None,
        sender: str | None = None,
        recipient: str | None = None,
    ):
        self.smtp_config = smtp_config or settings.get_smtp_config()
        self.sender = sender or settings.MAIL_FROM
        self.recipient = recipient or settings.MAIL_TO

        if not (self.smtp_config.get("username") and self.smtp_config.get("password")):
            logger.warning(
                "SMTP credentials not configured - sends will be unauthenticated",
                host=self.smtp_config.get("hostname"),
            )

    async def send_mail(self, email: Email) -> str:
        """
        Send one email.

        Returns:
            str: The Message-ID of the accepted message

        Raises:
            DispatchError: If the SMTP exchange fails
        """
        message = EmailMessage()
        message["From"] = email.sender
        message["To"] = email.to
        message["Subject"] = email.subject
        message_id = make_msgid(domain=email.sender.rpartition("@")[2] or None)
        message["Message-ID"] = message_id
        message.set_content(email.text)

        try:
            await aiosmtplib.send(message, **self.smtp_config)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(
                "SMTP send failed",
                to=email.to,
                subject=email.subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DispatchError(f"Failed to send email: {e}") from e

        logger.info("Email sent", to=email.to, message_id=message_id)
        return message_id

    async def send_letter(self, letter: Letter) -> str:
        """Dispatch a letter to the configured recipient."""
        email = build_letter_email(letter, self.sender, self.recipient)
        try:
            return await self.send_mail(email)
        except DispatchError as e:
            e.letter_id = letter.id
            raise
