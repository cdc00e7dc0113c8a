import logging
import mimetypes
import smtplib
import ssl
from email.message import EmailMessage
from pathlib import Path
from typing import Sequence

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from easy_kindle.config import Config
from easy_kindle.errors import DeliveryError
from easy_kindle.models import Attachment

logger = logging.getLogger(__name__)

mimetypes.add_type("application/epub+zip", ".epub")
mimetypes.add_type("application/x-mobipocket-ebook", ".mobi")
mimetypes.add_type("application/vnd.amazon.ebook", ".azw3")

# Connection drops worth another try; authentication and refusals are not
TRANSIENT_ERRORS = (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError, ConnectionError, TimeoutError)


def build_message(config: Config, subject: str, body: str, attachments: Sequence[Attachment]) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = config.sender
    msg["To"] = config.receiver
    msg["Subject"] = subject
    msg.set_content(body)

    for attachment in attachments:
        content_type, _ = mimetypes.guess_type(attachment.filename)
        maintype, subtype = (content_type or "application/octet-stream").split("/", 1)
        data = Path(attachment.path).read_bytes()
        msg.add_attachment(data, maintype=maintype, subtype=subtype, filename=attachment.filename)
    return msg


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    reraise=True,
)
def _send(config: Config, msg: EmailMessage):
    if config.smtp_port == 465:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(config.smtp_server, config.smtp_port, context=context, timeout=60) as server:
            server.login(config.sender, config.password)
            server.send_message(msg)
    else:
        # STARTTLS (commonly 587)
        with smtplib.SMTP(config.smtp_server, config.smtp_port, timeout=60) as server:
            server.starttls(context=ssl.create_default_context())
            server.login(config.sender, config.password)
            server.send_message(msg)


def send_mail_with_attachments(config: Config, subject: str, body: str, attachments: Sequence[Attachment]):
    """
    Mail the attachments to the configured e-reader address.
    Raises DeliveryError if the message could not be handed to the server.
    """
    if not attachments:
        raise DeliveryError("No attachments provided to send")

    try:
        msg = build_message(config, subject, body, attachments)
        _send(config, msg)
    except (smtplib.SMTPException, OSError) as e:
        raise DeliveryError(f"Failed to send {subject!r}: {e}") from e

    logger.info(f"📧 Sent {len(attachments)} attachment(s) to {config.receiver}: {subject}")
