"""AWS SES client wrapper used as the outbound message transport."""

import logging
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

import aioboto3
from botocore.exceptions import ClientError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import settings
from app.schemas.messenger import OutboundMessage

logger = logging.getLogger(__name__)


class SESError(Exception):
    """Base exception for SES operations."""

    pass


def build_mime_message(message: OutboundMessage) -> MIMEMultipart:
    """
    Build the raw MIME message for an outbound message.

    The body goes into a multipart/alternative part; attachments are
    base64-encoded parts with a Content-Disposition filename.

    Args:
        message: Outbound message

    Returns:
        MIME message ready for send_raw_email
    """
    msg = MIMEMultipart("mixed")
    msg["Subject"] = message.subject
    msg["From"] = message.from_email
    msg["To"] = ", ".join(message.to)

    body = MIMEMultipart("alternative")
    subtype = "html" if message.content_type == "html" else "plain"
    body.attach(MIMEText(message.body, subtype, "utf-8"))
    msg.attach(body)

    for attachment in message.attachments:
        _, _, subtype = attachment.content_type.partition("/")
        part = MIMEApplication(attachment.content, _subtype=subtype or "octet-stream")
        part.add_header("Content-Disposition", "attachment", filename=attachment.name)
        msg.attach(part)

    return msg


class SESClient:
    """Async wrapper for AWS SES operations."""

    def __init__(self):
        """Initialize SES client with AWS credentials from settings."""
        self.session = aioboto3.Session(
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=settings.AWS_REGION,
        )
        self.configuration_set = settings.SES_CONFIGURATION_SET

    @retry(
        retry=retry_if_exception_type((ClientError,)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _send_raw(self, params: dict[str, Any]) -> str:
        async with self.session.client("ses") as ses:
            response = await ses.send_raw_email(**params)
            return response["MessageId"]

    async def push(self, message: OutboundMessage) -> str:
        """
        Send a message via AWS SES with retry logic.

        Args:
            message: Outbound message (recipients, subject, body, attachments)

        Returns:
            SES MessageId

        Raises:
            SESError: If sending fails after retries
        """
        params: dict[str, Any] = {
            "Source": message.from_email,
            "Destinations": message.to,
            "RawMessage": {"Data": build_mime_message(message).as_string()},
        }
        if self.configuration_set:
            params["ConfigurationSetName"] = self.configuration_set

        try:
            ses_message_id = await self._send_raw(params)

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            error_message = e.response.get("Error", {}).get("Message", str(e))

            logger.error(f"SES send failed: {error_code} - {error_message}")

            if error_code == "MessageRejected":
                raise SESError(f"Email rejected by SES: {error_message}")
            elif error_code == "MailFromDomainNotVerified":
                raise SESError(f"Sender domain not verified: {error_message}")
            elif error_code == "AccountSendingPausedException":
                raise SESError("Account sending is paused")
            else:
                raise SESError(f"SES error ({error_code}): {error_message}")

        except Exception as e:
            logger.error(f"Unexpected error sending email: {str(e)}")
            raise SESError(f"Failed to send email: {str(e)}")

        logger.info(
            f"Message pushed. SES MessageId: {ses_message_id}, "
            f"attachments={len(message.attachments)}"
        )
        return ses_message_id


# Global SES client instance
ses_client = SESClient()
