"""Tests for the SES transport wrapper."""

from email import message_from_string
from unittest.mock import AsyncMock, patch

import pytest
from botocore.exceptions import ClientError

from app.schemas.messenger import Attachment, OutboundMessage
from app.services.ses_client import SESClient, SESError, build_mime_message


def make_message(**kwargs) -> OutboundMessage:
    defaults = {
        "from_email": "listmail <noreply@test.example.com>",
        "to": ["reader@example.com"],
        "subject": "Your data",
        "body": "<p>Attached</p>",
    }
    defaults.update(kwargs)
    return OutboundMessage(**defaults)


class TestBuildMimeMessage:
    def test_headers_and_body(self):
        mime = message_from_string(build_mime_message(make_message()).as_string())
        assert mime["Subject"] == "Your data"
        assert mime["To"] == "reader@example.com"
        html_parts = [p for p in mime.walk() if p.get_content_type() == "text/html"]
        assert len(html_parts) == 1

    def test_attachment(self):
        message = make_message(attachments=[Attachment(name="data.json", content=b'{"a": 1}')])
        mime = message_from_string(build_mime_message(message).as_string())
        parts = [p for p in mime.walk() if p.get_filename() == "data.json"]
        assert len(parts) == 1
        assert parts[0].get_content_type() == "application/json"
        assert parts[0].get_payload(decode=True) == b'{"a": 1}'


class TestPush:
    async def test_returns_message_id(self):
        client = SESClient()
        with patch.object(client, "_send_raw", AsyncMock(return_value="ses-123")) as send:
            assert await client.push(make_message()) == "ses-123"

        params = send.call_args.args[0]
        assert params["Destinations"] == ["reader@example.com"]
        assert "RawMessage" in params

    async def test_client_error_mapped(self):
        client = SESClient()
        error = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Address blacklisted"}},
            "SendRawEmail",
        )
        with patch.object(client, "_send_raw", AsyncMock(side_effect=error)):
            with pytest.raises(SESError, match="rejected"):
                await client.push(make_message())
