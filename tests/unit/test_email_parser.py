"""
Unit tests for the MIME decoder (email_parser.py).
"""

import pytest

from gateway.shared.exceptions import DecodeError
from tests.utils.event_generator import build_raw_email


class TestExtractAddress:
    """Tests for _extract_address helper function."""

    def test_extract_from_angle_brackets(self):
        from lambdas.process_inbound_email.email_parser import _extract_address

        assert _extract_address("John Doe <john@example.com>") == "john@example.com"
        assert _extract_address("<john@example.com>") == "john@example.com"

    def test_extract_plain_email(self):
        from lambdas.process_inbound_email.email_parser import _extract_address

        assert _extract_address("  john@example.com  ") == "john@example.com"

    def test_extract_empty(self):
        from lambdas.process_inbound_email.email_parser import _extract_address

        assert _extract_address("") == ""
        assert _extract_address(None) == ""


class TestDecodeEmail:
    """Tests for decode_email."""

    def test_decodes_sender_subject_and_message_id(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        raw = build_raw_email(
            sender="Alice <alice@example.com>",
            subject="Quarterly numbers",
            message_id="<abc123@example.com>",
        )

        decoded = decode_email(raw)

        assert decoded.sender == "alice@example.com"
        assert decoded.subject == "Quarterly numbers"
        assert decoded.message_id is not None
        assert "abc123@example.com" in decoded.message_id
        assert decoded.attachments == ()

    def test_plain_text_body_is_not_an_attachment(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        decoded = decode_email(build_raw_email(body="just text"))

        assert decoded.attachments == ()

    def test_attachments_in_document_order(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        raw = build_raw_email(
            attachments=[
                ("a.json", "application/json", b'{"a": 1}'),
                ("b.pdf", "application/pdf", b"%PDF-1.4"),
                ("c.txt", "text/plain", b"notes"),
            ]
        )

        decoded = decode_email(raw)

        assert [a.filename for a in decoded.attachments] == ["a.json", "b.pdf", "c.txt"]
        assert [a.media_type for a in decoded.attachments] == [
            "application/json",
            "application/pdf",
            "text/plain",
        ]
        assert decoded.attachments[0].content == b'{"a": 1}'
        assert decoded.attachments[1].size_bytes == len(b"%PDF-1.4")

    def test_accepts_str_payload(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        raw = build_raw_email(sender="bob@example.com").decode("ascii")

        assert decode_email(raw).sender == "bob@example.com"

    def test_non_multipart_json_root_is_an_attachment(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        raw = (
            b"From: bot@example.com\r\n"
            b"Content-Type: application/json\r\n"
            b"\r\n"
            b'{"k": 1}\r\n'
        )

        decoded = decode_email(raw)

        assert len(decoded.attachments) == 1
        assert decoded.attachments[0].media_type == "application/json"

    def test_malformed_body_still_yields_attachments(self):
        """Broken base64 in the body part does not stop attachment extraction."""
        from lambdas.process_inbound_email.email_parser import decode_email

        raw = (
            b"From: a@example.com\r\n"
            b"MIME-Version: 1.0\r\n"
            b'Content-Type: multipart/mixed; boundary="XYZ"\r\n'
            b"\r\n"
            b"--XYZ\r\n"
            b"Content-Type: text/plain; charset=no-such-charset\r\n"
            b"Content-Transfer-Encoding: base64\r\n"
            b"\r\n"
            b"!!!not base64!!!\r\n"
            b"--XYZ\r\n"
            b"Content-Type: application/json\r\n"
            b'Content-Disposition: attachment; filename="data.json"\r\n'
            b"\r\n"
            b'{"ok": true}\r\n'
            b"--XYZ--\r\n"
        )

        decoded = decode_email(raw)

        assert len(decoded.attachments) == 1
        assert decoded.attachments[0].filename == "data.json"
        assert decoded.attachments[0].content.strip() == b'{"ok": true}'

    def test_empty_payload_raises(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        with pytest.raises(DecodeError):
            decode_email(b"")

        with pytest.raises(DecodeError):
            decode_email(b"   \r\n")

    def test_payload_without_headers_raises(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        with pytest.raises(DecodeError, match="no header section"):
            decode_email(b"this is not a mime message at all")

    def test_non_bytes_payload_raises(self):
        from lambdas.process_inbound_email.email_parser import decode_email

        with pytest.raises(DecodeError):
            decode_email(12345)
