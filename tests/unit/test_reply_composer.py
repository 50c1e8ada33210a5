"""
Unit tests for the threaded auto-reply (reply_composer.py).
"""


class TestComposeReply:
    """Tests for compose_reply."""

    def test_no_message_id_means_no_reply(self):
        from lambdas.process_inbound_email.reply_composer import compose_reply

        assert compose_reply(None, "a@x.com", "gateway@example.com") is None
        assert compose_reply("", "a@x.com", "gateway@example.com") is None

    def test_thread_id_copied_verbatim(self):
        from lambdas.process_inbound_email.reply_composer import compose_reply

        reply = compose_reply("<abc123@example.com>", "a@x.com", "gateway@example.com")

        assert reply is not None
        assert reply.header("In-Reply-To") == "<abc123@example.com>"
        assert reply.header("References") == "<abc123@example.com>"

    def test_addresses_and_defaults(self):
        from lambdas.process_inbound_email.reply_composer import (
            DEFAULT_REPLY_BODY,
            DEFAULT_REPLY_SUBJECT,
            compose_reply,
        )

        reply = compose_reply("<id-1>", "a@x.com", "gateway@example.com")

        assert reply.from_address == "gateway@example.com"
        assert reply.to_address == "a@x.com"
        assert reply.subject == DEFAULT_REPLY_SUBJECT
        assert reply.body_text == DEFAULT_REPLY_BODY

    def test_custom_subject_and_body(self):
        from lambdas.process_inbound_email.reply_composer import compose_reply

        reply = compose_reply(
            "<id-1>",
            "a@x.com",
            "gateway@example.com",
            subject="Received",
            body="We got it.",
        )

        assert reply.subject == "Received"
        assert reply.body_text == "We got it."

    def test_marked_as_auto_reply(self):
        from lambdas.process_inbound_email.reply_composer import compose_reply

        reply = compose_reply("<id-1>", "a@x.com", "gateway@example.com")

        assert reply.header("auto-submitted") == "auto-replied"

    def test_wire_format_keeps_thread_id(self):
        from lambdas.process_inbound_email.reply_composer import compose_reply

        wire = compose_reply("<abc123@example.com>", "a@x.com", "gateway@example.com").as_bytes()

        assert b"In-Reply-To: <abc123@example.com>\r\n" in wire
        assert b"References: <abc123@example.com>\r\n" in wire

    def test_long_thread_id_is_not_refolded(self):
        """Gmail/Outlook ids longer than one folded line stay byte-for-byte."""
        from email.parser import BytesParser
        from email.policy import compat32

        from lambdas.process_inbound_email.reply_composer import compose_reply

        thread_id = "<CAF" + "x" * 80 + "@mail.gmail.com>"

        wire = compose_reply(thread_id, "a@x.com", "gateway@example.com").as_bytes()
        parsed = BytesParser(policy=compat32).parsebytes(wire)

        assert parsed["In-Reply-To"] == thread_id
        assert parsed["References"] == thread_id
        assert b"=?utf-8?" not in wire
