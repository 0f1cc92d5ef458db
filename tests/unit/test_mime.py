"""Unit tests for Gmail message building and decoding."""

import base64
import email
import email.message

import pytest

from gws_tools.services.mime import (
    build_raw_message,
    decode_body_data,
    extract_attachments,
    extract_body,
    headers_dict,
    urlsafe_to_standard_b64,
)


def parse_raw(raw: str) -> email.message.Message:
    return email.message_from_bytes(base64.urlsafe_b64decode(raw))


def b64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


@pytest.mark.unit
class TestBuildRawMessage:
    """Tests for build_raw_message()."""

    def test_should_build_plain_message_with_headers(self) -> None:
        raw = build_raw_message(
            to="ana@example.com",
            subject="Hello",
            body="Hi there",
            cc="cc@example.com",
            in_reply_to="<abc@mail>",
            references="<abc@mail>",
        )
        message = parse_raw(raw)

        assert message["To"] == "ana@example.com"
        assert message["Cc"] == "cc@example.com"
        assert message["In-Reply-To"] == "<abc@mail>"
        assert message.get_content_type() == "text/plain"
        assert message.get_payload(decode=True).decode() == "Hi there"

    def test_should_build_html_message(self) -> None:
        message = parse_raw(build_raw_message("a@example.com", "S", "<b>x</b>", is_html=True))

        assert message.get_content_type() == "text/html"

    def test_should_attach_files_as_multipart_mixed(self) -> None:
        content = base64.b64encode(b"col1,col2\n").decode()
        raw = build_raw_message(
            "a@example.com",
            "Report",
            "See attached",
            attachments=[{"filename": "r.csv", "mime_type": "text/csv", "content": content}],
        )
        message = parse_raw(raw)

        assert message.get_content_type() == "multipart/mixed"
        parts = message.get_payload()
        assert parts[1].get_filename() == "r.csv"
        assert parts[1].get_payload(decode=True) == b"col1,col2\n"

    def test_should_reject_attachment_without_content(self) -> None:
        with pytest.raises(ValueError, match="missing field"):
            build_raw_message("a@example.com", "S", "B", attachments=[{"filename": "x"}])

    def test_should_reject_invalid_base64(self) -> None:
        with pytest.raises(ValueError, match="not valid base64"):
            build_raw_message(
                "a@example.com", "S", "B", attachments=[{"filename": "x", "content": "@@@"}]
            )


@pytest.mark.unit
class TestDecoding:
    """Tests for body and attachment extraction."""

    def test_should_decode_unpadded_body(self) -> None:
        assert decode_body_data(b64url("hello!")) == "hello!"

    def test_should_convert_urlsafe_to_standard(self) -> None:
        assert urlsafe_to_standard_b64("ab-_") == "ab+/"
        assert urlsafe_to_standard_b64("abc") == "abc="

    def test_should_lowercase_header_names(self) -> None:
        payload = {"headers": [{"name": "Subject", "value": "Hi"}]}

        assert headers_dict(payload) == {"subject": "Hi"}

    def test_should_prefer_plain_text_part(self) -> None:
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [
                {"mimeType": "text/html", "body": {"data": b64url("<p>html</p>")}},
                {"mimeType": "text/plain", "body": {"data": b64url("plain")}},
            ],
        }

        assert extract_body(payload) == "plain"

    def test_should_fall_back_to_html(self) -> None:
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [{"mimeType": "text/html", "body": {"data": b64url("<p>html</p>")}}],
        }

        assert extract_body(payload) == "<p>html</p>"

    def test_should_read_single_part_body(self) -> None:
        payload = {"mimeType": "text/html", "body": {"data": b64url("<i>only</i>")}}

        assert extract_body(payload) == "<i>only</i>"

    def test_should_collect_nested_attachments(self) -> None:
        payload = {
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64url("x")}},
                {
                    "mimeType": "multipart/mixed",
                    "parts": [
                        {
                            "filename": "a.pdf",
                            "mimeType": "application/pdf",
                            "body": {"attachmentId": "att1", "size": 100},
                        }
                    ],
                },
            ]
        }

        assert extract_attachments(payload) == [
            {
                "attachment_id": "att1",
                "filename": "a.pdf",
                "mime_type": "application/pdf",
                "size": 100,
            }
        ]
