"""Building and decoding Gmail RFC 2822 messages."""

import base64
import binascii
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any


def build_raw_message(
    to: str,
    subject: str,
    body: str,
    cc: str | None = None,
    bcc: str | None = None,
    reply_to: str | None = None,
    is_html: bool = False,
    attachments: list[dict[str, Any]] | None = None,
    in_reply_to: str | None = None,
    references: str | None = None,
) -> str:
    """Build an RFC 2822 message and return it base64url encoded.

    Messages with attachments are ``multipart/mixed``; each attachment is a
    dict with ``filename``, ``mime_type`` and base64 ``content``.

    Args:
        to: Recipient address(es), comma-separated.
        subject: Subject line.
        body: Plain text or HTML body.
        cc: Optional CC recipients.
        bcc: Optional BCC recipients.
        reply_to: Optional Reply-To address.
        is_html: Send the body as text/html.
        attachments: Optional attachments.
        in_reply_to: Message-ID being replied to.
        references: References header for threading.

    Returns:
        Base64url encoded message suitable for the Gmail ``raw`` field.

    Raises:
        ValueError: If an attachment is malformed.
    """
    text_part = MIMEText(body, "html" if is_html else "plain", "utf-8")

    if attachments:
        message: MIMEBase = MIMEMultipart("mixed")
        message.attach(text_part)
        for attachment in attachments:
            message.attach(_attachment_part(attachment))
    else:
        message = text_part

    message["To"] = to
    message["Subject"] = subject
    if cc:
        message["Cc"] = cc
    if bcc:
        message["Bcc"] = bcc
    if reply_to:
        message["Reply-To"] = reply_to
    if in_reply_to:
        message["In-Reply-To"] = in_reply_to
    if references:
        message["References"] = references

    return base64.urlsafe_b64encode(message.as_bytes()).decode()


def _attachment_part(attachment: dict[str, Any]) -> MIMEBase:
    try:
        filename = attachment["filename"]
        content = base64.b64decode(attachment["content"], validate=True)
    except KeyError as e:
        raise ValueError(f"Attachment is missing field {e}") from e
    except binascii.Error as e:
        raise ValueError(f"Attachment {attachment.get('filename')!r} is not valid base64") from e

    mime_type = attachment.get("mime_type") or "application/octet-stream"
    maintype, _, subtype = mime_type.partition("/")
    part = MIMEBase(maintype, subtype or "octet-stream", name=filename)
    part.set_payload(content)
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=filename)
    return part


def decode_body_data(data: str) -> str:
    """Decode a Gmail base64url body, tolerating missing padding."""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def urlsafe_to_standard_b64(data: str) -> str:
    """Convert Gmail's base64url attachment data to standard base64."""
    standard = data.replace("-", "+").replace("_", "/")
    return standard + "=" * (-len(standard) % 4)


def headers_dict(payload: dict[str, Any]) -> dict[str, str]:
    """Map header names (lower-cased) to values."""
    return {h["name"].lower(): h["value"] for h in payload.get("headers", [])}


def find_body(payload: dict[str, Any], mime_type: str) -> str:
    """Return the first body part of the given MIME type, searching depth-first."""
    if payload.get("mimeType") == mime_type and payload.get("body", {}).get("data"):
        return decode_body_data(payload["body"]["data"])

    for part in payload.get("parts", []):
        text = find_body(part, mime_type)
        if text:
            return text
    return ""


def extract_body(payload: dict[str, Any]) -> str:
    """Extract a readable body: plain text, falling back to HTML or the raw body."""
    text = find_body(payload, "text/plain")
    if text:
        return text
    if not payload.get("parts") and payload.get("body", {}).get("data"):
        return decode_body_data(payload["body"]["data"])
    return find_body(payload, "text/html")


def extract_attachments(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Collect attachment metadata from every part of a message."""
    attachments = []
    body = payload.get("body", {})
    if payload.get("filename") and body.get("attachmentId"):
        attachments.append(
            {
                "attachment_id": body["attachmentId"],
                "filename": payload["filename"],
                "mime_type": payload.get("mimeType"),
                "size": body.get("size"),
            }
        )
    for part in payload.get("parts", []):
        attachments.extend(extract_attachments(part))
    return attachments
