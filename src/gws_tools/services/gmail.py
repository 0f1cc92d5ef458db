"""Gmail tools."""

import asyncio
import logging
from typing import Any

from mcp.types import Tool

from gws_tools.config import GMAIL_API_BASE
from gws_tools.errors import GoogleApiError
from gws_tools.services.base import BaseService, ToolHandler
from gws_tools.services.mime import (
    build_raw_message,
    extract_attachments,
    extract_body,
    find_body,
    headers_dict,
    urlsafe_to_standard_b64,
)

logger = logging.getLogger(__name__)

USER_BASE = f"{GMAIL_API_BASE}/users/me"

# Gmail caps batchModify/batchDelete at 1000 ids and list at 500 per page
BATCH_LIMIT = 1000
LIST_PAGE_LIMIT = 500


def message_summary(message: dict[str, Any]) -> dict[str, Any]:
    """Reduce a ``metadata`` or ``full`` message to its headline fields."""
    headers = headers_dict(message.get("payload", {}))
    return {
        "id": message.get("id"),
        "thread_id": message.get("threadId"),
        "subject": headers.get("subject"),
        "from": headers.get("from"),
        "to": headers.get("to"),
        "date": headers.get("date"),
        "snippet": message.get("snippet"),
        "labels": message.get("labelIds", []),
    }


def send_as_summary(alias: dict[str, Any]) -> dict[str, Any]:
    return {
        "send_as_email": alias.get("sendAsEmail"),
        "display_name": alias.get("displayName"),
        "reply_to_address": alias.get("replyToAddress"),
        "signature": alias.get("signature", ""),
        "is_default": alias.get("isDefault", False),
        "is_primary": alias.get("isPrimary", False),
        "treat_as_alias": alias.get("treatAsAlias", False),
        "verification_status": alias.get("verificationStatus"),
    }


def reply_subject(subject: str) -> str:
    if subject.lower().startswith("re:"):
        return subject
    return f"Re: {subject}"


class GmailService(BaseService):
    """Reading, sending and organizing Gmail messages."""

    name = "gmail"

    def tools(self) -> list[Tool]:
        message_id = {"type": "string", "description": "Gmail message ID"}
        label_ids = {"type": "array", "items": {"type": "string"}}
        compose = {
            "to": {"type": "string", "description": "Recipient(s), comma-separated"},
            "subject": {"type": "string", "description": "Email subject"},
            "body": {"type": "string", "description": "Email body (plain text or HTML)"},
            "cc": {"type": "string", "description": "CC recipients, comma-separated"},
            "bcc": {"type": "string", "description": "BCC recipients, comma-separated"},
            "reply_to": {"type": "string", "description": "Reply-To address"},
            "is_html": {
                "type": "boolean",
                "description": "Body is HTML (default: false)",
                "default": False,
            },
            "attachments": {
                "type": "array",
                "description": "Attachments with base64 content",
                "items": {
                    "type": "object",
                    "properties": {
                        "filename": {"type": "string"},
                        "mime_type": {"type": "string"},
                        "content": {"type": "string", "description": "Base64 content"},
                    },
                    "required": ["filename", "content"],
                },
            },
        }
        only_message_id = {
            "type": "object",
            "properties": {"message_id": message_id},
            "required": ["message_id"],
        }
        only_message_ids = {
            "type": "object",
            "properties": {"message_ids": {**label_ids, "description": "Message IDs"}},
            "required": ["message_ids"],
        }
        confirm_only = {
            "type": "object",
            "properties": {
                "confirm": {"type": "boolean", "description": "Must be true to delete"},
            },
            "required": ["confirm"],
        }
        return [
            Tool(
                name="gmail_list_messages",
                description="List messages, optionally filtered by labels or a query",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum messages (default: 10)",
                            "default": 10,
                        },
                        "label_ids": {**label_ids, "description": "Only messages with these labels"},
                        "query": {"type": "string", "description": "Gmail search query"},
                        "include_spam_trash": {
                            "type": "boolean",
                            "description": "Include spam and trash (default: false)",
                            "default": False,
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="gmail_search_messages",
                description="Search messages with Gmail operators (from:, subject:, has:attachment)",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Gmail search query"},
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum messages (default: 10)",
                            "default": 10,
                        },
                    },
                    "required": ["query"],
                },
            ),
            Tool(
                name="gmail_get_message",
                description="Get a message's headers, body and attachment list",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message_id": message_id,
                        "include_html": {
                            "type": "boolean",
                            "description": "Also return the HTML body (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["message_id"],
                },
            ),
            Tool(
                name="gmail_get_thread",
                description="Get all messages in a thread",
                inputSchema={
                    "type": "object",
                    "properties": {"thread_id": {"type": "string", "description": "Thread ID"}},
                    "required": ["thread_id"],
                },
            ),
            Tool(
                name="gmail_list_attachments",
                description="List a message's attachments",
                inputSchema=only_message_id,
            ),
            Tool(
                name="gmail_get_attachment",
                description="Download an attachment as standard base64",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message_id": message_id,
                        "attachment_id": {"type": "string", "description": "Attachment ID"},
                    },
                    "required": ["message_id", "attachment_id"],
                },
            ),
            Tool(
                name="gmail_send_message",
                description="Send an email with optional attachments",
                inputSchema={
                    "type": "object",
                    "properties": compose,
                    "required": ["to", "subject", "body"],
                },
            ),
            Tool(
                name="gmail_create_draft",
                description="Create a draft email",
                inputSchema={
                    "type": "object",
                    "properties": compose,
                    "required": ["to", "subject", "body"],
                },
            ),
            Tool(
                name="gmail_reply_to_message",
                description="Reply to a message in its thread",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message_id": message_id,
                        "body": {"type": "string", "description": "Reply body"},
                        "reply_all": {
                            "type": "boolean",
                            "description": "Reply to all recipients (default: false)",
                            "default": False,
                        },
                        "is_html": {
                            "type": "boolean",
                            "description": "Body is HTML (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["message_id", "body"],
                },
            ),
            Tool(
                name="gmail_modify_labels",
                description="Add or remove labels on a message",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message_id": message_id,
                        "add_label_ids": {**label_ids, "description": "Labels to add"},
                        "remove_label_ids": {**label_ids, "description": "Labels to remove"},
                    },
                    "required": ["message_id"],
                },
            ),
            Tool(
                name="gmail_archive_message",
                description="Archive a message (remove it from INBOX)",
                inputSchema=only_message_id,
            ),
            Tool(
                name="gmail_trash_message",
                description="Move a message to the trash",
                inputSchema=only_message_id,
            ),
            Tool(
                name="gmail_untrash_message",
                description="Restore a message from the trash",
                inputSchema=only_message_id,
            ),
            Tool(
                name="gmail_delete_message",
                description="Permanently delete a message (cannot be undone)",
                inputSchema=only_message_id,
            ),
            Tool(
                name="gmail_batch_modify",
                description="Add or remove labels on many messages at once",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message_ids": {**label_ids, "description": "Message IDs"},
                        "add_label_ids": {**label_ids, "description": "Labels to add"},
                        "remove_label_ids": {**label_ids, "description": "Labels to remove"},
                    },
                    "required": ["message_ids"],
                },
            ),
            Tool(
                name="gmail_mark_as_read",
                description="Mark messages as read",
                inputSchema={
                    "type": "object",
                    "properties": {"message_ids": {**label_ids, "description": "Message IDs"}},
                    "required": ["message_ids"],
                },
            ),
            Tool(
                name="gmail_mark_as_unread",
                description="Mark messages as unread",
                inputSchema={
                    "type": "object",
                    "properties": {"message_ids": {**label_ids, "description": "Message IDs"}},
                    "required": ["message_ids"],
                },
            ),
            Tool(
                name="gmail_list_labels",
                description="List system and user labels",
                inputSchema={"type": "object", "properties": {}, "required": []},
            ),
            Tool(
                name="gmail_create_label",
                description="Create a user label",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Label name"},
                        "label_list_visibility": {
                            "type": "string",
                            "enum": ["labelShow", "labelShowIfUnread", "labelHide"],
                            "default": "labelShow",
                        },
                        "message_list_visibility": {
                            "type": "string",
                            "enum": ["show", "hide"],
                            "default": "show",
                        },
                    },
                    "required": ["name"],
                },
            ),
            Tool(
                name="gmail_delete_label",
                description="Delete a user label",
                inputSchema={
                    "type": "object",
                    "properties": {"label_id": {"type": "string", "description": "Label ID"}},
                    "required": ["label_id"],
                },
            ),
            Tool(
                name="gmail_list_filters",
                description="List message filters",
                inputSchema={"type": "object", "properties": {}, "required": []},
            ),
            Tool(
                name="gmail_create_filter",
                description="Create a filter that labels, archives or forwards incoming mail",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "from_address": {"type": "string", "description": "Match sender"},
                        "to_address": {"type": "string", "description": "Match recipient"},
                        "subject": {"type": "string", "description": "Match subject"},
                        "query": {"type": "string", "description": "Match Gmail query"},
                        "has_attachment": {"type": "boolean"},
                        "add_label_ids": {**label_ids, "description": "Labels to add"},
                        "remove_label_ids": {**label_ids, "description": "Labels to remove"},
                        "mark_as_read": {"type": "boolean"},
                        "archive": {"type": "boolean"},
                        "forward_to": {"type": "string", "description": "Forward address"},
                    },
                    "required": [],
                },
            ),
            Tool(
                name="gmail_get_profile",
                description="Get the mailbox address and message counts",
                inputSchema={"type": "object", "properties": {}, "required": []},
            ),
            Tool(
                name="gmail_empty_trash",
                description="Permanently delete every message in the trash",
                inputSchema=confirm_only,
            ),
            Tool(
                name="gmail_batch_delete",
                description="Permanently delete many messages at once (cannot be undone)",
                inputSchema=only_message_ids,
            ),
            Tool(
                name="gmail_mark_as_spam",
                description="Move messages from the inbox to spam",
                inputSchema=only_message_ids,
            ),
            Tool(
                name="gmail_mark_as_not_spam",
                description="Move messages from spam back to the inbox",
                inputSchema=only_message_ids,
            ),
            Tool(
                name="gmail_list_spam",
                description="List messages in the spam folder",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum messages (default: 20)",
                            "default": 20,
                            "minimum": 1,
                            "maximum": LIST_PAGE_LIMIT,
                        },
                        "page_token": {"type": "string", "description": "Page token"},
                    },
                    "required": [],
                },
            ),
            Tool(
                name="gmail_empty_spam",
                description="Permanently delete every message in spam",
                inputSchema=confirm_only,
            ),
            Tool(
                name="gmail_get_signature",
                description="Get the signature of the primary send-as address",
                inputSchema={"type": "object", "properties": {}, "required": []},
            ),
            Tool(
                name="gmail_update_signature",
                description="Set the signature of the primary send-as address",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "signature": {"type": "string", "description": "HTML signature"},
                        "display_name": {"type": "string", "description": "Sender display name"},
                    },
                    "required": ["signature"],
                },
            ),
            Tool(
                name="gmail_list_send_as",
                description="List send-as aliases",
                inputSchema={"type": "object", "properties": {}, "required": []},
            ),
            Tool(
                name="gmail_get_send_as",
                description="Get one send-as alias",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "send_as_email": {"type": "string", "description": "Alias address"},
                    },
                    "required": ["send_as_email"],
                },
            ),
        ]

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "gmail_list_messages": self._list_messages,
            "gmail_search_messages": self._search_messages,
            "gmail_get_message": self._get_message,
            "gmail_get_thread": self._get_thread,
            "gmail_list_attachments": self._list_attachments,
            "gmail_get_attachment": self._get_attachment,
            "gmail_send_message": self._send_message,
            "gmail_create_draft": self._create_draft,
            "gmail_reply_to_message": self._reply_to_message,
            "gmail_modify_labels": self._modify_labels,
            "gmail_archive_message": self._archive_message,
            "gmail_trash_message": self._trash_message,
            "gmail_untrash_message": self._untrash_message,
            "gmail_delete_message": self._delete_message,
            "gmail_batch_modify": self._batch_modify,
            "gmail_mark_as_read": self._mark_as_read,
            "gmail_mark_as_unread": self._mark_as_unread,
            "gmail_list_labels": self._list_labels,
            "gmail_create_label": self._create_label,
            "gmail_delete_label": self._delete_label,
            "gmail_list_filters": self._list_filters,
            "gmail_create_filter": self._create_filter,
            "gmail_get_profile": self._get_profile,
            "gmail_empty_trash": self._empty_trash,
            "gmail_batch_delete": self._batch_delete,
            "gmail_mark_as_spam": self._mark_as_spam,
            "gmail_mark_as_not_spam": self._mark_as_not_spam,
            "gmail_list_spam": self._list_spam,
            "gmail_empty_spam": self._empty_spam,
            "gmail_get_signature": self._get_signature,
            "gmail_update_signature": self._update_signature,
            "gmail_list_send_as": self._list_send_as,
            "gmail_get_send_as": self._get_send_as,
        }

    # =========================================================================
    # Reading
    # =========================================================================

    async def _fetch_summaries(self, params: dict[str, Any]) -> dict[str, Any]:
        """List message ids, then fetch their metadata concurrently.

        Messages whose metadata cannot be fetched are logged and skipped.
        """
        response = await self.client.request("GET", f"{USER_BASE}/messages", params=params)
        message_list = response.get("messages", [])
        if not message_list:
            return {"messages": [], "count": 0}

        details = await asyncio.gather(
            *[
                self.client.request(
                    "GET", f"{USER_BASE}/messages/{msg['id']}", params={"format": "metadata"}
                )
                for msg in message_list
            ],
            return_exceptions=True,
        )

        messages = []
        for msg, detail in zip(message_list, details, strict=False):
            if isinstance(detail, GoogleApiError):
                logger.warning("Failed to fetch message %s: %s", msg["id"], detail)
                continue
            if isinstance(detail, BaseException):
                raise detail
            messages.append(message_summary(detail))

        return {
            "messages": messages,
            "count": len(messages),
            "next_page_token": response.get("nextPageToken"),
        }

    async def _list_messages(self, arguments: dict[str, Any]) -> dict[str, Any]:
        params: dict[str, Any] = {"maxResults": arguments.get("max_results", 10)}
        if arguments.get("label_ids"):
            params["labelIds"] = arguments["label_ids"]
        if arguments.get("query"):
            params["q"] = arguments["query"]
        if arguments.get("include_spam_trash"):
            params["includeSpamTrash"] = "true"
        return await self._fetch_summaries(params)

    async def _search_messages(self, arguments: dict[str, Any]) -> dict[str, Any]:
        params = {"q": arguments["query"], "maxResults": arguments.get("max_results", 10)}
        result = await self._fetch_summaries(params)
        result["query"] = arguments["query"]
        return result

    async def _get_full_message(self, message_id: str) -> dict[str, Any]:
        return await self.client.request(
            "GET", f"{USER_BASE}/messages/{message_id}", params={"format": "full"}
        )

    async def _get_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Get one message.

        Args:
            arguments: Tool arguments with message_id and include_html.

        Returns:
            Headers, plain body, attachment metadata and optionally the HTML body.
        """
        message = await self._get_full_message(arguments["message_id"])
        payload = message.get("payload", {})
        headers = headers_dict(payload)

        result = message_summary(message)
        result["cc"] = headers.get("cc")
        result["body"] = extract_body(payload)
        result["attachments"] = extract_attachments(payload)
        if arguments.get("include_html", False):
            result["html_body"] = find_body(payload, "text/html")
        return result

    async def _get_thread(self, arguments: dict[str, Any]) -> dict[str, Any]:
        thread_id = arguments["thread_id"]
        thread = await self.client.request(
            "GET", f"{USER_BASE}/threads/{thread_id}", params={"format": "full"}
        )

        messages = []
        for message in thread.get("messages", []):
            summary = message_summary(message)
            summary["body"] = extract_body(message.get("payload", {}))
            messages.append(summary)

        return {"thread_id": thread.get("id"), "messages": messages, "count": len(messages)}

    async def _list_attachments(self, arguments: dict[str, Any]) -> dict[str, Any]:
        message = await self._get_full_message(arguments["message_id"])
        attachments = extract_attachments(message.get("payload", {}))
        return {
            "message_id": arguments["message_id"],
            "attachments": attachments,
            "count": len(attachments),
        }

    async def _get_attachment(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Download an attachment.

        The message is read first so the filename and MIME type can be
        returned alongside the data.
        """
        message_id = arguments["message_id"]
        attachment_id = arguments["attachment_id"]

        message = await self._get_full_message(message_id)
        info = next(
            (
                a
                for a in extract_attachments(message.get("payload", {}))
                if a["attachment_id"] == attachment_id
            ),
            {},
        )

        data = await self.client.request(
            "GET", f"{USER_BASE}/messages/{message_id}/attachments/{attachment_id}"
        )

        return {
            "attachment_id": attachment_id,
            "filename": info.get("filename") or "attachment",
            "mime_type": info.get("mime_type") or "application/octet-stream",
            "size": info.get("size") or data.get("size"),
            "data": urlsafe_to_standard_b64(data.get("data", "")),
        }

    # =========================================================================
    # Sending
    # =========================================================================

    def _raw_from_arguments(self, arguments: dict[str, Any]) -> str:
        return build_raw_message(
            to=arguments["to"],
            subject=arguments["subject"],
            body=arguments["body"],
            cc=arguments.get("cc"),
            bcc=arguments.get("bcc"),
            reply_to=arguments.get("reply_to"),
            is_html=arguments.get("is_html", False),
            attachments=arguments.get("attachments"),
        )

    async def _send_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        raw = self._raw_from_arguments(arguments)
        response = await self.client.request(
            "POST", f"{USER_BASE}/messages/send", json_data={"raw": raw}
        )
        return {
            "status": "sent",
            "id": response.get("id"),
            "thread_id": response.get("threadId"),
            "label_ids": response.get("labelIds", []),
            "attachment_count": len(arguments.get("attachments") or []),
        }

    async def _create_draft(self, arguments: dict[str, Any]) -> dict[str, Any]:
        raw = self._raw_from_arguments(arguments)
        response = await self.client.request(
            "POST", f"{USER_BASE}/drafts", json_data={"message": {"raw": raw}}
        )
        return {
            "status": "draft_created",
            "id": response.get("id"),
            "message_id": response.get("message", {}).get("id"),
            "thread_id": response.get("message", {}).get("threadId"),
        }

    async def _reply_to_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Reply in the original thread.

        Threading headers are copied from the original's Message-ID. With
        ``reply_all`` the original Cc recipients are kept.
        """
        message_id = arguments["message_id"]

        original = await self.client.request(
            "GET",
            f"{USER_BASE}/messages/{message_id}",
            params={
                "format": "metadata",
                "metadataHeaders": ["From", "To", "Cc", "Subject", "Message-ID", "Reply-To"],
            },
        )
        headers = headers_dict(original.get("payload", {}))
        original_message_id = headers.get("message-id")

        raw = build_raw_message(
            to=headers.get("reply-to") or headers.get("from", ""),
            subject=reply_subject(headers.get("subject", "")),
            body=arguments["body"],
            cc=headers.get("cc") if arguments.get("reply_all", False) else None,
            is_html=arguments.get("is_html", False),
            in_reply_to=original_message_id,
            references=original_message_id,
        )

        response = await self.client.request(
            "POST",
            f"{USER_BASE}/messages/send",
            json_data={"raw": raw, "threadId": original.get("threadId")},
        )
        return {
            "status": "reply_sent",
            "id": response.get("id"),
            "thread_id": response.get("threadId"),
            "in_reply_to": message_id,
        }

    # =========================================================================
    # Organizing
    # =========================================================================

    async def _modify_labels(self, arguments: dict[str, Any]) -> dict[str, Any]:
        message_id = arguments["message_id"]
        body: dict[str, Any] = {}
        if arguments.get("add_label_ids"):
            body["addLabelIds"] = arguments["add_label_ids"]
        if arguments.get("remove_label_ids"):
            body["removeLabelIds"] = arguments["remove_label_ids"]

        response = await self.client.request(
            "POST", f"{USER_BASE}/messages/{message_id}/modify", json_data=body
        )
        return {
            "status": "message_modified",
            "id": response.get("id"),
            "thread_id": response.get("threadId"),
            "label_ids": response.get("labelIds", []),
        }

    async def _archive_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        result = await self._modify_labels(
            {"message_id": arguments["message_id"], "remove_label_ids": ["INBOX"]}
        )
        result["status"] = "archived"
        return result

    async def _trash_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        message_id = arguments["message_id"]
        response = await self.client.request("POST", f"{USER_BASE}/messages/{message_id}/trash")
        return {
            "status": "trashed",
            "id": response.get("id"),
            "labels": response.get("labelIds", []),
        }

    async def _untrash_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        message_id = arguments["message_id"]
        response = await self.client.request(
            "POST", f"{USER_BASE}/messages/{message_id}/untrash"
        )
        return {
            "status": "untrashed",
            "id": response.get("id"),
            "labels": response.get("labelIds", []),
        }

    async def _delete_message(self, arguments: dict[str, Any]) -> dict[str, Any]:
        message_id = arguments["message_id"]
        await self.client.delete(f"{USER_BASE}/messages/{message_id}")
        return {"status": "deleted", "id": message_id}

    async def _batch_modify(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Modify labels on up to 1000 messages with one batchModify call.

        Raises:
            ValueError: If no message ids are given or there are too many.
        """
        message_ids = arguments.get("message_ids", [])
        add_label_ids = arguments.get("add_label_ids", [])
        remove_label_ids = arguments.get("remove_label_ids", [])

        if not message_ids:
            raise ValueError("message_ids must not be empty")
        if len(message_ids) > BATCH_LIMIT:
            raise ValueError(f"At most {BATCH_LIMIT} messages can be modified at once")

        body: dict[str, Any] = {"ids": message_ids}
        if add_label_ids:
            body["addLabelIds"] = add_label_ids
        if remove_label_ids:
            body["removeLabelIds"] = remove_label_ids

        await self.client.request("POST", f"{USER_BASE}/messages/batchModify", json_data=body)

        return {
            "status": "messages_modified",
            "modified_count": len(message_ids),
            "add_label_ids": add_label_ids,
            "remove_label_ids": remove_label_ids,
        }

    async def _mark_as_read(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return await self._batch_modify(
            {"message_ids": arguments["message_ids"], "remove_label_ids": ["UNREAD"]}
        )

    async def _mark_as_unread(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return await self._batch_modify(
            {"message_ids": arguments["message_ids"], "add_label_ids": ["UNREAD"]}
        )

    async def _list_labels(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.request("GET", f"{USER_BASE}/labels")

        labels = [
            {
                "id": label.get("id"),
                "name": label.get("name"),
                "type": label.get("type"),
                "message_list_visibility": label.get("messageListVisibility"),
                "label_list_visibility": label.get("labelListVisibility"),
            }
            for label in response.get("labels", [])
        ]

        def by_name(label: dict[str, Any]) -> str:
            return label["name"] or ""

        return {
            "total": len(labels),
            "system_labels": sorted([x for x in labels if x["type"] == "system"], key=by_name),
            "user_labels": sorted([x for x in labels if x["type"] == "user"], key=by_name),
        }

    async def _create_label(self, arguments: dict[str, Any]) -> dict[str, Any]:
        body = {
            "name": arguments["name"],
            "labelListVisibility": arguments.get("label_list_visibility", "labelShow"),
            "messageListVisibility": arguments.get("message_list_visibility", "show"),
        }
        response = await self.client.request("POST", f"{USER_BASE}/labels", json_data=body)
        return {
            "status": "label_created",
            "id": response.get("id"),
            "name": response.get("name"),
            "type": response.get("type"),
        }

    async def _delete_label(self, arguments: dict[str, Any]) -> dict[str, Any]:
        label_id = arguments["label_id"]
        await self.client.delete(f"{USER_BASE}/labels/{label_id}")
        return {"status": "label_deleted", "label_id": label_id}

    async def _list_filters(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.request("GET", f"{USER_BASE}/settings/filters")
        filters = response.get("filter", [])
        return {"total": len(filters), "filters": filters}

    async def _create_filter(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Create a filter from criteria and actions.

        Raises:
            ValueError: If no criteria or no actions are given.
        """
        criteria: dict[str, Any] = {}
        if from_addr := arguments.get("from_address"):
            criteria["from"] = from_addr
        if to_addr := arguments.get("to_address"):
            criteria["to"] = to_addr
        if subject := arguments.get("subject"):
            criteria["subject"] = subject
        if query := arguments.get("query"):
            criteria["query"] = query
        if arguments.get("has_attachment"):
            criteria["hasAttachment"] = True

        action: dict[str, Any] = {}
        if add_labels := arguments.get("add_label_ids"):
            action["addLabelIds"] = list(add_labels)
        if remove_labels := arguments.get("remove_label_ids"):
            action["removeLabelIds"] = list(remove_labels)
        if arguments.get("mark_as_read"):
            action.setdefault("removeLabelIds", []).append("UNREAD")
        if arguments.get("archive"):
            action.setdefault("removeLabelIds", []).append("INBOX")
        if forward_to := arguments.get("forward_to"):
            action["forward"] = forward_to

        if not criteria:
            raise ValueError("At least one filter criterion is required")
        if not action:
            raise ValueError("At least one filter action is required")

        response = await self.client.request(
            "POST",
            f"{USER_BASE}/settings/filters",
            json_data={"criteria": criteria, "action": action},
        )
        return {
            "status": "filter_created",
            "id": response.get("id"),
            "criteria": response.get("criteria", criteria),
            "action": response.get("action", action),
        }

    async def _get_profile(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.request("GET", f"{USER_BASE}/profile")
        return {
            "email_address": response.get("emailAddress"),
            "messages_total": response.get("messagesTotal"),
            "threads_total": response.get("threadsTotal"),
            "history_id": response.get("historyId"),
        }

    async def _empty_trash(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Permanently delete up to 500 trashed messages.

        Raises:
            ValueError: If ``confirm`` is not true.
        """
        if arguments.get("confirm") is not True:
            raise ValueError("Confirmation required to empty trash folder")
        return await self._empty_label("TRASH", "trash")

    async def _empty_spam(self, arguments: dict[str, Any]) -> dict[str, Any]:
        if arguments.get("confirm") is not True:
            raise ValueError("Confirmation required to empty spam folder")
        return await self._empty_label("SPAM", "spam")

    async def _empty_label(self, label_id: str, folder: str) -> dict[str, Any]:
        """Delete the first page (up to 500) of messages carrying ``label_id``."""
        response = await self.client.request(
            "GET",
            f"{USER_BASE}/messages",
            params={"labelIds": label_id, "maxResults": LIST_PAGE_LIMIT},
        )
        message_ids = [msg["id"] for msg in response.get("messages", [])]
        if not message_ids:
            return {
                "status": "empty",
                "deleted_count": 0,
                "message": f"{folder.capitalize()} is already empty",
            }

        await self.client.request(
            "POST", f"{USER_BASE}/messages/batchDelete", json_data={"ids": message_ids}
        )
        logger.info("Permanently deleted %d %s messages", len(message_ids), folder)
        return {
            "status": "deleted",
            "deleted_count": len(message_ids),
            "message": f"Permanently deleted {len(message_ids)} {folder} messages",
        }

    async def _batch_delete(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Permanently delete up to 1000 messages with one batchDelete call.

        Raises:
            ValueError: If no message ids are given or there are too many.
        """
        message_ids = arguments.get("message_ids", [])
        if not message_ids:
            raise ValueError("message_ids must not be empty")
        if len(message_ids) > BATCH_LIMIT:
            raise ValueError(f"At most {BATCH_LIMIT} messages can be deleted at once")

        await self.client.request(
            "POST", f"{USER_BASE}/messages/batchDelete", json_data={"ids": message_ids}
        )
        return {"status": "deleted", "deleted_count": len(message_ids)}

    # =========================================================================
    # Spam
    # =========================================================================

    async def _mark_as_spam(self, arguments: dict[str, Any]) -> dict[str, Any]:
        result = await self._batch_modify(
            {
                "message_ids": arguments["message_ids"],
                "add_label_ids": ["SPAM"],
                "remove_label_ids": ["INBOX"],
            }
        )
        result["status"] = "marked_as_spam"
        return result

    async def _mark_as_not_spam(self, arguments: dict[str, Any]) -> dict[str, Any]:
        result = await self._batch_modify(
            {
                "message_ids": arguments["message_ids"],
                "add_label_ids": ["INBOX"],
                "remove_label_ids": ["SPAM"],
            }
        )
        result["status"] = "removed_from_spam"
        return result

    async def _list_spam(self, arguments: dict[str, Any]) -> dict[str, Any]:
        params: dict[str, Any] = {
            "labelIds": "SPAM",
            "maxResults": min(arguments.get("max_results", 20), LIST_PAGE_LIMIT),
        }
        if arguments.get("page_token"):
            params["pageToken"] = arguments["page_token"]
        return await self._fetch_summaries(params)

    # =========================================================================
    # Settings
    # =========================================================================

    async def _primary_address(self) -> str:
        profile = await self.client.request("GET", f"{USER_BASE}/profile")
        address: str = profile["emailAddress"]
        return address

    async def _get_signature(self, arguments: dict[str, Any]) -> dict[str, Any]:
        address = await self._primary_address()
        alias = await self.client.request("GET", f"{USER_BASE}/settings/sendAs/{address}")
        return send_as_summary(alias)

    async def _update_signature(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Set the signature, and optionally display name, of the primary address."""
        address = await self._primary_address()
        body: dict[str, Any] = {"signature": arguments["signature"]}
        if arguments.get("display_name"):
            body["displayName"] = arguments["display_name"]

        alias = await self.client.request(
            "PATCH", f"{USER_BASE}/settings/sendAs/{address}", json_data=body
        )
        return {"status": "updated", **send_as_summary(alias)}

    async def _list_send_as(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.request("GET", f"{USER_BASE}/settings/sendAs")
        aliases = [send_as_summary(alias) for alias in response.get("sendAs", [])]
        return {"send_as": aliases, "count": len(aliases)}

    async def _get_send_as(self, arguments: dict[str, Any]) -> dict[str, Any]:
        alias = await self.client.request(
            "GET", f"{USER_BASE}/settings/sendAs/{arguments['send_as_email']}"
        )
        return send_as_summary(alias)
