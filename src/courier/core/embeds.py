"""Webhook payload formatting helpers.

Keeping formatting here prevents drift between the JSON and multipart
delivery paths: both send exactly the same embed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from courier.core.config import ForwardingConfig
from courier.core.models import DocumentMedia, NormalizedMessage

TRUNCATION_MARKER = "..."
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def truncate_text(text: str, limit: int) -> str:
    """Clip ``text`` to ``limit`` characters, ending with a marker when cut."""

    if len(text) <= limit:
        return text
    return text[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def iso_timestamp(epoch_seconds: int) -> str:
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_embed(message: NormalizedMessage, config: ForwardingConfig) -> dict:
    """Build the single embed delivered for a message."""

    embed: dict = {
        "title": f"📨 {message.display_name}",
        "color": config.embed_color,
        "timestamp": iso_timestamp(message.timestamp),
        "footer": {"text": config.footer_text},
    }
    if message.text:
        embed["description"] = truncate_text(message.text, config.max_description_chars)
    return embed


def build_payload(message: NormalizedMessage, config: ForwardingConfig) -> dict:
    return {"embeds": [build_embed(message, config)]}


def photo_filename(message_id: int) -> str:
    return f"photo_{message_id}.jpg"


def document_filename(media: DocumentMedia, message_id: int) -> str:
    """Pick a filename from document metadata, guessing an extension if needed."""

    name = media.file_name or f"file_{message_id}"
    mime_type: Optional[str] = media.mime_type
    if mime_type and "." not in name:
        if mime_type.startswith("video/"):
            name += ".mp4"
        elif mime_type == "image/gif":
            name += ".gif"
        elif mime_type.startswith("image/"):
            name += ".jpg"
    return name


def document_content_type(media: DocumentMedia) -> str:
    return media.mime_type or DEFAULT_CONTENT_TYPE
