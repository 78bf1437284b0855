"""Channel matching and route lookup (core domain)."""

from __future__ import annotations

from typing import Iterable, Optional

from courier.core.models import NormalizedMessage, RouteMapping


def _normalize(value: str) -> str:
    if value.startswith("@"):
        value = value[1:]
    return value.casefold()


def matches(message: NormalizedMessage, selector: str) -> bool:
    """Return True if ``selector`` identifies the message's channel.

    Matching logic:
    - username: "@" prefix stripped and case-folded on both sides, or exact.
    - title: case-folded title against the normalized selector, or exact.
    - channel id: exact string equality only.
    """

    target = _normalize(selector)

    username = message.channel_username
    if username and (_normalize(username) == target or username == selector):
        return True

    title = message.channel_title
    if title and (title.casefold() == target or title == selector):
        return True

    return bool(message.channel_id) and message.channel_id == selector


def find_route(
    message: NormalizedMessage, mappings: Iterable[RouteMapping]
) -> Optional[RouteMapping]:
    """Return the first mapping in configuration order that matches."""

    for mapping in mappings:
        if matches(message, mapping.selector):
            return mapping
    return None


def mask_webhook_url(url: str) -> str:
    """Hide the webhook token when a URL has to be logged."""

    marker = "/webhooks/"
    if marker not in url:
        return "***"
    tail = url.split(marker, 1)[1]
    webhook_id = tail.split("/", 1)[0]
    if not webhook_id.isdigit():
        return "***"
    return f"...webhooks/{webhook_id}/***"
