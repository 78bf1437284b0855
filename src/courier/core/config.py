"""Core configuration dataclasses and parsers.

We keep file and environment loading outside the core (see ``settings``),
but these dataclasses define the shape the core expects and the parsers
validate the raw values so adapters and the app layer can build safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from courier.core.models import RouteMapping

MIB = 1024 * 1024


class ConfigError(ValueError):
    """Raised when configuration values are missing or malformed."""


@dataclass(frozen=True)
class DedupConfig:
    """Deduplication settings for the pipeline."""

    max_entries: int = 1000


@dataclass(frozen=True)
class PollConfig:
    """Round-robin polling settings."""

    enabled: bool = True
    interval_seconds: float = 2.0
    channels: tuple[str, ...] = ()


@dataclass(frozen=True)
class ForwardingConfig:
    """Payload limits and embed appearance used by the forwarder."""

    max_document_bytes: int = 8 * MIB
    max_body_bytes: int = 25 * MIB
    max_description_chars: int = 4000
    embed_color: int = 0x0099FF
    footer_text: str = "Forwarded from Telegram"


def parse_channel_mappings(raw: Any) -> List[RouteMapping]:
    """Parse channel mappings from a JSON string or an already decoded list.

    Each entry needs a channel selector and a webhook URL. Both the
    ``telegramChannel``/``webhookUrl`` keys used in the environment variable
    and the snake_case ``channel``/``webhook_url`` keys of config.json are
    accepted.
    """

    if raw is None:
        return []
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"CHANNEL_MAPPINGS is not valid JSON: {exc.msg}") from exc

    if not isinstance(raw, list):
        raise ConfigError("CHANNEL_MAPPINGS must be a JSON array")

    mappings: List[RouteMapping] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"Channel mapping #{index} must be an object")
        selector = item.get("telegramChannel") or item.get("channel")
        webhook_url = item.get("webhookUrl") or item.get("webhook_url")
        if not selector or not webhook_url:
            raise ConfigError(f"Channel mapping #{index} needs telegramChannel and webhookUrl")
        mappings.append(RouteMapping(selector=str(selector), webhook_url=str(webhook_url)))
    return mappings


def parse_poll_channels(raw: Any, fallback: Iterable[str] = ()) -> tuple[str, ...]:
    """Parse the poll channel list.

    Accepts a JSON array, a comma separated string or a list. An empty or
    missing value falls back to ``fallback`` (usually the mapping selectors).
    """

    channels: Optional[list] = None
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                channels = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"POLL_CHANNELS is not valid JSON: {exc.msg}") from exc
        elif text:
            channels = text.split(",")
    elif isinstance(raw, (list, tuple)):
        channels = list(raw)
    elif raw is not None:
        raise ConfigError("poll channels must be a list or a comma separated string")

    if channels is None:
        channels = list(fallback)

    cleaned: list[str] = []
    for channel in channels:
        value = str(channel).strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return tuple(cleaned)
