"""Static configuration for courier.

User-editable settings (mappings, polling, limits, logging) live in an
optional config.json at the project root. Deployments without a file system
can set the same values through environment variables (loaded from .env by
python-dotenv), which take precedence.
"""

import json
import os

from dotenv import load_dotenv

from courier.core.config import (
    ConfigError,
    DedupConfig,
    ForwardingConfig,
    PollConfig,
    parse_channel_mappings,
    parse_poll_channels,
)

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

CONFIG_PATH = os.getenv("COURIER_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json if present; an absent file means env-only config."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{CONFIG_PATH} is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_PATH} must contain a JSON object")
    return data


_CONFIG = _load_json_config()

# Channel mappings: CHANNEL_MAPPINGS (JSON array) wins over config.json.
_raw_mappings = os.getenv("CHANNEL_MAPPINGS")
CHANNEL_MAPPINGS = parse_channel_mappings(
    _raw_mappings if _raw_mappings else _CONFIG.get("channel_mappings", [])
)

# Poll targets default to the mapped selectors so every routed channel is
# covered even when the push path stays silent.
_poll = _CONFIG.get("poll", {})
POLL = PollConfig(
    enabled=bool(_poll.get("enabled", True)),
    interval_seconds=float(_poll.get("interval_seconds", 2.0)),
    channels=parse_poll_channels(
        os.getenv("POLL_CHANNELS") or _poll.get("channels"),
        fallback=[mapping.selector for mapping in CHANNEL_MAPPINGS],
    ),
)

_dedup = _CONFIG.get("dedup", {})
DEDUP = DedupConfig(max_entries=int(_dedup.get("max_entries", 1000)))

_forwarding = _CONFIG.get("forwarding", {})
_defaults = ForwardingConfig()
FORWARDING = ForwardingConfig(
    max_document_bytes=int(_forwarding.get("max_document_bytes", _defaults.max_document_bytes)),
    max_body_bytes=int(_forwarding.get("max_body_bytes", _defaults.max_body_bytes)),
    max_description_chars=int(
        _forwarding.get("max_description_chars", _defaults.max_description_chars)
    ),
    embed_color=int(_forwarding.get("embed_color", _defaults.embed_color)),
    footer_text=str(_forwarding.get("footer_text", _defaults.footer_text)),
)

# Health listener for container platforms; PORT follows the platform convention.
_health = _CONFIG.get("health", {})
HEALTH_ENABLED = bool(_health.get("enabled", True))
HEALTH_PORT = int(os.getenv("PORT") or _health.get("port", 3000))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
