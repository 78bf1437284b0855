from __future__ import annotations

import pytest

from courier.core.config import ConfigError, parse_channel_mappings, parse_poll_channels
from courier.core.models import RouteMapping


def test_parse_channel_mappings_from_env_json() -> None:
    raw = '[{"telegramChannel": "@news", "webhookUrl": "https://example.com/a"}]'
    assert parse_channel_mappings(raw) == [RouteMapping("@news", "https://example.com/a")]


def test_parse_channel_mappings_from_config_list() -> None:
    raw = [
        {"channel": "12345", "webhook_url": "https://example.com/a"},
        {"channel": "@sports", "webhook_url": "https://example.com/b"},
    ]
    mappings = parse_channel_mappings(raw)
    assert [m.selector for m in mappings] == ["12345", "@sports"]


def test_parse_channel_mappings_empty_values() -> None:
    assert parse_channel_mappings(None) == []
    assert parse_channel_mappings("") == []
    assert parse_channel_mappings("[]") == []


@pytest.mark.parametrize(
    "raw",
    [
        "[{",
        '{"telegramChannel": "@news"}',
        '[{"telegramChannel": "@news"}]',
        '["@news"]',
    ],
)
def test_parse_channel_mappings_rejects_bad_input(raw: str) -> None:
    with pytest.raises(ConfigError):
        parse_channel_mappings(raw)


def test_parse_poll_channels_formats() -> None:
    assert parse_poll_channels('["@a", "@b"]') == ("@a", "@b")
    assert parse_poll_channels("@a, @b ,@a") == ("@a", "@b")
    assert parse_poll_channels(["@a", 123]) == ("@a", "123")


def test_parse_poll_channels_falls_back_to_mappings() -> None:
    assert parse_poll_channels(None, fallback=["@news"]) == ("@news",)
    assert parse_poll_channels("", fallback=["@news"]) == ("@news",)
    assert parse_poll_channels([], fallback=["@news"]) == ()


def test_parse_poll_channels_rejects_bad_json() -> None:
    with pytest.raises(ConfigError):
        parse_poll_channels("[oops")
