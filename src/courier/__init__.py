"""Telegram channel to webhook courier."""

__version__ = "1.0.0"
