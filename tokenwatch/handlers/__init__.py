"""Telegram command handlers."""
