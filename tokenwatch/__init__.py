"""Watches one Solana wallet for transfers of one SPL token and posts Telegram alerts."""

__version__ = "1.0.0"
