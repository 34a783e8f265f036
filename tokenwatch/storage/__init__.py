"""Persistence for processed transfers."""

from .transfers import InsertResult, TransferStore

__all__ = ["InsertResult", "TransferStore"]
