"""Ink drop wallet."""

from .api import WalletApi
from .schemas import InkDropTransaction, RewardsHistory, TipResult
from .store import WalletState, WalletStore

__all__ = [
    "WalletApi",
    "WalletState",
    "WalletStore",
    "InkDropTransaction",
    "RewardsHistory",
    "TipResult",
]
