"""Wallet store: ink drop balance, transactions and rewards history."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..api.client import CancelToken, RequestCancelled
from ..state import HANDLED_ERRORS, ActionResult, Store, error_message
from .api import WalletApi
from .schemas import InkDropTransaction, RewardsHistory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalletState:
    balance: Optional[int] = None
    transactions: list[InkDropTransaction] = field(default_factory=list)
    rewards: Optional[RewardsHistory] = None
    loading: bool = False
    error: Optional[str] = None


class WalletStore(Store[WalletState]):
    """Read-through caches of the user's ink drops."""

    def __init__(self, api: WalletApi):
        super().__init__(WalletState())
        self.api = api

    def _record_error(self, exc: Exception, action: str) -> str:
        message = error_message(exc)
        if not isinstance(exc, RequestCancelled):
            logger.info("%s failed: %s", action, message)
            self.set_state(error=message)
        return message

    def fetch_balance(self, cancel: Optional[CancelToken] = None) -> Optional[int]:
        try:
            balance = self.api.balance(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Fetch balance")
            return None

        self.set_state(balance=balance)
        return balance

    def fetch_transactions(
        self, cancel: Optional[CancelToken] = None
    ) -> Optional[list[InkDropTransaction]]:
        try:
            transactions = self.api.transactions(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Fetch transactions")
            return None

        self.set_state(transactions=transactions)
        return transactions

    def fetch_rewards_history(
        self, cancel: Optional[CancelToken] = None
    ) -> Optional[RewardsHistory]:
        try:
            rewards = self.api.rewards_history(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Fetch rewards history")
            return None

        self.set_state(rewards=rewards)
        return rewards

    def tip(
        self, recipient_user_id: str, amount: int, cancel: Optional[CancelToken] = None
    ) -> ActionResult:
        """Send ink drops to an author."""
        if not recipient_user_id.strip():
            message = "A recipient is required"
            self.set_state(error=message)
            return ActionResult.fail(message)
        if amount <= 0:
            message = "Tip amount must be positive"
            self.set_state(error=message)
            return ActionResult.fail(message)
        if self.state.balance is not None and amount > self.state.balance:
            message = "Insufficient Ink Drops"
            self.set_state(error=message)
            return ActionResult.fail(message)

        self.set_state(loading=True, error=None)
        try:
            result = self.api.tip(recipient_user_id.strip(), amount, cancel=cancel)
        except HANDLED_ERRORS as e:
            self.set_state(loading=False)
            return ActionResult.fail(self._record_error(e, "Tip"))

        self.set_state(balance=result.sender_balance, loading=False)
        return ActionResult.ok(result)
