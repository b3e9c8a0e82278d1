"""Endpoint wrappers for /api/currency."""

from typing import Optional

from ..api.client import ApiClient, CancelToken
from .schemas import Balance, InkDropTransaction, RewardsHistory, TipResult


class WalletApi:
    """Thin wrapper over the ink drop endpoints."""

    BASE_PATH = "/api/currency"

    def __init__(self, client: ApiClient):
        self.client = client

    def balance(self, cancel: Optional[CancelToken] = None) -> int:
        data = self.client.get(f"{self.BASE_PATH}/balance", cancel=cancel)
        return Balance.model_validate(data).balance

    def transactions(self, cancel: Optional[CancelToken] = None) -> list[InkDropTransaction]:
        data = self.client.get(f"{self.BASE_PATH}/transactions", cancel=cancel)
        return [InkDropTransaction.model_validate(tx) for tx in data.get("transactions", [])]

    def rewards_history(self, cancel: Optional[CancelToken] = None) -> RewardsHistory:
        data = self.client.get(f"{self.BASE_PATH}/rewards-history", cancel=cancel)
        return RewardsHistory.model_validate(data["data"])

    def tip(
        self, recipient_user_id: str, amount: int, cancel: Optional[CancelToken] = None
    ) -> TipResult:
        data = self.client.post(
            f"{self.BASE_PATH}/tip",
            json={"recipientUserId": recipient_user_id, "amount": amount},
            cancel=cancel,
        )
        return TipResult.model_validate(data)
