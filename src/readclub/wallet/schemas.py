"""Pydantic schemas for the ink drop wallet."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..schemas import ServerModel


class Balance(ServerModel):
    """Response of GET /api/currency/balance."""

    balance: int


class InkDropTransaction(ServerModel):
    """One balance change. Negative amounts are spending."""

    amount: int
    source: str
    timestamp: Optional[datetime] = None
    sender_id: Optional[str] = None
    recipient_id: Optional[str] = None


class Reward(ServerModel):
    amount: int
    type: str
    description: str = ""
    date: Optional[datetime] = None


class RewardTotals(ServerModel):
    streak: int = 0
    challenge: int = 0
    reading: int = 0
    purchase: int = 0
    tip: int = 0
    admin: int = 0


class RewardsHistory(ServerModel):
    """Ink drops earned, with per-source totals."""

    total: int = 0
    rewards: list[Reward] = Field(default_factory=list)
    totals: RewardTotals = Field(default_factory=RewardTotals)


class TipResult(ServerModel):
    """Response of POST /api/currency/tip."""

    success: bool = True
    sender_balance: int = 0
    service_fee: int = 0
    author_received: int = 0
    transaction: Optional[InkDropTransaction] = None
