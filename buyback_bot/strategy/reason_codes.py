"""Centralized reason codes for buyback gating and cycle outcomes."""
from enum import Enum


class BuybackSkipReason(Enum):
    """Buyback gate rejection reasons (message prefixes)."""
    INSUFFICIENT_FUNDS = "Insufficient funds"
    TOO_SOON = "Too soon since last buyback"


class CycleOutcome(Enum):
    """Where a cycle stopped."""
    GATE_REJECTED = "gate_rejected"
    ADVISOR_WAIT = "advisor_wait"
    BUYBACK_EXECUTED = "buyback_executed"
    BUYBACK_FAILED = "buyback_failed"
    ERROR = "error"
