from buyback_bot.strategy.buyback import BuybackPolicy
from buyback_bot.strategy.fee_collector import FeeCollector
from buyback_bot.strategy.reason_codes import BuybackSkipReason, CycleOutcome

__all__ = [
    "BuybackPolicy",
    "BuybackSkipReason",
    "CycleOutcome",
    "FeeCollector",
]
