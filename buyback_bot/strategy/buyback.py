from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from buyback_bot.core.config import BuybackConfig
from buyback_bot.core.types import BuybackDecision, BuybackQuote, BuybackResult
from buyback_bot.core.utils import SOL_MINT, parse_amount, sol_to_lamports
from buyback_bot.strategy.reason_codes import BuybackSkipReason


logger = logging.getLogger("buyback_bot.buyback")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BuybackPolicy:
    """
    Buyback policy: SOL -> configured token.

    Gates (both required, funds checked first):
    1) available balance >= threshold_sol
    2) at least min_interval_hours since the last buyback
    """

    def __init__(
        self,
        bags,
        wallet,
        token_mint: str,
        cfg: BuybackConfig,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.bags = bags
        self.wallet = wallet
        self.token_mint = token_mint
        self.cfg = cfg
        self._now = now

    def calculate_amount(self, collected_sol: float) -> float:
        return collected_sol * (self.cfg.percentage / 100)

    def quote(self, amount_sol: float) -> BuybackQuote:
        quote = self.bags.get_trade_quote(
            SOL_MINT,
            self.token_mint,
            str(sol_to_lamports(amount_sol)),
            self.cfg.slippage_bps,
        )
        output_tokens = float(parse_amount(quote.output_amount))
        if output_tokens <= 0:
            raise ValueError(f"Quote for {amount_sol} SOL returned no output")

        return BuybackQuote(
            input_amount_sol=amount_sol,
            output_amount_tokens=output_tokens,
            price_impact=quote.price_impact,
            effective_price=amount_sol / output_tokens,
        )

    def should_execute(
        self, available_sol: float, last_buyback_time: Optional[datetime]
    ) -> BuybackDecision:
        threshold = self.cfg.threshold_sol

        if available_sol < threshold:
            return BuybackDecision(
                should=False,
                reason=(
                    f"{BuybackSkipReason.INSUFFICIENT_FUNDS.value}. "
                    f"Have: {available_sol:.4f} SOL, Need: {threshold} SOL"
                ),
            )

        if last_buyback_time is not None:
            min_interval = self.cfg.min_interval_hours * 3600
            elapsed = (self._now() - last_buyback_time).total_seconds()
            if elapsed < min_interval:
                hours_remaining = (min_interval - elapsed) / 3600
                return BuybackDecision(
                    should=False,
                    reason=(
                        f"{BuybackSkipReason.TOO_SOON.value}. "
                        f"Wait {hours_remaining:.1f} more hours"
                    ),
                )

        return BuybackDecision(
            should=True,
            reason="All conditions met for buyback",
            suggested_amount=self.calculate_amount(available_sol),
        )

    def execute(self, amount_sol: float) -> BuybackResult:
        """Never raises; failures come back as success=False with the error message."""
        result = BuybackResult(input_amount=amount_sol)

        try:
            balance = self.wallet.get_balance()
            needed = amount_sol + self.cfg.fee_reserve_sol
            if balance < needed:
                raise ValueError(
                    f"Insufficient balance. Have: {balance:.4f} SOL, Need: {needed:.4f} SOL"
                )

            logger.info(f"💰 Getting buyback quote for {amount_sol} SOL...")
            quote = self.quote(amount_sol)
            result.output_amount = quote.output_amount_tokens
            result.price_impact = quote.price_impact
            logger.info(
                f"📊 Quote: {amount_sol} SOL → {quote.output_amount_tokens} tokens "
                f"({quote.price_impact}% impact)"
            )

            logger.info("📝 Creating swap transaction...")
            serialized_tx = self.bags.create_swap_transaction(
                self.wallet.public_key(),
                SOL_MINT,
                self.token_mint,
                str(sol_to_lamports(amount_sol)),
                self.cfg.slippage_bps,
            )

            logger.info("⏳ Signing and sending transaction...")
            result.transaction = self.wallet.sign_and_send(serialized_tx)
            result.success = True
            logger.info(f"✅ Buyback successful! TX: {result.transaction}")

        except Exception as e:
            result.error = str(e) or type(e).__name__
            logger.error(f"❌ Buyback failed: {result.error}")

        return result
