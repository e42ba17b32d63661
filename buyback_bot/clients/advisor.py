"""
Claude buyback advisor.

Talks to Anthropic's OpenAI-compatible endpoint through the openai SDK.
Advice is never binding and never raises: any transport, parsing or schema
problem degrades to a conservative "wait" recommendation.
"""
import json
import logging
from typing import Optional

from openai import OpenAI
from pydantic import ValidationError

from buyback_bot.core.config import AdvisorConfig, BuybackConfig
from buyback_bot.core.types import BuybackAdvice, MarketContext


logger = logging.getLogger("buyback_bot.advisor")

ADVISOR_UNAVAILABLE = "AI advisor unavailable"
STRATEGY_UNAVAILABLE = "Unable to generate strategy analysis at this time."


class AdvisorError(RuntimeError):
    """Unusable advisor response."""


def conservative_advice() -> BuybackAdvice:
    return BuybackAdvice(
        should_buyback=False,
        confidence=0,
        suggested_amount=0,
        reasoning="Unable to get AI advice, defaulting to no action",
        warnings=[ADVISOR_UNAVAILABLE],
    )


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_advice(text: str) -> BuybackAdvice:
    try:
        payload = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise AdvisorError(f"Advisor returned invalid JSON: {e}") from e
    try:
        return BuybackAdvice.model_validate(payload)
    except ValidationError as e:
        raise AdvisorError(f"Advisor response does not match schema: {e}") from e


class ClaudeAdvisor:
    def __init__(
        self,
        api_key: str,
        cfg: AdvisorConfig | None = None,
        buyback_cfg: BuybackConfig | None = None,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.cfg = cfg or AdvisorConfig()
        self.buyback_cfg = buyback_cfg or BuybackConfig()
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=self.cfg.base_url,
            timeout=self.cfg.timeout_seconds,
        )

    def _complete(self, prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=self.cfg.model,
            max_tokens=self.cfg.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.choices:
            raise AdvisorError("Advisor returned no choices")
        content = response.choices[0].message.content
        if not isinstance(content, str) or not content.strip():
            raise AdvisorError("Unexpected response type")
        return content

    def build_advice_prompt(self, context: MarketContext) -> str:
        status = context.fee_status
        bb = self.buyback_cfg

        sharers = "\n".join(
            f"- {s.username}: {s.royalty_bps / 100}% (claimed: {s.total_claimed})"
            for s in status.fee_sharers
        ) or "No fee sharers"

        if context.buyback_quote:
            q = context.buyback_quote
            quote_block = (
                f"- Input: {q.input_amount_sol} SOL\n"
                f"- Output: {q.output_amount_tokens} tokens\n"
                f"- Price Impact: {q.price_impact}%\n"
                f"- Effective Price: {q.effective_price:.8f} SOL/token"
            )
        else:
            quote_block = "No quote available"

        if context.recent_buybacks:
            recent = "\n".join(
                f"- {b.amount} SOL at {b.timestamp.isoformat()} ({b.price_impact}% impact)"
                for b in context.recent_buybacks
            )
        else:
            recent = "No recent buybacks"

        last = context.last_buyback_time.isoformat() if context.last_buyback_time else "Never"

        return f"""You are a crypto trading advisor for a token buyback bot. Analyze the following data and provide advice on whether to execute a buyback.

## Current Status
- Token Mint: {status.token_mint}
- Lifetime Fees Collected: {status.lifetime_fees_collected} SOL (${status.lifetime_fees_collected_usd:.2f})
- Currently Claimable: {status.total_claimable:.4f} SOL (${status.total_claimable_usd:.2f})
- Wallet Balance: {context.wallet_balance:.4f} SOL
- Last Buyback: {last}
- Configured Threshold: {bb.threshold_sol} SOL
- Configured Buyback Percentage: {bb.percentage}%

## Fee Sharers
{sharers}

## Buyback Quote (if available)
{quote_block}

## Recent Buybacks
{recent}

Based on this data, provide a JSON response with:
1. shouldBuyback: boolean - whether to execute the buyback now
2. confidence: number 0-100 - how confident you are in this decision
3. suggestedAmount: number - suggested SOL amount for buyback (0 if not recommending)
4. reasoning: string - brief explanation of your decision
5. warnings: string[] - any concerns or risks to be aware of

Consider:
- Fee accumulation rate
- Price impact of the buyback
- Wallet balance and sustainability
- Timing relative to last buyback
- Market conditions implied by fee generation

Respond ONLY with valid JSON, no markdown or explanation."""

    def build_strategy_prompt(self, context: MarketContext) -> str:
        status = context.fee_status
        bb = self.buyback_cfg
        return f"""Analyze this token's fee collection and buyback strategy:

- Lifetime Fees: {status.lifetime_fees_collected} SOL
- Current Claimable: {status.total_claimable} SOL
- Buyback Threshold: {bb.threshold_sol} SOL
- Buyback Percentage: {bb.percentage}%
- Min Interval: {bb.min_interval_hours} hours

Recent buybacks: {len(context.recent_buybacks)}
Fee sharers: {len(status.fee_sharers)}

Provide a brief (2-3 paragraphs) strategy analysis and recommendations for optimizing the buyback approach. Consider fee accumulation rate, timing, and market impact."""

    def get_buyback_advice(self, context: MarketContext) -> BuybackAdvice:
        """Go/no-go recommendation; falls back to conservative_advice() on any failure."""
        try:
            return parse_advice(self._complete(self.build_advice_prompt(context)))
        except Exception as e:
            logger.error(f"Error getting Claude advice: {type(e).__name__}: {e}")
            return conservative_advice()

    def get_strategy_advice(self, context: MarketContext) -> str:
        try:
            return self._complete(self.build_strategy_prompt(context))
        except Exception as e:
            logger.error(f"Error getting strategy advice: {type(e).__name__}: {e}")
            return STRATEGY_UNAVAILABLE
