from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, InvalidOperation
from typing import List

from buyback_bot.core.types import (
    ClaimablePosition,
    CollectDecision,
    FeeCollectionResult,
    FeeSharer,
    FeeStatus,
)
from buyback_bot.core.utils import lamports_to_sol, parse_amount


logger = logging.getLogger("buyback_bot.fees")


class FeeCollector:
    """
    Fee collection policy for one token mint.

    - get_status(): lifetime fees, claimable positions and fee sharers, fetched concurrently
    - should_collect(): threshold gate (inclusive)
    - collect(): claim every position, one transaction at a time
    """

    def __init__(self, bags, wallet, token_mint: str, threshold_sol: float) -> None:
        self.bags = bags
        self.wallet = wallet
        self.token_mint = token_mint
        self.threshold_sol = threshold_sol

    def _own_positions(self, positions: List[ClaimablePosition]) -> List[ClaimablePosition]:
        return [p for p in positions if p.token_mint == self.token_mint]

    def get_status(self) -> FeeStatus:
        wallet = self.wallet.public_key()

        with ThreadPoolExecutor(max_workers=3) as pool:
            lifetime_f = pool.submit(self.bags.get_token_lifetime_fees, self.token_mint)
            positions_f = pool.submit(self.bags.get_claimable_positions, wallet)
            stats_f = pool.submit(self.bags.get_token_claim_stats, self.token_mint)
            lifetime = lifetime_f.result()
            positions = positions_f.result()
            claim_stats = stats_f.result()

        token_positions = self._own_positions(positions)

        total_lamports = sum((parse_amount(p.claimable_amount) for p in token_positions), Decimal(0))
        total_usd = sum((parse_amount(p.claimable_amount_usd) for p in token_positions), Decimal(0))

        return FeeStatus(
            token_mint=self.token_mint,
            lifetime_fees_collected=lamports_to_sol(parse_amount(lifetime.total_fees_collected)),
            lifetime_fees_collected_usd=float(parse_amount(lifetime.total_fees_collected_usd)),
            claimable_positions=token_positions,
            total_claimable=lamports_to_sol(total_lamports),
            total_claimable_usd=float(total_usd),
            fee_sharers=[
                FeeSharer(
                    username=s.provider_username or s.username,
                    royalty_bps=s.royalty_bps,
                    total_claimed=s.total_claimed,
                )
                for s in claim_stats
            ],
        )

    def should_collect(self) -> CollectDecision:
        status = self.get_status()
        return CollectDecision(
            should=status.total_claimable >= self.threshold_sol,
            claimable=status.total_claimable,
            threshold=self.threshold_sol,
        )

    def collect(self) -> FeeCollectionResult:
        """
        Claim all positions for the configured mint.

        Positions are re-fetched here rather than reused from get_status() so the
        claim runs against the freshest set. Each transaction is submitted and
        confirmed before the next one; a failed claim is recorded and skipped.
        """
        result = FeeCollectionResult()

        try:
            wallet = self.wallet.public_key()
            logger.info("🔍 Fetching claimable positions...")
            positions = self.bags.get_claimable_positions(wallet)

            if not positions:
                logger.info("ℹ️ No claimable positions found")
                return result

            token_positions = self._own_positions(positions)
            if not token_positions:
                logger.info("ℹ️ No claimable positions for configured token")
                return result

            logger.info(f"📦 Found {len(token_positions)} claimable position(s)")
            by_pool = {p.pool_config_key: p for p in token_positions}

            logger.info("📝 Generating claim transactions...")
            claim_txs = self.bags.get_claim_transactions(wallet, list(by_pool))

            for claim_tx in claim_txs:
                try:
                    logger.info("⏳ Signing and sending claim transaction...")
                    signature = self.wallet.sign_and_send(claim_tx.transaction)
                except Exception as e:
                    result.errors.append(str(e) or type(e).__name__)
                    logger.error(f"❌ Claim failed: {e}")
                    continue

                result.transactions.append(signature)
                logger.info(f"✅ Claim successful: {signature}")

                position = by_pool.get(claim_tx.pool_config_key)
                if position is None:
                    continue
                try:
                    claimed_sol = lamports_to_sol(parse_amount(position.claimable_amount))
                    claimed_usd = float(parse_amount(position.claimable_amount_usd))
                except InvalidOperation:
                    logger.warning(
                        f"⚠️ Unparseable claimable amount for pool {position.pool_config_key}: "
                        f"{position.claimable_amount!r}"
                    )
                    continue
                result.total_claimed += claimed_sol
                result.total_claimed_usd += claimed_usd

            if result.errors:
                result.success = len(result.transactions) > 0

        except Exception as e:
            result.success = False
            result.errors.append(str(e) or type(e).__name__)
            logger.error(f"❌ Fee collection failed: {e}")

        return result
