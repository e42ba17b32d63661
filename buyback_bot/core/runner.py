"""Main bot runner: fee collection + buyback cycle on a fixed timer."""
import signal
import sys
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from time import time
from typing import Callable, Deque, Optional

from buyback_bot.core.config import AppConfig, ConfigError, load_config
from buyback_bot.core.scheduler import CycleScheduler
from buyback_bot.core.services import Services, build_services
from buyback_bot.core.types import BuybackRecord, MarketContext
from buyback_bot.ledger.schema import initialize_database
from buyback_bot.ledger.store import Store
from buyback_bot.ops.logger import setup_logger
from buyback_bot.strategy.buyback import utc_now
from buyback_bot.strategy.reason_codes import CycleOutcome


@dataclass
class BotState:
    """In-process history. Lost on restart."""
    last_fee_collection_time: Optional[datetime] = None
    last_buyback_time: Optional[datetime] = None
    total_fees_collected: float = 0.0
    total_buybacks: int = 0
    recent_buybacks: Deque[BuybackRecord] = field(default_factory=lambda: deque(maxlen=10))

    @classmethod
    def with_history_size(cls, size: int) -> "BotState":
        return cls(recent_buybacks=deque(maxlen=size))


@dataclass
class CycleMetrics:
    """Per-cycle metrics for observability."""
    cycle_id: int = 0
    outcome: Optional[CycleOutcome] = None

    # Fees
    claimable: float = 0.0
    fees_collected: bool = False
    fees_claimed: float = 0.0
    claim_errors: int = 0

    # Buyback
    wallet_balance: float = 0.0
    advice_confidence: Optional[float] = None
    buyback_amount: float = 0.0
    buyback_tx: Optional[str] = None

    def summary_line(self) -> str:
        """Generate one-line summary for logging."""
        outcome = self.outcome.value if self.outcome else "unknown"
        confidence = f"{self.advice_confidence:.0f}%" if self.advice_confidence is not None else "n/a"
        return (
            f"📊 Cycle {self.cycle_id}: {outcome} | "
            f"Fees: {self.claimable:.4f} claimable, "
            f"{self.fees_claimed:.4f} claimed ({self.claim_errors} errors) | "
            f"Balance: {self.wallet_balance:.4f} SOL | "
            f"Advice: {confidence} | "
            f"Buyback: {self.buyback_amount:.4f} SOL"
        )


class BotRunner:
    def __init__(
        self,
        config: AppConfig,
        services: Services,
        now: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.services = services
        self.logger = setup_logger(config)
        self.db_path = Path(config.bot.database_path)
        initialize_database(self.db_path)

        self.state = BotState.with_history_size(config.buyback.history_size)
        self.scheduler = CycleScheduler(
            config.bot.cycle_interval_seconds,
            config.bot.jitter_seconds,
            sleep=self._wait,
        )
        self.running = True
        self._stop = threading.Event()
        self._now = now

    def _wait(self, seconds: float) -> None:
        self._stop.wait(seconds)

    def _handle_shutdown(self, signum, frame):
        """Handle shutdown signals gracefully."""
        self.logger.info("🛑 Shutdown signal received")
        self.running = False
        self._stop.set()

    # --- cycle ---

    def _collect_step(self, store: Store, cycle_id: int, metrics: CycleMetrics) -> None:
        fee_collector = self.services.fee_collector

        self.logger.info("📊 Step 1: Checking fees...")
        fee_check = fee_collector.should_collect()
        metrics.claimable = fee_check.claimable

        if not fee_check.should:
            self.logger.info(
                f"ℹ️ Claimable: {fee_check.claimable:.4f} SOL (threshold: {fee_check.threshold} SOL)"
            )
            return

        self.logger.info(f"💰 Collecting {fee_check.claimable:.4f} SOL in fees...")
        result = fee_collector.collect()
        metrics.claim_errors = len(result.errors)

        if result.success:
            self.state.last_fee_collection_time = self._now()
            self.state.total_fees_collected += result.total_claimed
            metrics.fees_collected = True
            metrics.fees_claimed = result.total_claimed
            self.logger.info(f"✅ Collected {result.total_claimed:.4f} SOL")
        else:
            self.logger.warning(f"❌ Fee collection failed: {'; '.join(result.errors)}")

        self._audit(store.record_fee_collection, cycle_id, result)

    def _buyback_step(self, store: Store, cycle_id: int, metrics: CycleMetrics) -> CycleOutcome:
        services = self.services
        reserve = self.config.buyback.fee_reserve_sol

        self.logger.info("📊 Step 2: Checking buyback conditions...")
        with ThreadPoolExecutor(max_workers=2) as pool:
            status_f = pool.submit(services.fee_collector.get_status)
            balance_f = pool.submit(services.wallet.get_balance)
            fee_status = status_f.result()
            wallet_balance = balance_f.result()
        metrics.wallet_balance = wallet_balance

        available = wallet_balance - reserve
        decision = services.buyback.should_execute(available, self.state.last_buyback_time)
        if not decision.should:
            self.logger.info(f"ℹ️ {decision.reason}")
            return CycleOutcome.GATE_REJECTED

        self.logger.info("🤖 Step 3: Consulting Claude AI...")
        quote = None
        try:
            quote = services.buyback.quote(decision.suggested_amount)
        except Exception as e:
            self.logger.warning(f"⚠️ Could not get quote: {e}")

        context = MarketContext(
            fee_status=fee_status,
            buyback_quote=quote,
            wallet_balance=wallet_balance,
            last_buyback_time=self.state.last_buyback_time,
            recent_buybacks=list(self.state.recent_buybacks),
        )
        advice = services.advisor.get_buyback_advice(context)
        self._audit(store.record_advice, cycle_id, advice)
        metrics.advice_confidence = advice.confidence

        self.logger.info(f"AI Decision: {'✅ PROCEED' if advice.should_buyback else '⏸️ WAIT'}")
        self.logger.info(f"Confidence: {advice.confidence}%")
        self.logger.info(f"Reasoning: {advice.reasoning}")
        for warning in advice.warnings:
            self.logger.warning(f"⚠️ {warning}")

        if not advice.should_buyback:
            self.logger.info("🛑 AI recommends waiting")
            return CycleOutcome.ADVISOR_WAIT

        amount = advice.suggested_amount or decision.suggested_amount
        self.logger.info(f"💸 Step 4: Executing buyback of {amount:.4f} SOL...")
        result = services.buyback.execute(amount)

        if not result.success:
            self.logger.error(f"❌ Buyback failed: {result.error}")
            self._audit(store.record_buyback, cycle_id, result)
            return CycleOutcome.BUYBACK_FAILED

        executed_at = self._now()
        self.state.last_buyback_time = executed_at
        self.state.total_buybacks += 1
        self.state.recent_buybacks.append(
            BuybackRecord(amount=result.input_amount, timestamp=executed_at, price_impact=result.price_impact)
        )
        metrics.buyback_amount = result.input_amount
        metrics.buyback_tx = result.transaction

        # BotState first: the cadence gate must see this buyback even if the ledger write fails
        self._audit(store.record_buyback, cycle_id, result)

        self.logger.info("✅ Buyback successful!")
        self.logger.info(f"   Spent: {result.input_amount:.4f} SOL")
        self.logger.info(f"   Received: {result.output_amount:.2f} tokens")
        self.logger.info(f"   TX: {self.config.twitter.explorer_url}{result.transaction}")

        self._announce(result)
        return CycleOutcome.BUYBACK_EXECUTED

    def _audit(self, write, *args, **kwargs) -> None:
        """Ledger writes never change a cycle's outcome; failures are logged."""
        try:
            write(*args, **kwargs)
        except Exception as e:
            self.logger.warning(f"⚠️ Ledger write failed ({getattr(write, '__name__', 'write')}): {e}")

    def _announce(self, result) -> None:
        if self.services.announcer is None:
            return
        try:
            if self.services.announcer.announce_buyback(result):
                self.logger.info("📢 Posted to Twitter")
            else:
                self.logger.warning("⚠️ Could not post to Twitter")
        except Exception as e:
            self.logger.warning(f"⚠️ Could not post to Twitter: {e}")

    def _run_steps(self, store: Store, metrics: CycleMetrics) -> dict:
        """Run steps 1-7; returns the cycle row fields to record."""
        try:
            self._collect_step(store, metrics.cycle_id, metrics)
            metrics.outcome = self._buyback_step(store, metrics.cycle_id, metrics)
        except Exception as e:
            self.logger.error(f"❌ Cycle error: {e}", exc_info=True)
            metrics.outcome = CycleOutcome.ERROR
            return {"status": "error", "outcome": CycleOutcome.ERROR.value, "error_message": str(e)}

        return {
            "status": "success",
            "outcome": metrics.outcome.value,
            "fees_claimed": metrics.fees_claimed,
            "buyback_amount": metrics.buyback_amount,
        }

    def run_cycle(self) -> CycleMetrics:
        """Execute one bot cycle. Never raises."""
        start_time = time()
        metrics = CycleMetrics()

        self.logger.info("=" * 60)
        self.logger.info(f"🔄 Bot Cycle - {self._now().isoformat()}")

        try:
            with Store(self.db_path) as store:
                metrics.cycle_id = store.create_cycle(start_time)
                fields = self._run_steps(store, metrics)
                self._audit(
                    store.update_cycle,
                    metrics.cycle_id,
                    execution_time_ms=(time() - start_time) * 1000,
                    **fields,
                )
        except Exception as e:
            # Ledger unavailable at cycle start
            self.logger.error(f"❌ Cycle error: {e}", exc_info=True)
            if metrics.outcome is None:
                metrics.outcome = CycleOutcome.ERROR

        self.logger.info(metrics.summary_line())
        return metrics

    # --- startup ---

    def log_configuration(self) -> None:
        bb = self.config.buyback
        self.logger.info("📋 Configuration:")
        self.logger.info(f"   Token: {self.config.token_mint}")
        self.logger.info(f"   Wallet: {self.services.wallet.public_key()}")
        self.logger.info(f"   Collection Threshold: {self.config.collection.threshold_sol} SOL")
        self.logger.info(f"   Buyback Threshold: {bb.threshold_sol} SOL")
        self.logger.info(f"   Buyback Percentage: {bb.percentage}%")
        self.logger.info(f"   Min Interval: {bb.min_interval_hours} hours")
        self.logger.info(f"   Check Interval: {self.config.bot.cycle_interval_seconds / 60:.1f} minutes")

    def initial_strategy_analysis(self) -> Optional[str]:
        self.logger.info("🤖 Getting initial strategy analysis from Claude...")
        try:
            fee_status = self.services.fee_collector.get_status()
            wallet_balance = self.services.wallet.get_balance()
        except Exception as e:
            self.logger.warning(f"⚠️ Skipping initial strategy analysis: {e}")
            return None

        analysis = self.services.advisor.get_strategy_advice(
            MarketContext(fee_status=fee_status, wallet_balance=wallet_balance)
        )
        self.logger.info(f"📈 Strategy Analysis:\n{analysis}")
        return analysis

    def run(self) -> None:
        """Main loop with graceful shutdown."""
        signal.signal(signal.SIGINT, self._handle_shutdown)
        signal.signal(signal.SIGTERM, self._handle_shutdown)

        self.logger.info("🤖 Bags.fm Fee Collector & Buyback Bot")
        self.log_configuration()

        if self.services.announcer is not None:
            self.logger.info("🐦 Verifying Twitter connection...")
            self.services.announcer.verify_connection()

        self.initial_strategy_analysis()

        self.logger.info("🚀 Starting bot...")
        self.scheduler.run(
            self.run_cycle,
            keep_running=lambda: self.running,
            run_immediately=self.config.bot.run_on_start,
        )
        self.services.close()
        self.logger.info("🛑 Bot stopped")


def main():
    """Entry point."""
    config = load_config()
    logger = setup_logger(config)
    try:
        services = build_services(config)
    except ConfigError as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)
    logger.info("✅ Configuration validated")

    runner = BotRunner(config, services)
    runner.run()


if __name__ == "__main__":
    main()
