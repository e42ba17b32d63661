from datetime import datetime, timedelta, timezone

import pytest

from buyback_bot.core.config import BuybackConfig
from buyback_bot.core.types import TradeQuote
from buyback_bot.core.utils import SOL_MINT
from buyback_bot.strategy.buyback import BuybackPolicy

from conftest import TOKEN_MINT, WALLET

NOW = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def policy(bags, wallet) -> BuybackPolicy:
    cfg = BuybackConfig(threshold_sol=0.1, percentage=50, min_interval_hours=24, fee_reserve_sol=0.01)
    return BuybackPolicy(bags, wallet, TOKEN_MINT, cfg, now=lambda: NOW)


def test_calculate_amount_applies_percentage(policy) -> None:
    assert policy.calculate_amount(2.0) == 1.0


def test_rejects_when_funds_below_threshold(policy) -> None:
    decision = policy.should_execute(0.05, None)

    assert decision.should is False
    assert decision.reason == "Insufficient funds. Have: 0.0500 SOL, Need: 0.1 SOL"
    assert decision.suggested_amount == 0


def test_funds_gate_runs_before_cadence_gate(policy) -> None:
    decision = policy.should_execute(0.05, NOW - timedelta(hours=1))
    assert decision.reason.startswith("Insufficient funds")


def test_rejects_when_too_soon(policy) -> None:
    decision = policy.should_execute(1.0, NOW - timedelta(hours=1))

    assert decision.should is False
    assert decision.reason == "Too soon since last buyback. Wait 23.0 more hours"


def test_passes_once_interval_has_elapsed(policy) -> None:
    decision = policy.should_execute(1.0, NOW - timedelta(hours=24))

    assert decision.should is True
    assert decision.suggested_amount == 0.5


def test_passes_without_prior_buyback(policy) -> None:
    decision = policy.should_execute(0.1, None)

    assert decision.should is True
    assert decision.reason == "All conditions met for buyback"
    assert decision.suggested_amount == pytest.approx(0.05)


def test_quote_uses_floored_lamports_and_slippage(policy, bags) -> None:
    quote = policy.quote(0.5)

    assert bags.quote_requests == [(SOL_MINT, TOKEN_MINT, "500000000", 100)]
    assert quote.output_amount_tokens == 1_000_000
    assert quote.price_impact == "0.5"
    assert quote.effective_price == pytest.approx(0.5 / 1_000_000)


def test_quote_with_zero_output_raises(policy, bags) -> None:
    bags.trade_quote = TradeQuote(output_amount="0")
    with pytest.raises(ValueError):
        policy.quote(0.5)


def test_execute_refuses_without_fee_reserve(policy, bags, wallet) -> None:
    wallet.balance = 0.5

    result = policy.execute(0.5)

    assert result.success is False
    assert result.error == "Insufficient balance. Have: 0.5000 SOL, Need: 0.5100 SOL"
    assert bags.quote_requests == []
    assert wallet.sent == []


def test_execute_swaps_and_confirms(policy, bags, wallet) -> None:
    wallet.balance = 2.0

    result = policy.execute(0.5)

    assert result.success is True
    assert result.transaction == "sig-1"
    assert result.input_amount == 0.5
    assert result.output_amount == 1_000_000
    assert result.price_impact == "0.5"
    assert bags.swap_requests == [(WALLET, SOL_MINT, TOKEN_MINT, "500000000", 100)]
    assert wallet.sent == ["swap-tx"]


def test_execute_captures_submission_error(policy, bags, wallet) -> None:
    wallet.failing = {"swap-tx"}

    result = policy.execute(0.5)

    assert result.success is False
    assert result.transaction is None
    assert "simulation failed" in result.error


def test_execute_captures_quote_error(policy, bags, wallet) -> None:
    bags.fail["quote"] = RuntimeError("no route")

    result = policy.execute(0.5)

    assert result.success is False
    assert result.error == "no route"
    assert wallet.sent == []


def test_insufficient_balance_message_has_no_float_noise(policy, wallet) -> None:
    wallet.balance = 0.1

    result = policy.execute(0.2)

    assert result.error == "Insufficient balance. Have: 0.1000 SOL, Need: 0.2100 SOL"
