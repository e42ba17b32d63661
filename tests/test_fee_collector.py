import pytest

from buyback_bot.core.types import TokenClaimStat, TokenLifetimeFees
from buyback_bot.strategy.fee_collector import FeeCollector

from conftest import OTHER_MINT, TOKEN_MINT, position


@pytest.fixture
def collector(bags, wallet) -> FeeCollector:
    return FeeCollector(bags, wallet, TOKEN_MINT, threshold_sol=0.1)


def test_status_totals_only_count_configured_mint(collector, bags) -> None:
    bags.positions = [
        position("pool-a", "500000000", "10.5"),
        position("pool-b", "1000000000", "20", mint=OTHER_MINT),
    ]
    bags.lifetime = TokenLifetimeFees(
        token_mint=TOKEN_MINT, total_fees_collected="2000000000", total_fees_collected_usd="300.25"
    )

    status = collector.get_status()

    assert status.total_claimable == 0.5
    assert status.total_claimable_usd == 10.5
    assert [p.pool_config_key for p in status.claimable_positions] == ["pool-a"]
    assert status.lifetime_fees_collected == 2.0
    assert status.lifetime_fees_collected_usd == 300.25


def test_status_fee_sharer_prefers_provider_username(collector, bags) -> None:
    bags.claim_stats = [
        TokenClaimStat(username="alice", provider_username="alice_x", royalty_bps=2500, total_claimed="1"),
        TokenClaimStat(username="bob", royalty_bps=7500, total_claimed="3"),
    ]

    sharers = collector.get_status().fee_sharers

    assert [s.username for s in sharers] == ["alice_x", "bob"]
    assert sharers[0].royalty_bps == 2500


def test_status_fetch_failure_propagates(collector, bags) -> None:
    bags.fail["claim_stats"] = RuntimeError("stats down")
    with pytest.raises(RuntimeError, match="stats down"):
        collector.get_status()


def test_should_collect_threshold_is_inclusive(bags, wallet) -> None:
    bags.positions = [position("pool-a", "100000000")]

    at_threshold = FeeCollector(bags, wallet, TOKEN_MINT, threshold_sol=0.1).should_collect()
    above_threshold = FeeCollector(bags, wallet, TOKEN_MINT, threshold_sol=0.2).should_collect()

    assert at_threshold.should is True
    assert at_threshold.claimable == 0.1
    assert above_threshold.should is False
    assert above_threshold.threshold == 0.2


def test_collect_without_positions_is_noop_success(collector, bags, wallet) -> None:
    result = collector.collect()

    assert result.success is True
    assert result.transactions == []
    assert result.errors == []
    assert bags.claim_requests == []
    assert wallet.sent == []


def test_collect_ignores_positions_for_other_mints(collector, bags, wallet) -> None:
    bags.positions = [position("pool-b", "1000000000", mint=OTHER_MINT)]

    result = collector.collect()

    assert result.success is True
    assert result.total_claimed == 0
    assert wallet.sent == []


def test_collect_all_positions_in_one_batch(collector, bags, wallet) -> None:
    bags.positions = [position("pool-a", "300000000", "6"), position("pool-b", "200000000", "4")]

    result = collector.collect()

    assert bags.claim_requests == [["pool-a", "pool-b"]]
    assert wallet.sent == ["claim-pool-a", "claim-pool-b"]
    assert result.success is True
    assert result.transactions == ["sig-1", "sig-2"]
    assert result.total_claimed == pytest.approx(0.5)
    assert result.total_claimed_usd == pytest.approx(10.0)


def test_collect_partial_failure_still_succeeds(collector, bags, wallet) -> None:
    bags.positions = [position("pool-a", "300000000"), position("pool-b", "200000000")]
    wallet.failing = {"claim-pool-a"}

    result = collector.collect()

    assert result.success is True
    assert result.transactions == ["sig-1"]
    assert len(result.errors) == 1
    assert "claim-pool-a" in result.errors[0]
    assert result.total_claimed == pytest.approx(0.2)


def test_collect_fails_when_every_claim_fails(collector, bags, wallet) -> None:
    bags.positions = [position("pool-a", "300000000"), position("pool-b", "200000000")]
    wallet.failing = {"claim-pool-a", "claim-pool-b"}

    result = collector.collect()

    assert result.success is False
    assert result.transactions == []
    assert len(result.errors) == 2
    assert result.total_claimed == 0


def test_collect_fetch_error_is_reported_not_raised(collector, bags) -> None:
    bags.fail["positions"] = RuntimeError("positions unavailable")

    result = collector.collect()

    assert result.success is False
    assert result.errors == ["positions unavailable"]


def test_collect_skips_unparseable_amount_but_keeps_claiming(collector, bags, wallet) -> None:
    bags.positions = [position("pool-a", "n/a"), position("pool-b", "200000000", "4")]

    result = collector.collect()

    assert wallet.sent == ["claim-pool-a", "claim-pool-b"]
    assert result.success is True
    assert result.errors == []
    assert result.total_claimed == pytest.approx(0.2)
    assert result.total_claimed_usd == pytest.approx(4.0)
