from pathlib import Path
from typing import List, Optional

import pytest

from buyback_bot.core.types import (
    BuybackAdvice,
    ClaimablePosition,
    ClaimTransaction,
    TokenClaimStat,
    TokenLifetimeFees,
    TradeQuote,
)

TOKEN_MINT = "TokenMint1111111111111111111111111111111111"
OTHER_MINT = "OtherMint1111111111111111111111111111111111"
WALLET = "Wallet11111111111111111111111111111111111111"


def position(pool: str, lamports: str, usd: str = "0", mint: str = TOKEN_MINT) -> ClaimablePosition:
    return ClaimablePosition(
        token_mint=mint,
        pool_config_key=pool,
        claimable_amount=lamports,
        claimable_amount_usd=usd,
    )


class FakeBags:
    def __init__(self) -> None:
        self.positions: List[ClaimablePosition] = []
        self.lifetime = TokenLifetimeFees(token_mint=TOKEN_MINT)
        self.claim_stats: List[TokenClaimStat] = []
        self.trade_quote = TradeQuote(input_amount="0", output_amount="1000000", price_impact="0.5")
        self.swap_tx = "swap-tx"
        self.fail: dict = {}

        self.claim_requests: List[List[str]] = []
        self.quote_requests: list = []
        self.swap_requests: list = []
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise self.fail[name]

    def get_claimable_positions(self, wallet: str) -> List[ClaimablePosition]:
        self._maybe_fail("positions")
        return list(self.positions)

    def get_claim_transactions(self, wallet: str, pool_config_keys: List[str]) -> List[ClaimTransaction]:
        self._maybe_fail("claim_transactions")
        self.claim_requests.append(pool_config_keys)
        return [ClaimTransaction(transaction=f"claim-{key}", pool_config_key=key) for key in pool_config_keys]

    def get_token_lifetime_fees(self, token_mint: str) -> TokenLifetimeFees:
        self._maybe_fail("lifetime")
        return self.lifetime

    def get_token_claim_stats(self, token_mint: str) -> List[TokenClaimStat]:
        self._maybe_fail("claim_stats")
        return list(self.claim_stats)

    def get_trade_quote(self, input_mint, output_mint, amount, slippage_bps=100) -> TradeQuote:
        self._maybe_fail("quote")
        self.quote_requests.append((input_mint, output_mint, amount, slippage_bps))
        return self.trade_quote

    def create_swap_transaction(self, wallet, input_mint, output_mint, amount, slippage_bps=100) -> str:
        self._maybe_fail("swap")
        self.swap_requests.append((wallet, input_mint, output_mint, amount, slippage_bps))
        return self.swap_tx

    def close(self) -> None:
        self.closed = True


class FakeWallet:
    def __init__(self, balance: float = 1.0) -> None:
        self.balance = balance
        self.failing: set = set()
        self.sent: List[str] = []

    def public_key(self) -> str:
        return WALLET

    def get_balance(self) -> float:
        return self.balance

    def sign_and_send(self, serialized_tx: str) -> str:
        if serialized_tx in self.failing:
            raise RuntimeError(f"simulation failed for {serialized_tx}")
        self.sent.append(serialized_tx)
        return f"sig-{len(self.sent)}"


class FakeAdvisor:
    def __init__(self, advice: Optional[BuybackAdvice] = None) -> None:
        self.advice = advice or BuybackAdvice(
            should_buyback=True, confidence=80, suggested_amount=0.1, reasoning="ok"
        )
        self.contexts: list = []

    def get_buyback_advice(self, context) -> BuybackAdvice:
        self.contexts.append(context)
        return self.advice

    def get_strategy_advice(self, context) -> str:
        return "hold steady"


@pytest.fixture
def bags() -> FakeBags:
    return FakeBags()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def advisor() -> FakeAdvisor:
    return FakeAdvisor()


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    from buyback_bot.ledger.schema import initialize_database

    db_path = tmp_path / "test.db"
    initialize_database(db_path)
    return db_path
