from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for Bags API payloads: camelCase on the wire, snake_case in code."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )


# --- Bags API payloads ---

class ClaimablePosition(ApiModel):
    token_mint: str
    pool_config_key: str
    fee_claimer_vault: str = ""
    claimable_amount: str = "0"  # lamports
    claimable_amount_usd: str = "0"


class ClaimTransaction(ApiModel):
    transaction: str
    pool_config_key: str


class TokenLifetimeFees(ApiModel):
    token_mint: str = ""
    total_fees_collected: str = "0"  # lamports
    total_fees_collected_usd: str = "0"


class TokenClaimStat(ApiModel):
    username: str = ""
    provider_username: Optional[str] = None
    royalty_bps: int = 0
    is_creator: bool = False
    wallet: str = ""
    total_claimed: str = "0"
    provider: Optional[str] = None
    pfp: Optional[str] = None


class TradeQuote(ApiModel):
    input_amount: str = "0"
    output_amount: str = "0"
    price_impact: str = "0"
    fee: str = "0"


# --- Fee collection ---

class FeeSharer(BaseModel):
    username: str
    royalty_bps: int = Field(ge=0, le=10_000)
    total_claimed: str


class FeeStatus(BaseModel):
    token_mint: str
    lifetime_fees_collected: float
    lifetime_fees_collected_usd: float
    claimable_positions: List[ClaimablePosition]
    total_claimable: float
    total_claimable_usd: float
    fee_sharers: List[FeeSharer]


class CollectDecision(BaseModel):
    should: bool
    claimable: float
    threshold: float


class FeeCollectionResult(BaseModel):
    success: bool = True
    total_claimed: float = 0.0
    total_claimed_usd: float = 0.0
    transactions: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


# --- Buyback ---

class BuybackQuote(BaseModel):
    input_amount_sol: float
    output_amount_tokens: float
    price_impact: str
    effective_price: float


class BuybackDecision(BaseModel):
    should: bool
    reason: str
    suggested_amount: float = 0.0


class BuybackResult(BaseModel):
    success: bool = False
    input_amount: float
    output_amount: float = 0.0
    price_impact: str = "0"
    transaction: Optional[str] = None
    error: Optional[str] = None


class BuybackRecord(BaseModel):
    amount: float
    timestamp: datetime
    price_impact: str


# --- Advisor ---

class MarketContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    fee_status: FeeStatus
    buyback_quote: Optional[BuybackQuote] = None
    wallet_balance: float
    last_buyback_time: Optional[datetime] = None
    recent_buybacks: List[BuybackRecord] = Field(default_factory=list)


class BuybackAdvice(BaseModel):
    """Advisor output. Field names follow the JSON the model is asked for."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    should_buyback: bool
    confidence: float = Field(ge=0, le=100)
    suggested_amount: float = Field(default=0.0, ge=0)
    reasoning: str = ""
    warnings: List[str] = Field(default_factory=list)
