from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, PositiveFloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv


DEFAULT_CONFIG_PATH = Path("config.yaml")


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


class BotConfig(BaseModel):
    cycle_interval_seconds: PositiveFloat = 300
    jitter_seconds: float = 0
    run_on_start: bool = True
    log_level: str = "INFO"
    log_file: str = "logs/bot.log"
    database_path: str = "data/bot.db"


class BagsApiConfig(BaseModel):
    api_url: str = "https://public-api-v2.bags.fm/api/v1"
    request_timeout_seconds: PositiveFloat = 30.0


class SolanaConfig(BaseModel):
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    commitment: str = "confirmed"


class CollectionConfig(BaseModel):
    threshold_sol: float = Field(default=0.1, ge=0)


class BuybackConfig(BaseModel):
    threshold_sol: float = Field(default=0.1, ge=0)
    percentage: float = 50.0
    min_interval_hours: float = Field(default=24.0, ge=0)
    slippage_bps: int = 100
    fee_reserve_sol: float = Field(default=0.01, ge=0)
    history_size: int = Field(default=10, gt=0)

    @field_validator("percentage")
    @classmethod
    def percentage_in_0_100(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError("percentage must be between 0 and 100")
        return v

    @field_validator("slippage_bps")
    @classmethod
    def slippage_in_range(cls, v: int) -> int:
        if not 0 <= v <= 10_000:
            raise ValueError("slippage_bps must be between 0 and 10000")
        return v


class AdvisorConfig(BaseModel):
    model: str = "claude-sonnet-4-20250514"
    base_url: str = "https://api.anthropic.com/v1/"
    max_tokens: int = 1024
    timeout_seconds: PositiveFloat = 60.0


class TwitterConfig(BaseModel):
    hashtags: List[str] = Field(default_factory=lambda: ["#Buyback", "#Bags"])
    explorer_url: str = "https://solscan.io/tx/"


class Secrets(BaseModel):
    bags_api_key: str = ""
    token_mint: str = ""
    wallet_private_key: str = ""
    anthropic_api_key: str = ""
    twitter_api_key: str = ""
    twitter_api_secret: str = ""
    twitter_access_token: str = ""
    twitter_access_secret: str = ""

    @property
    def twitter_enabled(self) -> bool:
        return all([
            self.twitter_api_key,
            self.twitter_api_secret,
            self.twitter_access_token,
            self.twitter_access_secret,
        ])


class AppConfig(BaseModel):
    bot: BotConfig = Field(default_factory=BotConfig)
    bags: BagsApiConfig = Field(default_factory=BagsApiConfig)
    solana: SolanaConfig = Field(default_factory=SolanaConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    buyback: BuybackConfig = Field(default_factory=BuybackConfig)
    advisor: AdvisorConfig = Field(default_factory=AdvisorConfig)
    twitter: TwitterConfig = Field(default_factory=TwitterConfig)
    secrets: Secrets = Field(default_factory=Secrets)

    @property
    def token_mint(self) -> str:
        return self.secrets.token_mint


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    BAGS_API_KEY: str = ""
    TOKEN_MINT: str = ""
    WALLET_PRIVATE_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    SOLANA_RPC_URL: Optional[str] = None

    TWITTER_API_KEY: str = ""
    TWITTER_API_SECRET: str = ""
    TWITTER_ACCESS_TOKEN: str = ""
    TWITTER_ACCESS_SECRET: str = ""

    BUYBACK_THRESHOLD_SOL: Optional[float] = None
    BUYBACK_PERCENTAGE: Optional[float] = None
    MIN_BUYBACK_INTERVAL_HOURS: Optional[float] = None
    DATABASE_PATH: Optional[str] = None


REQUIRED_SECRETS = {
    "bags_api_key": "BAGS_API_KEY",
    "token_mint": "TOKEN_MINT",
    "wallet_private_key": "WALLET_PRIVATE_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
}


def _load_yaml_config(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r") as f:
        return yaml.safe_load(f) or {}


def _apply_env(cfg: AppConfig, env: EnvSettings) -> AppConfig:
    cfg.secrets = Secrets(
        bags_api_key=env.BAGS_API_KEY,
        token_mint=env.TOKEN_MINT,
        wallet_private_key=env.WALLET_PRIVATE_KEY,
        anthropic_api_key=env.ANTHROPIC_API_KEY,
        twitter_api_key=env.TWITTER_API_KEY,
        twitter_api_secret=env.TWITTER_API_SECRET,
        twitter_access_token=env.TWITTER_ACCESS_TOKEN,
        twitter_access_secret=env.TWITTER_ACCESS_SECRET,
    )

    if env.SOLANA_RPC_URL:
        cfg.solana.rpc_url = env.SOLANA_RPC_URL
    if env.DATABASE_PATH:
        cfg.bot.database_path = env.DATABASE_PATH

    # Env overrides go back through validation
    overrides = {}
    if env.BUYBACK_THRESHOLD_SOL is not None:
        overrides["threshold_sol"] = env.BUYBACK_THRESHOLD_SOL
    if env.BUYBACK_PERCENTAGE is not None:
        overrides["percentage"] = env.BUYBACK_PERCENTAGE
    if env.MIN_BUYBACK_INTERVAL_HOURS is not None:
        overrides["min_interval_hours"] = env.MIN_BUYBACK_INTERVAL_HOURS
    if overrides:
        cfg.buyback = BuybackConfig(**{**cfg.buyback.model_dump(), **overrides})
    # One threshold gates both collection and buyback
    if env.BUYBACK_THRESHOLD_SOL is not None:
        cfg.collection = CollectionConfig(threshold_sol=env.BUYBACK_THRESHOLD_SOL)

    return cfg


def load_config(config_path: Path | None = None) -> AppConfig:
    load_dotenv()
    if config_path is None:
        data = _load_yaml_config(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.exists() else {}
    else:
        data = _load_yaml_config(config_path)
    cfg = AppConfig(**data)

    return _apply_env(cfg, EnvSettings())


def validate_config(cfg: AppConfig) -> None:
    """Fail fast when a required secret is missing."""
    missing = [
        env_name
        for field_name, env_name in REQUIRED_SECRETS.items()
        if not getattr(cfg.secrets, field_name)
    ]
    if missing:
        raise ConfigError(f"Missing required config: {', '.join(missing)}")
