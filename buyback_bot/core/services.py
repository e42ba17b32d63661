"""Process-wide service objects, built once at startup and injected everywhere."""
from dataclasses import dataclass
from typing import Optional

from buyback_bot.clients.advisor import ClaudeAdvisor
from buyback_bot.clients.bags import BagsClient
from buyback_bot.clients.solana import SolanaWallet
from buyback_bot.clients.twitter import TwitterAnnouncer
from buyback_bot.core.config import AppConfig, validate_config
from buyback_bot.strategy.buyback import BuybackPolicy
from buyback_bot.strategy.fee_collector import FeeCollector


@dataclass
class Services:
    bags: BagsClient
    wallet: SolanaWallet
    advisor: ClaudeAdvisor
    fee_collector: FeeCollector
    buyback: BuybackPolicy
    announcer: Optional[TwitterAnnouncer] = None

    def close(self) -> None:
        self.bags.close()


def build_services(config: AppConfig) -> Services:
    """Validates config (raises ConfigError) and wires every collaborator."""
    validate_config(config)
    secrets = config.secrets

    bags = BagsClient(secrets.bags_api_key, config.bags)
    wallet = SolanaWallet(secrets.wallet_private_key, config.solana)
    advisor = ClaudeAdvisor(secrets.anthropic_api_key, config.advisor, config.buyback)
    announcer = TwitterAnnouncer(secrets, config.twitter) if secrets.twitter_enabled else None

    return Services(
        bags=bags,
        wallet=wallet,
        advisor=advisor,
        fee_collector=FeeCollector(bags, wallet, config.token_mint, config.collection.threshold_sol),
        buyback=BuybackPolicy(bags, wallet, config.token_mint, config.buyback),
        announcer=announcer,
    )
