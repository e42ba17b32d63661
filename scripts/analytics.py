"""Analytics dashboard: fee stats, wallet, fee sharers, config and AI strategy notes."""
import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from buyback_bot.core.config import ConfigError, load_config
from buyback_bot.core.services import build_services
from buyback_bot.core.types import MarketContext

console = Console()


def _kv_table(title: str, rows) -> Table:
    table = Table(title=title, show_header=False, title_justify="left")
    table.add_column(style="bold")
    table.add_column()
    for key, value in rows:
        table.add_row(key, value)
    return table


def main() -> None:
    console.print("📊 Bags.fm Analytics Dashboard\n")

    config = load_config()
    try:
        services = build_services(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    try:
        fee_status = services.fee_collector.get_status()
        wallet_balance = services.wallet.get_balance()
        reserve = config.buyback.fee_reserve_sol
        bb = config.buyback

        console.print(_kv_table("TOKEN OVERVIEW", [
            ("Token Mint", fee_status.token_mint),
            ("Your Wallet", services.wallet.public_key()),
        ]))
        console.print(_kv_table("FEE STATISTICS", [
            ("Lifetime Fees", f"{fee_status.lifetime_fees_collected:.4f} SOL"),
            ("", f"${fee_status.lifetime_fees_collected_usd:.2f} USD"),
            ("Claimable Now", f"{fee_status.total_claimable:.4f} SOL"),
            ("", f"${fee_status.total_claimable_usd:.2f} USD"),
            ("Positions", str(len(fee_status.claimable_positions))),
        ]))
        console.print(_kv_table("WALLET STATUS", [
            ("SOL Balance", f"{wallet_balance:.4f} SOL"),
            ("Available", f"{wallet_balance - reserve:.4f} SOL (after fees)"),
        ]))

        if fee_status.fee_sharers:
            sharers = Table(title="FEE SHARERS", title_justify="left")
            sharers.add_column("User")
            sharers.add_column("Share", justify="right")
            sharers.add_column("Claimed", justify="right")
            for sharer in fee_status.fee_sharers:
                sharers.add_row(f"@{sharer.username}", f"{sharer.royalty_bps / 100}%", sharer.total_claimed)
            console.print(sharers)

        console.print(_kv_table("BUYBACK CONFIGURATION", [
            ("Threshold", f"{bb.threshold_sol} SOL"),
            ("Percentage", f"{bb.percentage}%"),
            ("Min Interval", f"{bb.min_interval_hours} hours"),
        ]))

        analysis = services.advisor.get_strategy_advice(
            MarketContext(fee_status=fee_status, wallet_balance=wallet_balance)
        )
        console.print(Panel(analysis, title="🤖 AI STRATEGY ANALYSIS", title_align="left"))
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        services.close()


if __name__ == "__main__":
    main()
