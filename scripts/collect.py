"""One-shot fee collection: status report, threshold check, claim."""
import sys

from rich.console import Console

from buyback_bot.core.config import ConfigError, load_config
from buyback_bot.core.services import build_services

console = Console()


def main() -> None:
    console.print("🚀 Bags.fm Fee Collector\n")

    config = load_config()
    try:
        services = build_services(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    try:
        console.print("📊 Checking fee status...\n")
        status = services.fee_collector.get_status()

        console.print(f"Token: {status.token_mint}")
        console.print(
            f"Lifetime Fees: {status.lifetime_fees_collected:.4f} SOL "
            f"(${status.lifetime_fees_collected_usd:.2f})"
        )
        console.print(
            f"Claimable Now: {status.total_claimable:.4f} SOL (${status.total_claimable_usd:.2f})"
        )
        console.print(f"Positions: {len(status.claimable_positions)}\n")

        if status.fee_sharers:
            console.print("Fee Sharers:")
            for sharer in status.fee_sharers:
                console.print(f"  - {sharer.username}: {sharer.royalty_bps / 100}%")
            console.print()

        decision = services.fee_collector.should_collect()
        if not decision.should:
            console.print(
                f"ℹ️ Claimable amount ({decision.claimable:.4f} SOL) "
                f"below threshold ({decision.threshold} SOL)"
            )
            console.print("Skipping collection.\n")
            return

        console.print("💸 Collecting fees...\n")
        result = services.fee_collector.collect()

        if result.success:
            console.print("\n✅ Collection complete!")
            console.print(
                f"Total Claimed: {result.total_claimed:.4f} SOL (${result.total_claimed_usd:.2f})"
            )
            console.print(f"Transactions: {len(result.transactions)}")
            if result.transactions:
                console.print("\nTransaction signatures:")
                for signature in result.transactions:
                    console.print(f"  - {config.twitter.explorer_url}{signature}")
        else:
            console.print("❌ Collection failed")
            for error in result.errors:
                console.print(f"  - {error}")
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        services.close()


if __name__ == "__main__":
    main()
