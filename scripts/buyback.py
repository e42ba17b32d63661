"""One-shot buyback: gate (no prior buyback), quote, AI advice, execute."""
import sys
from concurrent.futures import ThreadPoolExecutor

from rich.console import Console

from buyback_bot.core.config import ConfigError, load_config
from buyback_bot.core.services import build_services
from buyback_bot.core.types import MarketContext

console = Console()


def main() -> None:
    console.print("🚀 Bags.fm Buyback Executor\n")

    config = load_config()
    try:
        services = build_services(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    try:
        console.print("📊 Gathering market data...\n")
        with ThreadPoolExecutor(max_workers=2) as pool:
            status_f = pool.submit(services.fee_collector.get_status)
            balance_f = pool.submit(services.wallet.get_balance)
            fee_status = status_f.result()
            wallet_balance = balance_f.result()

        console.print(f"Token: {config.token_mint}")
        console.print(f"Wallet Balance: {wallet_balance:.4f} SOL")
        console.print(f"Claimable Fees: {fee_status.total_claimable:.4f} SOL\n")

        available = wallet_balance - config.buyback.fee_reserve_sol
        decision = services.buyback.should_execute(available, None)
        if not decision.should:
            console.print(f"ℹ️ {decision.reason}")
            return

        console.print(f"💰 Getting quote for {decision.suggested_amount:.4f} SOL buyback...\n")
        quote = services.buyback.quote(decision.suggested_amount)
        console.print("Quote:")
        console.print(f"  Input: {quote.input_amount_sol:.4f} SOL")
        console.print(f"  Output: {quote.output_amount_tokens:.2f} tokens")
        console.print(f"  Price Impact: {quote.price_impact}%")
        console.print(f"  Effective Price: {quote.effective_price:.8f} SOL/token\n")

        console.print("🤖 Getting Claude AI advice...\n")
        advice = services.advisor.get_buyback_advice(
            MarketContext(fee_status=fee_status, buyback_quote=quote, wallet_balance=wallet_balance)
        )
        console.print(f"AI Recommendation: {'✅ BUY' if advice.should_buyback else '⏸️ WAIT'}")
        console.print(f"Confidence: {advice.confidence}%")
        console.print(f"Suggested Amount: {advice.suggested_amount:.4f} SOL")
        console.print(f"Reasoning: {advice.reasoning}")
        if advice.warnings:
            console.print("\n⚠️ Warnings:")
            for warning in advice.warnings:
                console.print(f"  - {warning}")

        if not advice.should_buyback:
            console.print("\n🛑 AI recommends waiting. Skipping buyback.")
            return

        amount = advice.suggested_amount or decision.suggested_amount
        console.print(f"\n🔄 Executing buyback of {amount:.4f} SOL...\n")
        result = services.buyback.execute(amount)

        if result.success:
            console.print("\n✅ Buyback successful!")
            console.print(f"Spent: {result.input_amount:.4f} SOL")
            console.print(f"Received: {result.output_amount:.2f} tokens")
            console.print(f"Price Impact: {result.price_impact}%")
            console.print(f"Transaction: {config.twitter.explorer_url}{result.transaction}")
        else:
            console.print(f"\n❌ Buyback failed: {result.error}")
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        services.close()


if __name__ == "__main__":
    main()
