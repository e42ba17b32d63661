import random
from decimal import Decimal, ROUND_FLOOR

LAMPORTS_PER_SOL = 1_000_000_000
SOL_MINT = "So11111111111111111111111111111111111111112"


def lamports_to_sol(lamports: int | float | Decimal) -> float:
    return float(lamports) / LAMPORTS_PER_SOL


def sol_to_lamports(sol: float) -> int:
    # str() keeps the literal value, so 0.123456789 floors to 123456789 exactly
    return int((Decimal(str(sol)) * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_FLOOR))


def parse_amount(raw: str | int | float | None) -> Decimal:
    """Parse a string-encoded API amount; blanks count as zero."""
    if raw is None or str(raw).strip() == "":
        return Decimal(0)
    return Decimal(str(raw))


def add_jitter(base_seconds: float, jitter_seconds: float) -> float:
    if jitter_seconds <= 0:
        return base_seconds
    return max(0.0, base_seconds + random.uniform(-jitter_seconds, jitter_seconds))
