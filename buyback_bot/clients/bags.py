"""Bags.fm public API client (fee claiming, analytics, trade)."""
from typing import Any, List, Optional

import httpx

from buyback_bot.core.config import BagsApiConfig
from buyback_bot.core.types import (
    ClaimablePosition,
    ClaimTransaction,
    TokenClaimStat,
    TokenLifetimeFees,
    TradeQuote,
)


DEFAULT_SLIPPAGE_BPS = 100


class BagsAPIError(RuntimeError):
    """Raised when the Bags API fails or answers with success=false."""


class BagsClient:
    """
    Thin wrapper around the Bags public API.

    Every endpoint answers with an envelope of the form
    ``{"success": bool, "response": ..., "error": str}``; only the
    ``response`` part is returned to callers.
    """

    def __init__(
        self,
        api_key: str,
        cfg: BagsApiConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        cfg = cfg or BagsApiConfig()
        self._client = httpx.Client(
            base_url=cfg.api_url,
            headers={"Content-Type": "application/json", "x-api-key": api_key},
            timeout=cfg.request_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> Any:
        try:
            response = self._client.request(method, endpoint, params=params, json=body)
        except httpx.HTTPError as e:
            raise BagsAPIError(f"Bags API request to {endpoint} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise BagsAPIError(
                f"Bags API returned non-JSON response for {endpoint} "
                f"(HTTP {response.status_code})"
            ) from e

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            raise BagsAPIError(error or f"API request failed (HTTP {response.status_code})")

        return data.get("response")

    # --- fee claiming ---

    def get_claimable_positions(self, wallet: str) -> List[ClaimablePosition]:
        raw = self._request("GET", "/fee-claiming/positions", params={"wallet": wallet})
        return [ClaimablePosition.model_validate(p) for p in raw or []]

    def get_claim_transactions(
        self, wallet: str, pool_config_keys: List[str]
    ) -> List[ClaimTransaction]:
        raw = self._request(
            "POST",
            "/fee-claiming/transactions",
            body={"wallet": wallet, "poolConfigKeys": pool_config_keys},
        )
        return [ClaimTransaction.model_validate(t) for t in raw or []]

    # --- analytics ---

    def get_token_lifetime_fees(self, token_mint: str) -> TokenLifetimeFees:
        raw = self._request(
            "GET", "/analytics/token-lifetime-fees", params={"tokenMint": token_mint}
        )
        return TokenLifetimeFees.model_validate(raw or {})

    def get_token_claim_stats(self, token_mint: str) -> List[TokenClaimStat]:
        raw = self._request(
            "GET", "/token-launch/claim-stats", params={"tokenMint": token_mint}
        )
        return [TokenClaimStat.model_validate(s) for s in raw or []]

    # --- trade ---

    def get_trade_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: str,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> TradeQuote:
        raw = self._request(
            "GET",
            "/trade/quote",
            params={
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": amount,
                "slippageBps": str(slippage_bps),
            },
        )
        return TradeQuote.model_validate(raw or {})

    def create_swap_transaction(
        self,
        wallet: str,
        input_mint: str,
        output_mint: str,
        amount: str,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> str:
        """Returns the serialized (base58) swap transaction."""
        raw = self._request(
            "POST",
            "/trade/swap",
            body={
                "wallet": wallet,
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": amount,
                "slippageBps": slippage_bps,
            },
        )
        if not isinstance(raw, str) or not raw:
            raise BagsAPIError("Swap endpoint returned no transaction")
        return raw
