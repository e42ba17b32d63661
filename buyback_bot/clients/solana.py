"""
Solana wallet + RPC client.

- Loads the bot keypair from a base58 secret or a JSON byte array
- Reports SOL balance
- Signs and submits pre-built transactions, blocking until confirmed

Never logs secrets.
"""
import ast
import logging

from base58 import b58decode
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from buyback_bot.core.config import SolanaConfig
from buyback_bot.core.utils import lamports_to_sol


logger = logging.getLogger("buyback_bot.solana")


class WalletError(RuntimeError):
    """Raised for keypair loading and transaction submission failures."""


def load_keypair(raw: str) -> Keypair:
    if not raw or not raw.strip():
        raise WalletError("WALLET_PRIVATE_KEY missing")
    raw = raw.strip()
    try:
        if raw.startswith("["):
            return Keypair.from_bytes(bytes(ast.literal_eval(raw)))
        return Keypair.from_bytes(b58decode(raw))
    except (ValueError, SyntaxError, TypeError) as e:
        raise WalletError(f"WALLET_PRIVATE_KEY is not a valid keypair: {e}") from e


class SolanaWallet:
    def __init__(self, private_key: str, cfg: SolanaConfig | None = None, client: Client | None = None) -> None:
        cfg = cfg or SolanaConfig()
        self._keypair = load_keypair(private_key)
        self._commitment = Commitment(cfg.commitment)
        self._client = client or Client(cfg.rpc_url, commitment=self._commitment)

    def public_key(self) -> str:
        return str(self._keypair.pubkey())

    def get_balance(self) -> float:
        """Wallet balance in SOL."""
        lamports = self._client.get_balance(self._keypair.pubkey()).value
        return lamports_to_sol(lamports)

    def _sign(self, serialized_tx: str) -> bytes:
        # VersionedTransaction also parses the legacy wire format
        vtx = VersionedTransaction.from_bytes(b58decode(serialized_tx))
        return bytes(VersionedTransaction(vtx.message, [self._keypair]))

    def sign_and_send(self, serialized_tx: str) -> str:
        """Sign a base58 transaction, submit it and wait for confirmation."""
        signed = self._sign(serialized_tx)
        resp = self._client.send_raw_transaction(
            signed, opts=TxOpts(preflight_commitment=self._commitment)
        )
        signature = resp.value

        confirmation = self._client.confirm_transaction(signature, commitment=self._commitment)
        statuses = confirmation.value
        if statuses and statuses[0] is not None and statuses[0].err is not None:
            raise WalletError(f"Transaction {signature} failed: {statuses[0].err}")

        logger.debug(f"Confirmed transaction {signature}")
        return str(signature)
